"""
Trend direction and favorability.

Two judgments are kept apart on purpose:

  - ``is_favorable(score, goal, is_inverse)`` — does this score meet the goal?
  - ``is_good_trend(trend, is_inverse)``       — is the series moving the
    right way?

A score can meet its goal while trending the wrong way, and vice versa.
A ``stable`` trend is never "good" but it is not failing either: the
narrative verdict for it is ``neutral``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Optional

from quality_tracker.models.indicator import IndicatorDefinition
from quality_tracker.models.records import IndicatorRecord
from quality_tracker.scoring.engine import round_half_away, score_record
from quality_tracker.taxonomy.indicator_taxonomy import Trend


class TrendVerdict(StrEnum):
    """Narrative reading of a trend given the indicator's polarity."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    ATTENTION = "attention"


_VERDICT_LABELS: dict[TrendVerdict, str] = {
    TrendVerdict.POSITIVE: "Positivo",
    TrendVerdict.NEUTRAL: "Neutro",
    TrendVerdict.ATTENTION: "Atenção",
}

_TREND_LABELS: dict[Trend, str] = {
    Trend.UP: "alta",
    Trend.DOWN: "queda",
    Trend.STABLE: "estabilidade",
}


@dataclass(frozen=True)
class TrendPoint:
    """One scored month in a multi-year series."""

    year: int
    month: int
    score: float

    @property
    def label(self) -> str:
        return f"{self.month}/{self.year}"


def sort_points(points: Iterable[TrendPoint]) -> list[TrendPoint]:
    """Chronological order: ascending by year, then month."""
    return sorted(points, key=lambda p: (p.year, p.month))


def trend_points_from_records(
    records: Iterable[IndicatorRecord],
    definition: IndicatorDefinition,
    sector: str,
) -> list[TrendPoint]:
    """Score every non-ignored record of one sector and indicator, all years.

    Returns:
        Chronologically sorted ``TrendPoint`` list.
    """
    points: list[TrendPoint] = []
    for r in records:
        if r.sector != sector or r.indicator_id != definition.id:
            continue
        s = score_record(r, definition)
        if s is None:
            continue
        points.append(TrendPoint(year=r.year, month=r.month, score=s))
    return sort_points(points)


def classify_trend(points: list[TrendPoint]) -> Trend:
    """Compare the last two points of a chronologically sorted series.

    Fewer than two points is ``stable``.
    """
    if len(points) < 2:
        return Trend.STABLE
    last, previous = points[-1].score, points[-2].score
    if last > previous:
        return Trend.UP
    if last < previous:
        return Trend.DOWN
    return Trend.STABLE


def is_favorable(score: Optional[float], goal: float, is_inverse: bool) -> bool:
    """Whether ``score`` meets ``goal``; a missing score never does."""
    if score is None:
        return False
    if is_inverse:
        return score <= goal
    return score >= goal


def is_good_trend(trend: Trend, is_inverse: bool) -> bool:
    """Whether the trend points the favorable way for this polarity."""
    if trend is Trend.STABLE:
        return False
    return trend is (Trend.DOWN if is_inverse else Trend.UP)


def trend_verdict(trend: Trend, is_inverse: bool) -> TrendVerdict:
    if trend is Trend.STABLE:
        return TrendVerdict.NEUTRAL
    return TrendVerdict.POSITIVE if is_good_trend(trend, is_inverse) else TrendVerdict.ATTENTION


def mean_score(points: list[TrendPoint]) -> float:
    """Plain mean of the series, one decimal (0 for an empty series)."""
    if not points:
        return 0.0
    total = sum((Decimal(str(p.score)) for p in points), Decimal(0))
    return round_half_away(total / len(points), 1)


def interpretation(points: list[TrendPoint], definition: IndicatorDefinition) -> str:
    """One-line technical reading of a series, as printed on reports.

    Example::

        "Média: 88.2%. Tendência de alta (Positivo)."
    """
    if not points:
        return "Dados insuficientes."
    trend = classify_trend(points)
    verdict = trend_verdict(trend, definition.is_inverse)
    return (
        f"Média: {mean_score(points):.1f}{definition.unit}. "
        f"Tendência de {_TREND_LABELS[trend]} ({_VERDICT_LABELS[verdict]})."
    )
