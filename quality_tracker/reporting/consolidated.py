"""
Consolidated (multi-year) analysis of one sector.

For every selected family, each indicator that has at least one
non-ignored record for the sector gets an ``AnalysisCard``: its full
chronological score series across all years, the latest score, the
trend of the last move and the one-line technical interpretation.
Indicators without data are left out of their section; a section with
no cards is kept so the report shows which families were requested.

Usage::

    report = build_consolidated_report(records, "UTI Geral")
    for section in report.sections:
        for card in section.cards:
            print(card.definition.name, card.interpretation)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Optional

from quality_tracker.catalog import INDICATORS_BY_FAMILY
from quality_tracker.models.indicator import IndicatorDefinition
from quality_tracker.models.records import IndicatorRecord
from quality_tracker.scoring.trend import (
    TrendPoint,
    TrendVerdict,
    classify_trend,
    interpretation,
    is_good_trend,
    mean_score,
    trend_points_from_records,
    trend_verdict,
)
from quality_tracker.taxonomy.indicator_taxonomy import IndicatorFamily, Trend


@dataclass(frozen=True)
class AnalysisCard:
    """Trend summary of one indicator in one sector."""

    definition: IndicatorDefinition
    points: list[TrendPoint]
    last_score: float
    mean: float
    trend: Trend
    good_trend: bool
    verdict: TrendVerdict
    interpretation: str


@dataclass(frozen=True)
class ReportSection:
    family: IndicatorFamily
    title: str
    cards: list[AnalysisCard] = field(default_factory=list)


@dataclass(frozen=True)
class ConsolidatedReport:
    sector: str
    sections: list[ReportSection]

    @property
    def card_count(self) -> int:
        return sum(len(s.cards) for s in self.sections)


def build_analysis_card(
    records: Iterable[IndicatorRecord],
    definition: IndicatorDefinition,
    sector: str,
) -> Optional[AnalysisCard]:
    """Build the card of one indicator, or ``None`` when it has no data."""
    points = trend_points_from_records(records, definition, sector)
    if not points:
        return None
    trend = classify_trend(points)
    return AnalysisCard(
        definition=definition,
        points=points,
        last_score=points[-1].score,
        mean=mean_score(points),
        trend=trend,
        good_trend=is_good_trend(trend, definition.is_inverse),
        verdict=trend_verdict(trend, definition.is_inverse),
        interpretation=interpretation(points, definition),
    )


def build_consolidated_report(
    records: Iterable[IndicatorRecord],
    sector: str,
    families: Optional[Sequence[IndicatorFamily | str]] = None,
) -> ConsolidatedReport:
    """Build the consolidated report of ``sector``.

    Args:
        records: Every stored record (all sectors and years).
        sector: Sector to analyse.
        families: Families to include, in report order. Defaults to all
            four in catalog order.

    Raises:
        ValueError: If a family slug is unknown.
    """
    records = list(records)
    selected = (
        [IndicatorFamily(f) for f in families]
        if families is not None
        else list(INDICATORS_BY_FAMILY)
    )

    sections: list[ReportSection] = []
    for family in selected:
        cards = [
            card
            for definition in INDICATORS_BY_FAMILY[family]
            if (card := build_analysis_card(records, definition, sector)) is not None
        ]
        sections.append(ReportSection(family=family, title=family.title, cards=cards))
    return ConsolidatedReport(sector=sector, sections=sections)


def flatten_report_for_export(report: ConsolidatedReport) -> list[dict]:
    """One flat row per analysis card, ready for ``export_to_csv()``."""
    rows: list[dict] = []
    for section in report.sections:
        for card in section.cards:
            rows.append(
                {
                    "sector": report.sector,
                    "family": section.family.value,
                    "indicator_id": card.definition.id,
                    "indicator_name": card.definition.name,
                    "points": len(card.points),
                    "first_period": card.points[0].label,
                    "last_period": card.points[-1].label,
                    "last_score": card.last_score,
                    "mean": card.mean,
                    "trend": card.trend.value,
                    "verdict": card.verdict.value,
                    "interpretation": card.interpretation,
                }
            )
    return rows
