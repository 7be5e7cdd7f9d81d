"""
Scoring engine: per-month scores and yearly aggregates.

Formula dispatch
----------------
Each ``FormulaType`` maps to exactly one scoring function in ``_SCORERS``.
The mapping is checked for completeness at import time, so a new formula
type cannot be added without a scorer.

  count                → numerator (denominator ignored)
  percentage_fixed     → round(numerator × 100 / denominator, 1); 0 if den = 0
  percentage_variable  → round(numerator × 100 / denominator, 1); 0 if den = 0
  rate_1000            → round(numerator × 1000 / denominator, 2); 0 if den = 0

The zero-denominator result is a real 0, not a missing-data marker.
Rounding is half away from zero at the stated precision; displayed and
exported values depend on it.

Aggregation
-----------
``aggregate()`` summarises up to 12 monthly points for one
(sector, year, indicator): ignored months and months with no data are
dropped, then ``count`` indicators are summed and all other types are
averaged and rounded to the per-month precision.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Optional, Union

from quality_tracker.models.indicator import IndicatorDefinition
from quality_tracker.models.records import IndicatorRecord, record_key
from quality_tracker.taxonomy.indicator_taxonomy import MONTHS, FormulaType

Number = Union[int, float, Decimal]


def _dec(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_away(value: Number, places: int) -> float:
    """Round ``value`` to ``places`` decimals, halves away from zero.

    ``round()`` rounds halves to even and works on binary floats, so
    ``round(2.675, 2) == 2.67``. This goes through ``Decimal`` instead::

        round_half_away(2.675, 2)  # -> 2.68
        round_half_away(-0.05, 1)  # -> -0.1
    """
    d = _dec(value)
    if not d.is_finite():
        return float(d)
    quantum = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        # quantize needs every integer digit plus ``places`` decimals
        ctx.prec = max(ctx.prec, d.adjusted() + places + 2)
        return float(d.quantize(quantum, rounding=ROUND_HALF_UP))


# ── Per-month score ───────────────────────────────────────────────────────────


def _score_count(numerator: Decimal, denominator: Decimal) -> float:
    return float(numerator)


def _score_percentage(numerator: Decimal, denominator: Decimal) -> float:
    if denominator == 0:
        return 0.0
    return round_half_away(numerator * 100 / denominator, 1)


def _score_rate_1000(numerator: Decimal, denominator: Decimal) -> float:
    if denominator == 0:
        return 0.0
    return round_half_away(numerator * 1000 / denominator, 2)


_SCORERS: dict[FormulaType, Callable[[Decimal, Decimal], float]] = {
    FormulaType.COUNT: _score_count,
    FormulaType.PERCENTAGE_FIXED: _score_percentage,
    FormulaType.PERCENTAGE_VARIABLE: _score_percentage,
    FormulaType.RATE_1000: _score_rate_1000,
}

_unmapped = set(FormulaType) - set(_SCORERS)
if _unmapped:
    raise RuntimeError(f"No scorer registered for formula types: {sorted(_unmapped)}")


def score(numerator: Number, denominator: Number, formula_type: FormulaType | str) -> float:
    """Compute the score of one month.

    Args:
        numerator: Non-negative count for the month.
        denominator: Non-negative sample size / exposure.
        formula_type: A ``FormulaType`` member or its string value.

    Returns:
        The score at the formula type's precision.

    Raises:
        ValueError: If ``formula_type`` is not a known formula type.
    """
    scorer = _SCORERS[FormulaType(formula_type)]
    return scorer(_dec(numerator), _dec(denominator))


def score_record(record: IndicatorRecord, definition: IndicatorDefinition) -> Optional[float]:
    """Score a stored record; ignored records yield ``None``."""
    if record.is_ignored:
        return None
    return score(record.numerator, record.denominator, definition.formula_type)


# ── Monthly series ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class MonthlyPoint:
    """One row of the 12-month table for an indicator.

    Attributes:
        month: 1–12.
        month_label: Three-letter Portuguese label (``"Jan"``, ``"Fev"``…).
        numerator: Stored numerator, or 0 when no record exists.
        denominator: Stored denominator, or the display default.
        observation: Stored annotation, or ``""``.
        score: Month score; ``None`` when the record is ignored.
        is_recorded: Whether a record exists for this month.
        is_ignored: Whether the record is excluded from aggregates.
    """

    month: int
    month_label: str
    numerator: float
    denominator: float
    observation: str
    score: Optional[float]
    is_recorded: bool
    is_ignored: bool

    @property
    def has_data(self) -> bool:
        """A month counts towards the aggregate only if it holds data."""
        return self.is_recorded or self.numerator > 0


def display_denominator(definition: IndicatorDefinition) -> float:
    """Denominator shown for a month that has no record yet."""
    if definition.fixed_denominator is not None:
        return float(definition.fixed_denominator)
    return 0.0 if definition.formula_type is FormulaType.RATE_1000 else 1.0


def new_record_denominator(definition: IndicatorDefinition) -> float:
    """Denominator a record receives when it is created by a first edit.

    Fixed-sample indicators start at their sample size; monthly-entry
    types (variable percentage, rate) start at 0 until the user types one.
    """
    if definition.formula_type in (FormulaType.PERCENTAGE_VARIABLE, FormulaType.RATE_1000):
        return 0.0
    return float(definition.fixed_denominator or 1)


def blank_record(
    definition: IndicatorDefinition,
    sector: str,
    year: int,
    month: int,
) -> IndicatorRecord:
    """Return the record that a first edit of an empty month starts from."""
    return IndicatorRecord(
        sector=sector,
        year=year,
        month=month,
        indicator_id=definition.id,
        numerator=0,
        denominator=new_record_denominator(definition),
        observation="",
        is_ignored=False,
    )


def _index_records(
    records: Iterable[IndicatorRecord] | Mapping[str, IndicatorRecord],
) -> Mapping[str, IndicatorRecord]:
    if isinstance(records, Mapping):
        return records
    return {r.id: r for r in records}


def build_monthly_series(
    definition: IndicatorDefinition,
    sector: str,
    year: int,
    records: Iterable[IndicatorRecord] | Mapping[str, IndicatorRecord],
) -> list[MonthlyPoint]:
    """Build the January–December table for one (sector, year, indicator).

    Args:
        definition: Catalog entry of the indicator.
        sector: Sector name.
        year: Calendar year.
        records: All records (any sector/year/indicator) as a list or as a
            dict keyed by record id.

    Returns:
        Exactly 12 ``MonthlyPoint`` objects, January first.
    """
    index = _index_records(records)
    default_den = display_denominator(definition)
    points: list[MonthlyPoint] = []

    for m in MONTHS:
        rec = index.get(record_key(sector, year, m.value, definition.id))
        if rec is None:
            num, den = 0.0, default_den
            points.append(
                MonthlyPoint(
                    month=m.value,
                    month_label=m.short_label,
                    numerator=num,
                    denominator=den,
                    observation="",
                    score=score(num, den, definition.formula_type),
                    is_recorded=False,
                    is_ignored=False,
                )
            )
            continue

        points.append(
            MonthlyPoint(
                month=m.value,
                month_label=m.short_label,
                numerator=rec.numerator,
                denominator=rec.denominator,
                observation=rec.observation,
                score=score_record(rec, definition),
                is_recorded=True,
                is_ignored=rec.is_ignored,
            )
        )

    return points


# ── Aggregates ────────────────────────────────────────────────────────────────


def aggregate_scores(
    scores: Iterable[Optional[float]],
    formula_type: FormulaType | str,
) -> float:
    """Sum (``count``) or rounded mean (other types) of monthly scores.

    ``None`` entries stand for ignored months and are skipped. With no
    remaining scores the aggregate is 0.
    """
    ftype = FormulaType(formula_type)
    kept = [_dec(s) for s in scores if s is not None]
    if not kept:
        return 0.0
    total = sum(kept, Decimal(0))
    if ftype is FormulaType.COUNT:
        return float(total)
    return round_half_away(total / len(kept), ftype.precision)


def aggregate(points: Iterable[MonthlyPoint], formula_type: FormulaType | str) -> float:
    """Headline statistic of a monthly series.

    Ignored months and months without data are excluded before
    ``aggregate_scores`` is applied.
    """
    return aggregate_scores(
        (p.score for p in points if not p.is_ignored and p.score is not None and p.has_data),
        formula_type,
    )


def total_numerator(points: Iterable[MonthlyPoint]) -> int:
    """Sum of numerators over non-ignored months, as an integer count."""
    total = sum((_dec(p.numerator) for p in points if not p.is_ignored), Decimal(0))
    return int(round_half_away(total, 0))
