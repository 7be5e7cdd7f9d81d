"""
Stored record models: monthly indicator observations, yearly goals, and
monthly planning assignments.

Each record's identity is a deterministic composite of its natural key
fields joined with ``-``. The ``id`` property regenerates it on demand, so
lookups by a regenerated key always hit the row written earlier::

    record_key("UTI Geral", 2024, 3, "identificacao_pulseira")
    # -> "UTI Geral-2024-3-identificacao_pulseira"

Records are frozen. An edit produces a new record (``with_changes``) that
replaces the old one under the same key.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


# ── Composite keys ────────────────────────────────────────────────────────────


def record_key(sector: str, year: int, month: int, indicator_id: str) -> str:
    """Key of an ``IndicatorRecord``: ``sector-year-month-indicatorId``."""
    return f"{sector}-{year}-{month}-{indicator_id}"


def goal_key(sector: str, year: int, indicator_id: str) -> str:
    """Key of a ``GoalRecord``: ``sector-year-indicatorId``."""
    return f"{sector}-{year}-{indicator_id}"


def planning_key(sector: str, year: int, month: int) -> str:
    """Key of a ``PlanningRecord``: ``sector-year-month``."""
    return f"{sector}-{year}-{month}"


def _check_month(v: int) -> int:
    if not 1 <= v <= 12:
        raise ValueError(f"month must be in 1..12, got {v}.")
    return v


def _check_finite(v: float) -> float:
    if not math.isfinite(v):
        raise ValueError(f"value must be a finite number, got {v}.")
    return v


# ── Models ────────────────────────────────────────────────────────────────────


class IndicatorRecord(BaseModel):
    """One monthly observation for (sector, year, month, indicator).

    Attributes:
        sector: Hospital sector name.
        year: Calendar year.
        month: Calendar month, 1–12.
        indicator_id: Catalog id of the indicator.
        numerator: Conformities / events / falls counted this month.
        denominator: Sample size or exposure; meaning depends on the
            indicator's formula type (ignored for ``count``).
        observation: Free-text annotation.
        is_ignored: When ``True`` the month is excluded from every
            aggregate but stays stored and editable.
    """

    model_config = ConfigDict(frozen=True)

    sector: str
    year: int
    month: int
    indicator_id: str
    numerator: float = 0.0
    denominator: float = 0.0
    observation: str = ""
    is_ignored: bool = False

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: int) -> int:
        return _check_month(v)

    @field_validator("numerator", "denominator")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if _check_finite(v) < 0:
            raise ValueError(f"counts must be non-negative, got {v}.")
        return v

    @property
    def id(self) -> str:
        return record_key(self.sector, self.year, self.month, self.indicator_id)

    def with_changes(self, **changes: Any) -> "IndicatorRecord":
        """Return a validated copy with ``changes`` applied."""
        return IndicatorRecord.model_validate({**self.model_dump(), **changes})


class GoalRecord(BaseModel):
    """Target value for (sector, year, indicator).

    Absence of a goal means "use the indicator's default goal".
    """

    model_config = ConfigDict(frozen=True)

    sector: str
    year: int
    indicator_id: str
    value: float

    @field_validator("value")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        return _check_finite(v)

    @property
    def id(self) -> str:
        return goal_key(self.sector, self.year, self.indicator_id)


class PlanningRecord(BaseModel):
    """Person responsible for a sector in a given month.

    A blank ``responsible`` is never stored: writing one deletes the row.
    """

    model_config = ConfigDict(frozen=True)

    sector: str
    year: int
    month: int
    responsible: str

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: int) -> int:
        return _check_month(v)

    @property
    def id(self) -> str:
        return planning_key(self.sector, self.year, self.month)

    @property
    def is_blank(self) -> bool:
        return self.responsible.strip() == ""
