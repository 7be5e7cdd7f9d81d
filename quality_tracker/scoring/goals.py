"""
Goal resolution.

A stored ``GoalRecord`` for the exact (sector, year, indicator) key wins;
otherwise the catalog's ``default_goal`` applies, and 0 when the catalog
entry defines none. Goals are never inherited across years or sectors.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Optional

from quality_tracker.catalog import get_indicator
from quality_tracker.models.indicator import IndicatorDefinition
from quality_tracker.models.records import GoalRecord, goal_key


def index_goals(goals: Iterable[GoalRecord]) -> dict[str, GoalRecord]:
    """Key goals by their composite id (later entries win)."""
    return {g.id: g for g in goals}


def effective_goal(
    sector: str,
    year: int,
    indicator_id: str,
    stored_goals: Iterable[GoalRecord] | Mapping[str, GoalRecord],
    catalog: Optional[Mapping[str, IndicatorDefinition]] = None,
) -> float:
    """Return the goal in force for one sector, year and indicator.

    Args:
        sector: Sector name.
        year: Calendar year.
        indicator_id: Catalog id.
        stored_goals: Goals loaded from storage, as a list or keyed by id.
        catalog: Optional id → definition mapping; defaults to the static
            catalog.

    Returns:
        The stored goal value, else the indicator's default goal, else 0.

    Raises:
        KeyError: If ``indicator_id`` is not in the catalog.
    """
    index = stored_goals if isinstance(stored_goals, Mapping) else index_goals(stored_goals)
    stored = index.get(goal_key(sector, year, indicator_id))
    if stored is not None:
        return stored.value

    definition = catalog[indicator_id] if catalog is not None else get_indicator(indicator_id)
    return definition.goal_fallback
