"""
Planning aggregator: who is responsible for how many sector-months.

Usage flow
----------
1. rank_responsibles(records, year)
   -> list[ResponsibleShare]  (descending by count)

2. planning_grid(records, year)
   -> dict[sector, dict[month, name]]  (calendar cells with a name)

Names are grouped after trimming surrounding whitespace, case-sensitively
and without any fuzzy merging: "Ana" and "ana" are two people.
Equal counts are ordered by name ascending so the ranking never depends
on storage order.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from quality_tracker.models.records import PlanningRecord
from quality_tracker.scoring.engine import round_half_away
from quality_tracker.taxonomy.indicator_taxonomy import SECTORS


@dataclass(frozen=True)
class ResponsibleShare:
    """One line of the workload ranking.

    Attributes:
        name: Trimmed responsible name.
        count: Sector-month cells assigned to this person in the year.
        percentage: ``count`` / total assignments × 100, one decimal.
    """

    name: str
    count: int
    percentage: float


def _assignments(records: Iterable[PlanningRecord], year: int) -> list[PlanningRecord]:
    return [r for r in records if r.year == year and not r.is_blank]


def total_assignments(records: Iterable[PlanningRecord], year: int) -> int:
    """Number of non-blank assignments in ``year``."""
    return len(_assignments(records, year))


def rank_responsibles(records: Iterable[PlanningRecord], year: int) -> list[ResponsibleShare]:
    """Tally assignments per person for ``year`` and rank them.

    Args:
        records: All planning records (any year).
        year: Year to analyse.

    Returns:
        ``ResponsibleShare`` list sorted by count descending, then name
        ascending. Empty when the year has no assignments.
    """
    assigned = _assignments(records, year)
    total = len(assigned)
    counts = Counter(r.responsible.strip() for r in assigned)

    ranking = [
        ResponsibleShare(
            name=name,
            count=count,
            percentage=round_half_away(count * 100 / total, 1) if total > 0 else 0.0,
        )
        for name, count in counts.items()
    ]
    ranking.sort(key=lambda s: (-s.count, s.name))
    return ranking


def planning_grid(
    records: Iterable[PlanningRecord],
    year: int,
    sectors: Iterable[str] = SECTORS,
) -> dict[str, dict[int, str]]:
    """Build the sector × month calendar for ``year``.

    Every sector in ``sectors`` gets an entry (possibly empty); only months
    with a non-blank responsible appear inside it. Records for sectors not
    listed are dropped.
    """
    grid: dict[str, dict[int, str]] = {s: {} for s in sectors}
    for r in _assignments(records, year):
        if r.sector in grid:
            grid[r.sector][r.month] = r.responsible.strip()
    return grid
