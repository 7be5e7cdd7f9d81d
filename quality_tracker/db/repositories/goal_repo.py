"""
Repository for yearly goals.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from quality_tracker.db.repositories.base import BaseRepository
from quality_tracker.models.records import GoalRecord

logger = logging.getLogger(__name__)


class GoalRepository(BaseRepository):
    """Read/write access to the ``goals`` table."""

    table = "goals"

    def upsert(self, goal: GoalRecord) -> str:
        """Insert or overwrite the goal for (sector, year, indicator)."""
        self.execute(
            """
            INSERT INTO goals (id, sector, year, indicator_id, value, updated_at)
            VALUES (?, ?, ?, ?, ?, strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
            ON CONFLICT(id) DO UPDATE SET
                value      = excluded.value,
                updated_at = excluded.updated_at;
            """,
            (goal.id, goal.sector, goal.year, goal.indicator_id, goal.value),
        )
        return goal.id

    def get_all(self) -> list[GoalRecord]:
        rows = self.fetchall("SELECT * FROM goals ORDER BY sector, year, indicator_id;")
        return [_row_to_goal(r) for r in rows]

    def get_by_id(self, goal_id: str) -> Optional[GoalRecord]:
        row = self.fetchone("SELECT * FROM goals WHERE id = ?;", (goal_id,))
        return _row_to_goal(row) if row else None


def _row_to_goal(row: sqlite3.Row) -> GoalRecord:
    return GoalRecord(
        sector=row["sector"],
        year=int(row["year"]),
        indicator_id=row["indicator_id"],
        value=float(row["value"] or 0),
    )
