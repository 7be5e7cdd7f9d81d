"""
Repository for the responsibility calendar.

Blank names are never written: ``save()`` turns them into a delete so the
table only ever holds real assignments.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from quality_tracker.db.repositories.base import BaseRepository
from quality_tracker.models.records import PlanningRecord

logger = logging.getLogger(__name__)


class PlanningRepository(BaseRepository):
    """Read/write access to the ``planning`` table."""

    table = "planning"

    def save(self, record: PlanningRecord) -> bool:
        """Upsert ``record``, or delete its row when the name is blank.

        Returns:
            ``True`` if a row was written, ``False`` if the key was cleared.
        """
        if record.is_blank:
            removed = self.delete_by_id(record.id)
            logger.debug("Planning cell %s cleared (row existed: %s)", record.id, removed)
            return False

        self.execute(
            """
            INSERT INTO planning (id, sector, year, month, responsible, updated_at)
            VALUES (?, ?, ?, ?, ?, strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
            ON CONFLICT(id) DO UPDATE SET
                responsible = excluded.responsible,
                updated_at  = excluded.updated_at;
            """,
            (record.id, record.sector, record.year, record.month, record.responsible),
        )
        return True

    def get_all(self) -> list[PlanningRecord]:
        rows = self.fetchall("SELECT * FROM planning ORDER BY year, sector, month;")
        return [_row_to_planning(r) for r in rows]

    def get_by_id(self, planning_id: str) -> Optional[PlanningRecord]:
        row = self.fetchone("SELECT * FROM planning WHERE id = ?;", (planning_id,))
        return _row_to_planning(row) if row else None


def _row_to_planning(row: sqlite3.Row) -> PlanningRecord:
    return PlanningRecord(
        sector=row["sector"],
        year=int(row["year"]),
        month=int(row["month"]),
        responsible=row["responsible"],
    )
