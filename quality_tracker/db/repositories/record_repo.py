"""
Repository for monthly indicator records — full load and upsert by key.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from quality_tracker.db.repositories.base import BaseRepository
from quality_tracker.models.records import IndicatorRecord

logger = logging.getLogger(__name__)


class IndicatorRecordRepository(BaseRepository):
    """Read/write access to the ``indicators`` table."""

    table = "indicators"

    def upsert(self, record: IndicatorRecord) -> str:
        """Insert or replace a record by its composite id.

        Args:
            record: The ``IndicatorRecord`` to persist.

        Returns:
            The record id.
        """
        self.execute(
            """
            INSERT INTO indicators (
                id, sector, year, month, indicator_id,
                numerator, denominator, observation, is_ignored, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
            ON CONFLICT(id) DO UPDATE SET
                numerator   = excluded.numerator,
                denominator = excluded.denominator,
                observation = excluded.observation,
                is_ignored  = excluded.is_ignored,
                updated_at  = excluded.updated_at;
            """,
            (
                record.id,
                record.sector,
                record.year,
                record.month,
                record.indicator_id,
                record.numerator,
                record.denominator,
                record.observation,
                int(record.is_ignored),
            ),
        )
        return record.id

    def get_all(self) -> list[IndicatorRecord]:
        """Fetch every record, ordered by sector, year, month and indicator."""
        rows = self.fetchall(
            "SELECT * FROM indicators ORDER BY sector, year, month, indicator_id;"
        )
        return [_row_to_record(r) for r in rows]

    def get_by_id(self, record_id: str) -> Optional[IndicatorRecord]:
        """Fetch a single record by composite id, or ``None``."""
        row = self.fetchone("SELECT * FROM indicators WHERE id = ?;", (record_id,))
        return _row_to_record(row) if row else None


def _row_to_record(row: sqlite3.Row) -> IndicatorRecord:
    """Convert a ``sqlite3.Row`` from ``indicators`` to an ``IndicatorRecord``."""
    return IndicatorRecord(
        sector=row["sector"],
        year=int(row["year"]),
        month=int(row["month"]),
        indicator_id=row["indicator_id"],
        numerator=float(row["numerator"] or 0),
        denominator=float(row["denominator"] or 0),
        observation=row["observation"] or "",
        is_ignored=bool(row["is_ignored"]),
    )
