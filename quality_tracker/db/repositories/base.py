"""
Base repository providing shared SQLite execution helpers.

All repositories inherit from ``BaseRepository`` and receive a
``sqlite3.Connection`` at construction time. The connection is opened and
managed by the caller (typically via ``get_connection()``).

Design:
  - No ORM — all SQL is explicit and lives in repository methods.
  - Repositories speak Pydantic models, not raw dicts.
  - Rows are keyed by composite string ids; there are no surrogate keys.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional

logger = logging.getLogger(__name__)


class BaseRepository:
    """Shared SQL execution helpers for all repository classes.

    Attributes:
        conn: The active ``sqlite3.Connection``.
    """

    table: str  # Override in subclass

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(
        self,
        sql: str,
        params: tuple[Any, ...] | dict[str, Any] = (),
    ) -> sqlite3.Cursor:
        """Execute a single SQL statement.

        Args:
            sql: SQL string with ``?`` or ``:name`` placeholders.
            params: Positional tuple or named dict of parameters.

        Returns:
            The resulting ``sqlite3.Cursor``.
        """
        logger.debug("SQL: %s | params: %s", sql.strip(), params)
        return self.conn.execute(sql, params)

    def fetchone(
        self,
        sql: str,
        params: tuple[Any, ...] | dict[str, Any] = (),
    ) -> Optional[sqlite3.Row]:
        """Execute a query and return the first row, or ``None``."""
        return self.execute(sql, params).fetchone()

    def fetchall(
        self,
        sql: str,
        params: tuple[Any, ...] | dict[str, Any] = (),
    ) -> list[sqlite3.Row]:
        """Execute a query and return all rows."""
        return self.execute(sql, params).fetchall()

    def delete_by_id(self, row_id: str) -> bool:
        """Delete one row by composite id.

        Returns:
            ``True`` if a row was removed.
        """
        cur = self.execute(f"DELETE FROM {self.table} WHERE id = ?;", (row_id,))
        return cur.rowcount > 0

    def count(self) -> int:
        """Return total number of rows in the table."""
        row = self.fetchone(f"SELECT COUNT(*) AS n FROM {self.table};")
        assert row is not None
        return int(row["n"])
