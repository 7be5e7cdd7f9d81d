"""
SQLite-backed ``IndicatorStore``.

Each call opens its own short-lived connection through ``get_connection()``
(commit on success, rollback on error), so the store is safe to use from
the background writer thread of a view. ``sqlite3.Error`` and rows that
do not map onto a record are re-raised as ``StorageError`` with the
failing operation attached.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from quality_tracker.db.connection import get_connection
from quality_tracker.db.repositories.goal_repo import GoalRepository
from quality_tracker.db.repositories.planning_repo import PlanningRepository
from quality_tracker.db.repositories.record_repo import IndicatorRecordRepository
from quality_tracker.db.schema import apply_schema
from quality_tracker.models.records import GoalRecord, IndicatorRecord, PlanningRecord
from quality_tracker.storage.base import IndicatorStore, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqliteIndicatorStore(IndicatorStore):
    """Store backed by a local SQLite file.

    Args:
        db_path: Database file path. Must be a real file: every call opens
            a fresh connection, so ``":memory:"`` would start empty each time.
        wal_mode: Enable WAL journal mode.
        busy_timeout_ms: Lock wait before ``OperationalError``.
    """

    backend_name = "sqlite"

    def __init__(
        self,
        db_path: str,
        wal_mode: bool = True,
        busy_timeout_ms: int = 5000,
    ) -> None:
        self.db_path = db_path
        self.wal_mode = wal_mode
        self.busy_timeout_ms = busy_timeout_ms

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        with get_connection(
            self.db_path,
            wal_mode=self.wal_mode,
            busy_timeout_ms=self.busy_timeout_ms,
        ) as conn:
            yield conn

    def _run(self, operation: str, fn: Callable[[sqlite3.Connection], T]) -> T:
        try:
            with self._connect() as conn:
                return fn(conn)
        except (sqlite3.Error, OSError) as exc:
            logger.error("SQLite %s failed on %s: %s", operation, self.db_path, exc)
            raise StorageError(operation, str(exc)) from exc
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("SQLite %s hit a malformed row in %s: %s", operation, self.db_path, exc)
            raise StorageError(operation, f"malformed row: {exc}") from exc

    def initialize(self) -> None:
        """Create tables and indexes if they do not exist yet."""
        self._run("initialize", apply_schema)

    # ── Loads ─────────────────────────────────────────────────────────────────

    def load_records(self) -> list[IndicatorRecord]:
        return self._run("load_records", lambda c: IndicatorRecordRepository(c).get_all())

    def load_goals(self) -> list[GoalRecord]:
        return self._run("load_goals", lambda c: GoalRepository(c).get_all())

    def load_planning(self) -> list[PlanningRecord]:
        return self._run("load_planning", lambda c: PlanningRepository(c).get_all())

    # ── Upserts ───────────────────────────────────────────────────────────────

    def upsert_record(self, record: IndicatorRecord) -> None:
        self._run("upsert_record", lambda c: IndicatorRecordRepository(c).upsert(record))

    def upsert_goal(self, goal: GoalRecord) -> None:
        self._run("upsert_goal", lambda c: GoalRepository(c).upsert(goal))

    def upsert_planning(self, record: PlanningRecord) -> None:
        self._run("upsert_planning", lambda c: PlanningRepository(c).save(record))
