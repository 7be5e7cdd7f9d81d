"""
Shared pytest fixtures for the Quality Tracker test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema applied. Created anew for each test that requests it.
  - ``sqlite_store``: A ``SqliteIndicatorStore`` on a temporary file
    (each store call opens its own connection, so ``:memory:`` won't do).
  - ``FakeStore``: In-memory ``IndicatorStore`` that can be told to fail.
  - Sample record factories used across test modules.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Callable, Generator

import pytest

from quality_tracker.db.schema import apply_schema
from quality_tracker.models.records import GoalRecord, IndicatorRecord, PlanningRecord
from quality_tracker.storage.base import IndicatorStore, StorageError
from quality_tracker.storage.sqlite_store import SqliteIndicatorStore


# ── Database fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the full schema applied.

    Schema is applied idempotently. Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    apply_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def sqlite_store(tmp_path: Path) -> SqliteIndicatorStore:
    """An initialized file-backed store under ``tmp_path``."""
    store = SqliteIndicatorStore(str(tmp_path / "db" / "test.db"))
    store.initialize()
    return store


# ── Fake store ────────────────────────────────────────────────────────────────

class FakeStore(IndicatorStore):
    """Dict-backed store. Set ``fail_loads`` / ``fail_writes`` to simulate outages."""

    backend_name = "fake"

    def __init__(self) -> None:
        self.records: dict[str, IndicatorRecord] = {}
        self.goals: dict[str, GoalRecord] = {}
        self.planning: dict[str, PlanningRecord] = {}
        self.fail_loads = False
        self.fail_writes = False
        self.write_log: list[str] = []
        self.closed = False

    def _check_load(self, op: str) -> None:
        if self.fail_loads:
            raise StorageError(op, "service unavailable")

    def _check_write(self, op: str) -> None:
        if self.fail_writes:
            raise StorageError(op, "service unavailable")

    def load_records(self) -> list[IndicatorRecord]:
        self._check_load("load_records")
        return list(self.records.values())

    def load_goals(self) -> list[GoalRecord]:
        self._check_load("load_goals")
        return list(self.goals.values())

    def load_planning(self) -> list[PlanningRecord]:
        self._check_load("load_planning")
        return list(self.planning.values())

    def upsert_record(self, record: IndicatorRecord) -> None:
        self._check_write("upsert_record")
        self.write_log.append(record.id)
        self.records[record.id] = record

    def upsert_goal(self, goal: GoalRecord) -> None:
        self._check_write("upsert_goal")
        self.write_log.append(goal.id)
        self.goals[goal.id] = goal

    def upsert_planning(self, record: PlanningRecord) -> None:
        self._check_write("upsert_planning")
        self.write_log.append(record.id)
        if record.is_blank:
            self.planning.pop(record.id, None)
        else:
            self.planning[record.id] = record

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


# ── Sample record factories ───────────────────────────────────────────────────

def _make_record(
    month: int = 1,
    numerator: float = 0,
    denominator: float = 17,
    indicator_id: str = "identificacao_pulseira",
    sector: str = "UTI Geral",
    year: int = 2024,
    observation: str = "",
    is_ignored: bool = False,
) -> IndicatorRecord:
    return IndicatorRecord(
        sector=sector,
        year=year,
        month=month,
        indicator_id=indicator_id,
        numerator=numerator,
        denominator=denominator,
        observation=observation,
        is_ignored=is_ignored,
    )


def _make_planning(
    month: int,
    responsible: str,
    sector: str = "UTI Geral",
    year: int = 2024,
) -> PlanningRecord:
    return PlanningRecord(sector=sector, year=year, month=month, responsible=responsible)


@pytest.fixture
def sample_record() -> IndicatorRecord:
    """March 2024, 16 of 17 patients wearing a wristband."""
    return _make_record(month=3, numerator=16, denominator=17, observation="ok")


@pytest.fixture
def sample_goal() -> GoalRecord:
    return GoalRecord(
        sector="UTI Geral", year=2024, indicator_id="identificacao_pulseira", value=80
    )


@pytest.fixture
def sample_planning() -> list[PlanningRecord]:
    """Ana covers two sector-months in 2024, Bruno one; Carla only in 2023."""
    return [
        _make_planning(1, "Ana"),
        _make_planning(2, "Bruno", sector="Pediatria"),
        _make_planning(3, " Ana "),
        _make_planning(4, "Carla", year=2023),
    ]


@pytest.fixture
def make_record() -> Callable[..., IndicatorRecord]:
    """Factory fixture: ``make_record(month=2, numerator=5, ...)``."""
    return _make_record


@pytest.fixture
def make_planning() -> Callable[..., PlanningRecord]:
    """Factory fixture: ``make_planning(month, responsible, sector=..., year=...)``."""
    return _make_planning
