"""
Per-view state: snapshot, optimistic edits and background writes.

Lifecycle
---------
1. ``reload()``: flush queued writes, then a blocking full load from the
   store. On failure the snapshot is cleared, ``load_error`` is set and
   ``StorageError`` is re-raised. Nothing derived is shown from a failed load.
2. Edits (``edit_record``, ``set_goal``, ``assign``) replace the local
   entry immediately and return the new record.
3. The matching upsert is queued on a single worker thread, so writes
   reach the store in the order they were made. A write that raises is
   logged and appended to ``write_failures``; the local change is kept.
4. ``flush()`` waits for queued writes; ``close()`` flushes and stops
   the worker.

Two sessions editing the same key overwrite each other (last write wins);
the snapshot is only refreshed by the next ``reload()``.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Optional

from quality_tracker.catalog import get_indicator
from quality_tracker.models.indicator import IndicatorDefinition
from quality_tracker.models.records import (
    GoalRecord,
    IndicatorRecord,
    PlanningRecord,
    goal_key,
    planning_key,
    record_key,
)
from quality_tracker.planning.aggregator import (
    ResponsibleShare,
    planning_grid,
    rank_responsibles,
    total_assignments,
)
from quality_tracker.scoring.engine import (
    MonthlyPoint,
    aggregate,
    blank_record,
    build_monthly_series,
    total_numerator,
)
from quality_tracker.scoring.goals import effective_goal
from quality_tracker.scoring.trend import is_favorable
from quality_tracker.storage.base import IndicatorStore, StorageError
from quality_tracker.taxonomy.indicator_taxonomy import SECTORS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteFailure:
    """A background upsert that did not reach the store."""

    operation: str
    key: str
    error: str


@dataclass(frozen=True)
class IndicatorPanel:
    """Everything one indicator card shows for the selected sector and year.

    Attributes:
        definition: Catalog entry.
        points: Twelve monthly rows, January first.
        aggregate: Headline statistic (sum for counts, mean otherwise).
        total: Sum of numerators over non-ignored months.
        goal: Effective goal for the sector/year.
        month_favorable: Per-month goal check, aligned with ``points``.
        aggregate_favorable: Goal check of the headline statistic.
    """

    definition: IndicatorDefinition
    points: list[MonthlyPoint]
    aggregate: float
    total: int
    goal: float
    month_favorable: list[bool]
    aggregate_favorable: bool


class _ViewState(ABC):
    """Shared load/write plumbing of every view."""

    def __init__(self, store: IndicatorStore) -> None:
        self.store = store
        self.load_error: Optional[str] = None
        self.write_failures: list[WriteFailure] = []
        self._is_loaded = False
        self._pending: list[Future] = []
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="store-writer")

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    def reload(self) -> None:
        """Replace the snapshot with a fresh full load.

        Queued writes are flushed first so the new snapshot includes them.

        Raises:
            StorageError: If any collection fails to load.
        """
        self.flush()
        try:
            self._load()
        except StorageError as exc:
            self._clear()
            self._is_loaded = False
            self.load_error = str(exc)
            logger.error("%s load failed: %s", type(self).__name__, exc)
            raise
        self._is_loaded = True
        self.load_error = None

    @abstractmethod
    def _load(self) -> None:
        """Replace the snapshot from the store."""

    @abstractmethod
    def _clear(self) -> None:
        """Drop the snapshot after a failed load."""

    def _require_loaded(self) -> None:
        if not self._is_loaded:
            raise RuntimeError(f"{type(self).__name__} has no data; call reload() first.")

    def _dispatch(self, operation: str, key: str, write: Callable[[Any], None], item: Any) -> None:
        context = {"operation": operation, "key": key}

        def _run() -> None:
            try:
                write(item)
            except StorageError as exc:
                logger.error(
                    "Background %s failed for key=%s: %s", operation, key, exc, extra=context
                )
                self._record_failure(operation, key, str(exc))
            except Exception as exc:
                logger.exception("Background %s raised for key=%s", operation, key, extra=context)
                self._record_failure(operation, key, f"{type(exc).__name__}: {exc}")

        future = self._executor.submit(_run)
        with self._lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)

    def _record_failure(self, operation: str, key: str, error: str) -> None:
        with self._lock:
            self.write_failures.append(WriteFailure(operation, key, error))

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for queued writes. Returns ``True`` if all of them finished."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def close(self, close_store: bool = False) -> None:
        """Flush pending writes and stop the worker thread.

        Args:
            close_store: Also close the store. Leave ``False`` when the
                store is shared with other views.
        """
        self._executor.shutdown(wait=True)
        if close_store:
            self.store.close()


class IndicatorViewState(_ViewState):
    """Records and goals for one indicator family screen.

    ``sector`` and ``year`` are the active filters and may be reassigned
    freely; the snapshot covers every sector and year.

    Usage::

        view = IndicatorViewState(store, sector="UTI Geral", year=2024)
        view.reload()
        view.edit_record("identificacao_pulseira", 3, numerator=16)
        panel = view.indicator_panel("identificacao_pulseira")
    """

    def __init__(self, store: IndicatorStore, sector: str, year: int) -> None:
        super().__init__(store)
        self.sector = sector
        self.year = year
        self.records: dict[str, IndicatorRecord] = {}
        self.goals: dict[str, GoalRecord] = {}

    def _load(self) -> None:
        records = self.store.load_records()
        goals = self.store.load_goals()
        self.records = {r.id: r for r in records}
        self.goals = {g.id: g for g in goals}
        logger.info("Loaded %d records and %d goals", len(self.records), len(self.goals))

    def _clear(self) -> None:
        self.records = {}
        self.goals = {}

    def edit_record(self, indicator_id: str, month: int, **changes: Any) -> IndicatorRecord:
        """Apply ``changes`` to the month's record, creating it on first edit.

        Accepted fields: ``numerator``, ``denominator``, ``observation``,
        ``is_ignored``.

        Raises:
            KeyError: If ``indicator_id`` is unknown.
            pydantic.ValidationError: If a change produces an invalid record.
        """
        self._require_loaded()
        definition = get_indicator(indicator_id)
        key = record_key(self.sector, self.year, month, indicator_id)
        base = self.records.get(key) or blank_record(definition, self.sector, self.year, month)
        record = base.with_changes(**changes)

        self.records[record.id] = record
        self._dispatch("upsert_record", record.id, self.store.upsert_record, record)
        return record

    def set_goal(self, indicator_id: str, value: float) -> GoalRecord:
        """Store a goal for the active sector and year."""
        self._require_loaded()
        get_indicator(indicator_id)
        goal = GoalRecord(sector=self.sector, year=self.year, indicator_id=indicator_id, value=value)
        self.goals[goal.id] = goal
        self._dispatch("upsert_goal", goal.id, self.store.upsert_goal, goal)
        return goal

    def goal_for(self, indicator_id: str) -> float:
        return effective_goal(self.sector, self.year, indicator_id, self.goals)

    def has_stored_goal(self, indicator_id: str) -> bool:
        return goal_key(self.sector, self.year, indicator_id) in self.goals

    def indicator_panel(self, indicator_id: str) -> IndicatorPanel:
        """Derive the monthly table and headline figures for one indicator."""
        self._require_loaded()
        definition = get_indicator(indicator_id)
        points = build_monthly_series(definition, self.sector, self.year, self.records)
        goal = self.goal_for(indicator_id)
        headline = aggregate(points, definition.formula_type)
        return IndicatorPanel(
            definition=definition,
            points=points,
            aggregate=headline,
            total=total_numerator(points),
            goal=goal,
            month_favorable=[is_favorable(p.score, goal, definition.is_inverse) for p in points],
            aggregate_favorable=is_favorable(headline, goal, definition.is_inverse),
        )


class PlanningViewState(_ViewState):
    """Responsibility calendar for one year."""

    def __init__(self, store: IndicatorStore, year: int) -> None:
        super().__init__(store)
        self.year = year
        self.planning: dict[str, PlanningRecord] = {}

    def _load(self) -> None:
        self.planning = {p.id: p for p in self.store.load_planning()}
        logger.info("Loaded %d planning rows", len(self.planning))

    def _clear(self) -> None:
        self.planning = {}

    def assign(self, sector: str, month: int, responsible: str) -> PlanningRecord:
        """Set who covers ``sector`` in ``month``; a blank name clears the cell."""
        self._require_loaded()
        record = PlanningRecord(
            sector=sector, year=self.year, month=month, responsible=responsible.strip()
        )
        if record.is_blank:
            self.planning.pop(record.id, None)
        else:
            self.planning[record.id] = record
        self._dispatch("upsert_planning", record.id, self.store.upsert_planning, record)
        return record

    def responsible_for(self, sector: str, month: int) -> str:
        record = self.planning.get(planning_key(sector, self.year, month))
        return record.responsible if record is not None else ""

    def ranking(self) -> list[ResponsibleShare]:
        return rank_responsibles(self.planning.values(), self.year)

    def total(self) -> int:
        return total_assignments(self.planning.values(), self.year)

    def grid(self, sectors: tuple[str, ...] = SECTORS) -> dict[str, dict[int, str]]:
        return planning_grid(self.planning.values(), self.year, sectors)
