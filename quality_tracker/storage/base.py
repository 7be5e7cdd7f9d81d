"""
Storage interface and data-access error.

Contract
--------
  load_records() / load_goals() / load_planning()
      Full-collection reads. Failure raises ``StorageError``; a partial
      result is never returned.

  upsert_record() / upsert_goal()
      Insert-or-replace by composite key. Failure raises ``StorageError``.

  upsert_planning()
      Same, except a blank ``responsible`` deletes the row for that key
      instead of storing an empty name.

Re-applying the same upsert is idempotent: the same key, the same row.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from quality_tracker.models.records import GoalRecord, IndicatorRecord, PlanningRecord


class StorageError(RuntimeError):
    """Raised when the data service cannot complete a read or write.

    Attributes:
        operation: Which store call failed, e.g. ``"load_records"``.
    """

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        super().__init__(f"[{operation}] {message}")


class IndicatorStore(ABC):
    """Key-based load/upsert access to the three stored collections."""

    backend_name: str = "abstract"

    @abstractmethod
    def load_records(self) -> list[IndicatorRecord]:
        """Return every stored indicator record."""

    @abstractmethod
    def load_goals(self) -> list[GoalRecord]:
        """Return every stored goal."""

    @abstractmethod
    def load_planning(self) -> list[PlanningRecord]:
        """Return every stored planning assignment."""

    @abstractmethod
    def upsert_record(self, record: IndicatorRecord) -> None:
        """Insert or replace ``record`` by its id."""

    @abstractmethod
    def upsert_goal(self, goal: GoalRecord) -> None:
        """Insert or replace ``goal`` by its id."""

    @abstractmethod
    def upsert_planning(self, record: PlanningRecord) -> None:
        """Insert or replace ``record``; a blank name deletes the key."""

    def close(self) -> None:
        """Release any held resources. No-op by default."""
