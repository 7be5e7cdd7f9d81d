"""
PostgREST-backed ``IndicatorStore`` (e.g. a Supabase project).

Credential setup (.env, gitignored)::

  QUALITY_TRACKER_STORAGE_BACKEND=rest
  QUALITY_TRACKER_REST_URL=https://<project>.supabase.co
  QUALITY_TRACKER_REST_KEY=<anon or service key>

Endpoints (relative to ``{rest_url}/rest/v1``)::

  GET    /{table}?select=*                       full-collection load
  POST   /{table}?on_conflict=id                 upsert
         Prefer: resolution=merge-duplicates
  DELETE /{table}?id=eq.{key}                    clear a planning cell

Remote columns are snake_case (``indicator_id``, ``is_ignored``); null
counts and observations come back as 0 / ``""``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Optional, TypeVar

import httpx

from quality_tracker.models.records import GoalRecord, IndicatorRecord, PlanningRecord
from quality_tracker.storage.base import IndicatorStore, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RestIndicatorStore(IndicatorStore):
    """Store backed by a hosted PostgREST API.

    Usage::

        store = RestIndicatorStore(
            base_url="https://abc.supabase.co",
            api_key=os.environ["QUALITY_TRACKER_REST_KEY"],
        )
        records = store.load_records()

    Args:
        base_url: Project URL, without the ``/rest/v1`` suffix.
        api_key: API key sent as ``apikey`` and bearer token.
        timeout_s: Per-request timeout in seconds.
        records_table: Remote table of indicator records.
        goals_table: Remote table of goals.
        planning_table: Remote table of planning assignments.
        client: Pre-built ``httpx.Client`` (tests pass one with a
            ``MockTransport``). When given, ``base_url``/``api_key`` are
            not applied to it.
    """

    backend_name = "rest"

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout_s: float = 15.0,
        records_table: str = "indicators",
        goals_table: str = "goals",
        planning_table: str = "planning",
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.records_table = records_table
        self.goals_table = goals_table
        self.planning_table = planning_table
        self._client = client or httpx.Client(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout_s,
        )

    def close(self) -> None:
        self._client.close()

    # ── HTTP helpers ───────────────────────────────────────────────────────────

    def _select_all(self, operation: str, table: str) -> list[dict[str, Any]]:
        try:
            resp = self._client.get(f"/{table}", params={"select": "*"})
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            logger.error("REST %s failed (table=%s): %s", operation, table, exc)
            raise StorageError(operation, str(exc)) from exc
        except ValueError as exc:
            logger.error("REST %s returned invalid JSON (table=%s): %s", operation, table, exc)
            raise StorageError(operation, f"invalid JSON response: {exc}") from exc
        if not isinstance(data, list):
            raise StorageError(operation, f"expected a JSON array, got {type(data).__name__}")
        return data

    def _upsert(self, operation: str, table: str, row: dict[str, Any]) -> None:
        try:
            resp = self._client.post(
                f"/{table}",
                params={"on_conflict": "id"},
                json=row,
                headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("REST %s failed (table=%s, id=%s): %s", operation, table, row["id"], exc)
            raise StorageError(operation, str(exc)) from exc

    def _delete(self, operation: str, table: str, row_id: str) -> None:
        try:
            resp = self._client.delete(f"/{table}", params={"id": f"eq.{row_id}"})
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("REST %s failed (table=%s, id=%s): %s", operation, table, row_id, exc)
            raise StorageError(operation, str(exc)) from exc

    # ── Loads ──────────────────────────────────────────────────────────────────

    def _load_all(
        self, operation: str, table: str, mapper: Callable[[dict[str, Any]], T]
    ) -> list[T]:
        rows = self._select_all(operation, table)
        try:
            return [mapper(r) for r in rows]
        except (KeyError, TypeError, ValueError) as exc:
            logger.error("REST %s returned a malformed row (table=%s): %s", operation, table, exc)
            raise StorageError(operation, f"malformed row: {exc}") from exc

    def load_records(self) -> list[IndicatorRecord]:
        return self._load_all("load_records", self.records_table, _row_to_record)

    def load_goals(self) -> list[GoalRecord]:
        return self._load_all("load_goals", self.goals_table, _row_to_goal)

    def load_planning(self) -> list[PlanningRecord]:
        return self._load_all("load_planning", self.planning_table, _row_to_planning)

    # ── Upserts ────────────────────────────────────────────────────────────────

    def upsert_record(self, record: IndicatorRecord) -> None:
        self._upsert(
            "upsert_record",
            self.records_table,
            {
                "id": record.id,
                "sector": record.sector,
                "year": record.year,
                "month": record.month,
                "indicator_id": record.indicator_id,
                "numerator": record.numerator,
                "denominator": record.denominator,
                "observation": record.observation,
                "is_ignored": record.is_ignored,
            },
        )

    def upsert_goal(self, goal: GoalRecord) -> None:
        self._upsert(
            "upsert_goal",
            self.goals_table,
            {
                "id": goal.id,
                "sector": goal.sector,
                "year": goal.year,
                "indicator_id": goal.indicator_id,
                "value": goal.value,
            },
        )

    def upsert_planning(self, record: PlanningRecord) -> None:
        if record.is_blank:
            self._delete("delete_planning", self.planning_table, record.id)
            return
        self._upsert(
            "upsert_planning",
            self.planning_table,
            {
                "id": record.id,
                "sector": record.sector,
                "year": record.year,
                "month": record.month,
                "responsible": record.responsible,
            },
        )


# ── Row mappers ────────────────────────────────────────────────────────────────


def _row_to_record(row: dict[str, Any]) -> IndicatorRecord:
    return IndicatorRecord(
        sector=row["sector"],
        year=int(row["year"]),
        month=int(row["month"]),
        indicator_id=row["indicator_id"],
        numerator=float(row.get("numerator") or 0),
        denominator=float(row.get("denominator") or 0),
        observation=row.get("observation") or "",
        is_ignored=bool(row.get("is_ignored") or False),
    )


def _row_to_goal(row: dict[str, Any]) -> GoalRecord:
    return GoalRecord(
        sector=row["sector"],
        year=int(row["year"]),
        indicator_id=row["indicator_id"],
        value=float(row.get("value") or 0),
    )


def _row_to_planning(row: dict[str, Any]) -> PlanningRecord:
    return PlanningRecord(
        sector=row["sector"],
        year=int(row["year"]),
        month=int(row["month"]),
        responsible=row.get("responsible") or "",
    )
