"""Tests for the PostgREST store using httpx.MockTransport (no network)."""

from __future__ import annotations

import json

import httpx
import pytest

from quality_tracker.storage.base import StorageError
from quality_tracker.storage.rest_store import RestIndicatorStore

BASE_URL = "https://example.test/rest/v1"


def _store(handler) -> RestIndicatorStore:
    client = httpx.Client(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    return RestIndicatorStore(base_url="https://example.test", client=client)


class TestLoads:
    def test_load_records_maps_rows(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["select"] = request.url.params["select"]
            return httpx.Response(
                200,
                json=[
                    {
                        "id": "UTI Geral-2024-1-evento_lado",
                        "sector": "UTI Geral",
                        "year": 2024,
                        "month": 1,
                        "indicator_id": "evento_lado",
                        "numerator": None,
                        "denominator": 3,
                        "observation": None,
                        "is_ignored": None,
                    }
                ],
            )

        (record,) = _store(handler).load_records()
        assert seen == {"path": "/rest/v1/indicators", "select": "*"}
        assert record.numerator == 0
        assert record.denominator == 3
        assert record.observation == ""
        assert record.is_ignored is False
        assert record.id == "UTI Geral-2024-1-evento_lado"

    def test_load_goals_and_planning(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/goals"):
                return httpx.Response(
                    200,
                    json=[{"sector": "Pediatria", "year": 2024, "indicator_id": "x", "value": 95}],
                )
            return httpx.Response(
                200,
                json=[{"sector": "Pediatria", "year": 2024, "month": 5, "responsible": "Ana"}],
            )

        store = _store(handler)
        assert store.load_goals()[0].value == 95.0
        assert store.load_planning()[0].responsible == "Ana"

    def test_http_error_becomes_storage_error(self):
        store = _store(lambda request: httpx.Response(503, text="down"))
        with pytest.raises(StorageError) as exc_info:
            store.load_goals()
        assert exc_info.value.operation == "load_goals"

    def test_connection_error_becomes_storage_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(StorageError):
            _store(handler).load_planning()

    def test_invalid_json_becomes_storage_error(self):
        store = _store(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(StorageError, match="invalid JSON"):
            store.load_records()

    def test_non_list_payload_rejected(self):
        store = _store(lambda request: httpx.Response(200, json={"message": "nope"}))
        with pytest.raises(StorageError, match="JSON array"):
            store.load_records()

    @pytest.mark.parametrize(
        "row",
        [
            {"year": 2024, "month": 1, "indicator_id": "evento_lado"},
            {"sector": "UTI Geral", "year": "abc", "month": 1, "indicator_id": "evento_lado"},
            {"sector": "UTI Geral", "year": 2024, "month": 13, "indicator_id": "evento_lado"},
            {"sector": "UTI Geral", "year": 2024, "month": 1, "indicator_id": "x", "numerator": -1},
            "not an object",
        ],
    )
    def test_malformed_record_row_becomes_storage_error(self, row):
        store = _store(lambda request: httpx.Response(200, json=[row]))
        with pytest.raises(StorageError, match="malformed row") as exc_info:
            store.load_records()
        assert exc_info.value.operation == "load_records"

    def test_malformed_goal_and_planning_rows(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/goals"):
                return httpx.Response(200, json=[{"sector": "UTI Geral", "year": 2024}])
            return httpx.Response(200, json=[{"sector": "UTI Geral", "year": None, "month": 2}])

        store = _store(handler)
        with pytest.raises(StorageError) as goals_error:
            store.load_goals()
        with pytest.raises(StorageError) as planning_error:
            store.load_planning()
        assert goals_error.value.operation == "load_goals"
        assert planning_error.value.operation == "load_planning"


class TestWrites:
    def test_upsert_record_posts_merge_duplicates(self, sample_record):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(201)

        _store(handler).upsert_record(sample_record)
        (request,) = captured
        assert request.method == "POST"
        assert request.url.params["on_conflict"] == "id"
        assert "resolution=merge-duplicates" in request.headers["Prefer"]
        body = json.loads(request.content)
        assert body["id"] == sample_record.id
        assert body["numerator"] == 16
        assert body["is_ignored"] is False

    def test_upsert_goal_body(self, sample_goal):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(201)

        _store(handler).upsert_goal(sample_goal)
        assert bodies == [
            {
                "id": sample_goal.id,
                "sector": "UTI Geral",
                "year": 2024,
                "indicator_id": "identificacao_pulseira",
                "value": 80.0,
            }
        ]

    def test_blank_planning_sends_delete(self, make_planning):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(204)

        _store(handler).upsert_planning(make_planning(7, "   "))
        (request,) = captured
        assert request.method == "DELETE"
        assert request.url.path == "/rest/v1/planning"
        assert request.url.params["id"] == "eq.UTI Geral-2024-7"

    def test_write_failure_reports_operation(self, make_planning):
        store = _store(lambda request: httpx.Response(500))
        with pytest.raises(StorageError) as exc_info:
            store.upsert_planning(make_planning(1, "Ana"))
        assert exc_info.value.operation == "upsert_planning"

    def test_failed_delete_reports_operation(self, make_planning):
        store = _store(lambda request: httpx.Response(401))
        with pytest.raises(StorageError) as exc_info:
            store.upsert_planning(make_planning(1, ""))
        assert exc_info.value.operation == "delete_planning"


def test_custom_table_names():
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json=[])

    client = httpx.Client(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    store = RestIndicatorStore(
        base_url="https://example.test", records_table="indicadores", client=client
    )
    assert store.load_records() == []
    assert paths == ["/rest/v1/indicadores"]
    store.close()
