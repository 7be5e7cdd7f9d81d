"""Tests for repository round-trip operations using in-memory SQLite."""

from __future__ import annotations

from quality_tracker.db.repositories.goal_repo import GoalRepository
from quality_tracker.db.repositories.planning_repo import PlanningRepository
from quality_tracker.db.repositories.record_repo import IndicatorRecordRepository
from quality_tracker.models.records import GoalRecord


class TestIndicatorRecordRepository:
    def test_upsert_and_get(self, in_memory_db, sample_record):
        repo = IndicatorRecordRepository(in_memory_db)
        assert repo.upsert(sample_record) == sample_record.id
        assert repo.get_by_id(sample_record.id) == sample_record

    def test_upsert_same_key_replaces(self, in_memory_db, sample_record):
        repo = IndicatorRecordRepository(in_memory_db)
        repo.upsert(sample_record)
        repo.upsert(sample_record.with_changes(numerator=12, is_ignored=True))
        assert repo.count() == 1
        stored = repo.get_by_id(sample_record.id)
        assert stored.numerator == 12
        assert stored.is_ignored is True

    def test_repeated_upsert_is_idempotent(self, in_memory_db, sample_record):
        repo = IndicatorRecordRepository(in_memory_db)
        repo.upsert(sample_record)
        repo.upsert(sample_record)
        assert repo.get_all() == [sample_record]

    def test_get_missing_returns_none(self, in_memory_db):
        assert IndicatorRecordRepository(in_memory_db).get_by_id("nope") is None

    def test_get_all_ordered(self, in_memory_db, make_record):
        repo = IndicatorRecordRepository(in_memory_db)
        repo.upsert(make_record(month=5))
        repo.upsert(make_record(month=2))
        assert [r.month for r in repo.get_all()] == [2, 5]


class TestGoalRepository:
    def test_upsert_overwrites_value(self, in_memory_db, sample_goal):
        repo = GoalRepository(in_memory_db)
        repo.upsert(sample_goal)
        repo.upsert(GoalRecord(**{**sample_goal.model_dump(), "value": 90}))
        assert repo.count() == 1
        assert repo.get_by_id(sample_goal.id).value == 90


class TestPlanningRepository:
    def test_save_and_update(self, in_memory_db, make_planning):
        repo = PlanningRepository(in_memory_db)
        assert repo.save(make_planning(1, "Ana")) is True
        assert repo.save(make_planning(1, "Bruno")) is True
        assert repo.count() == 1
        assert repo.get_by_id("UTI Geral-2024-1").responsible == "Bruno"

    def test_blank_name_deletes_row(self, in_memory_db, make_planning):
        repo = PlanningRepository(in_memory_db)
        repo.save(make_planning(1, "Ana"))
        assert repo.save(make_planning(1, "  ")) is False
        assert repo.get_by_id("UTI Geral-2024-1") is None
        assert repo.count() == 0

    def test_blank_name_on_missing_row_is_noop(self, in_memory_db, make_planning):
        repo = PlanningRepository(in_memory_db)
        assert repo.save(make_planning(2, "")) is False
        assert repo.delete_by_id("UTI Geral-2024-2") is False
