"""Tests for goal resolution: stored goal wins, no inheritance, default fallback."""

from __future__ import annotations

import pytest

from quality_tracker.models.indicator import IndicatorDefinition
from quality_tracker.models.records import GoalRecord
from quality_tracker.scoring.goals import effective_goal, index_goals
from quality_tracker.taxonomy.indicator_taxonomy import FormulaType, IndicatorFamily


def test_default_goal_when_nothing_stored():
    assert effective_goal("UTI Geral", 2024, "identificacao_pulseira", []) == 95


def test_stored_goal_overrides_default(sample_goal):
    assert effective_goal("UTI Geral", 2024, "identificacao_pulseira", [sample_goal]) == 80


def test_goal_of_another_year_does_not_apply():
    later = GoalRecord(sector="UTI Geral", year=2025, indicator_id="identificacao_pulseira", value=70)
    assert effective_goal("UTI Geral", 2024, "identificacao_pulseira", [later]) == 95
    assert effective_goal("UTI Geral", 2025, "identificacao_pulseira", [later]) == 70


def test_goal_of_another_sector_does_not_apply(sample_goal):
    assert effective_goal("Pediatria", 2024, "identificacao_pulseira", [sample_goal]) == 95


def test_accepts_indexed_goals(sample_goal):
    index = index_goals([sample_goal])
    assert effective_goal("UTI Geral", 2024, "identificacao_pulseira", index) == 80


def test_later_goal_wins_in_index(sample_goal):
    newer = GoalRecord(
        sector="UTI Geral", year=2024, indicator_id="identificacao_pulseira", value=90
    )
    assert index_goals([sample_goal, newer])[newer.id].value == 90


def test_missing_default_goal_resolves_to_zero():
    definition = IndicatorDefinition(
        id="sem_meta",
        name="Sem meta",
        family=IndicatorFamily.FALLS,
        formula_type=FormulaType.COUNT,
    )
    catalog = {definition.id: definition}
    assert effective_goal("UTI Geral", 2024, "sem_meta", [], catalog=catalog) == 0


def test_inverse_count_default_goal_is_zero():
    assert effective_goal("UTI Geral", 2024, "evento_lado", []) == 0


def test_unknown_indicator_raises():
    with pytest.raises(KeyError):
        effective_goal("UTI Geral", 2024, "nao_existe", [])
