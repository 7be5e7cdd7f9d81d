"""Tests for quality_tracker.reporting.formatters."""

from __future__ import annotations

from quality_tracker.catalog import build_glossary, get_indicator
from quality_tracker.planning.aggregator import planning_grid, rank_responsibles
from quality_tracker.reporting.consolidated import build_consolidated_report
from quality_tracker.reporting.formatters import (
    format_consolidated_report,
    format_glossary,
    format_indicator_panel,
    format_planning_calendar,
    format_ranking,
    format_score,
)
from quality_tracker.scoring.engine import aggregate, build_monthly_series, total_numerator
from quality_tracker.taxonomy.indicator_taxonomy import FormulaType
from quality_tracker.views.state import IndicatorPanel


# ── format_score ──────────────────────────────────────────────────────────────


def test_format_score_precision() -> None:
    assert format_score(94.1, FormulaType.PERCENTAGE_FIXED, "%") == "94.1%"
    assert format_score(3, FormulaType.RATE_1000) == "3.00"
    assert format_score(2, FormulaType.COUNT) == "2"


def test_format_score_missing() -> None:
    assert format_score(None, FormulaType.COUNT) == "N/A"


# ── Indicator panel ───────────────────────────────────────────────────────────


def _panel(records, indicator_id: str, goal: float) -> IndicatorPanel:
    d = get_indicator(indicator_id)
    points = build_monthly_series(d, "UTI Geral", 2024, records)
    headline = aggregate(points, d.formula_type)
    return IndicatorPanel(
        definition=d,
        points=points,
        aggregate=headline,
        total=total_numerator(points),
        goal=goal,
        month_favorable=[False] * 12,
        aggregate_favorable=headline >= goal,
    )


def test_indicator_panel_percentage(make_record) -> None:
    """Percentage panels show an Average line and mark ignored months."""
    records = [
        make_record(month=1, numerator=16, observation="rotina"),
        make_record(month=2, numerator=5, is_ignored=True),
    ]
    text = format_indicator_panel(_panel(records, "identificacao_pulseira", 95), "UTI Geral", 2024)

    assert "=== Proporção com Pulseiras (identificacao_pulseira) ===" in text
    assert "Goal: 95%" in text
    assert "94.1%" in text
    assert "[ignored]" in text
    assert "Average: 94.1%" in text
    assert "Total numerator: 16" in text


def test_indicator_panel_count(make_record) -> None:
    records = [make_record(month=3, numerator=2, indicator_id="evento_lado", denominator=1)]
    text = format_indicator_panel(_panel(records, "evento_lado", 0), "UTI Geral", 2024)

    assert "(lower is better)" in text
    assert "Total: 2" in text


# ── Glossary ──────────────────────────────────────────────────────────────────


def test_glossary_groups_by_family() -> None:
    text = format_glossary(build_glossary())

    assert text.count("=== ") == 4
    assert "=== Cirurgia Segura ===" in text
    assert "[identificacao_pulseira]" in text
    assert "Amostra fixa:   17" in text
    assert "Meta padrão:" in text


# ── Consolidated report ───────────────────────────────────────────────────────


def test_consolidated_report_empty() -> None:
    text = format_consolidated_report(build_consolidated_report([], "Oncologia"))
    assert "Sector: Oncologia" in text
    assert "(no data recorded for this sector)" in text


def test_consolidated_report_cards(make_record) -> None:
    records = [
        make_record(month=11, numerator=17, year=2023),
        make_record(month=1, numerator=16),
    ]
    text = format_consolidated_report(build_consolidated_report(records, "UTI Geral"))

    assert "[IDENTIFICAÇÃO DO PACIENTE]" in text
    assert "11/2023 .. 1/2024" in text
    assert "Análise técnica: Média: 97.1%. Tendência de queda (Atenção)." in text
    assert "(no data)" in text


# ── Planning ──────────────────────────────────────────────────────────────────


def test_planning_calendar(sample_planning) -> None:
    grid = planning_grid(sample_planning, 2024, ("UTI Geral", "Pediatria"))
    text = format_planning_calendar(grid, 2024)

    assert "=== Planning Calendar 2024 ===" in text
    uti_line = next(line for line in text.splitlines() if line.strip().startswith("UTI Geral"))
    assert uti_line.count("Ana") == 2
    assert "Carla" not in text


def test_ranking(sample_planning) -> None:
    text = format_ranking(rank_responsibles(sample_planning, 2024), 3, 2024)

    assert "Assigned sector-months: 3" in text
    assert " 66.7%" in text
    assert " 33.3%" in text
    assert text.index("Ana") < text.index("Bruno")


def test_ranking_empty() -> None:
    text = format_ranking([], 0, 2025)
    assert "(no assignments for this year)" in text
