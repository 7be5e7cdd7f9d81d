"""Tests for quality_tracker.reporting.consolidated."""

from __future__ import annotations

import pytest

from quality_tracker.catalog import get_indicator
from quality_tracker.reporting.consolidated import (
    build_analysis_card,
    build_consolidated_report,
    flatten_report_for_export,
)
from quality_tracker.scoring.trend import TrendVerdict
from quality_tracker.taxonomy.indicator_taxonomy import IndicatorFamily, Trend


@pytest.fixture
def history(make_record):
    """Wristband compliance over a year boundary plus wrong-side events."""
    return [
        make_record(month=1, numerator=16),
        make_record(month=12, numerator=17, year=2023),
        make_record(month=1, numerator=2, indicator_id="evento_lado", denominator=1),
        make_record(month=2, numerator=0, indicator_id="evento_lado", denominator=1),
        make_record(month=1, numerator=5, sector="Pediatria"),
    ]


def test_card_spans_years_in_order(history) -> None:
    card = build_analysis_card(history, get_indicator("identificacao_pulseira"), "UTI Geral")

    assert [p.label for p in card.points] == ["12/2023", "1/2024"]
    assert card.last_score == 94.1
    assert card.mean == 97.1
    assert card.trend is Trend.DOWN
    assert card.good_trend is False
    assert card.verdict is TrendVerdict.ATTENTION
    assert card.interpretation == "Média: 97.1%. Tendência de queda (Atenção)."


def test_inverse_indicator_falling_is_positive(history) -> None:
    card = build_analysis_card(history, get_indicator("evento_lado"), "UTI Geral")

    assert card.trend is Trend.DOWN
    assert card.good_trend is True
    assert card.interpretation == "Média: 1.0. Tendência de queda (Positivo)."


def test_card_none_without_data(history) -> None:
    assert build_analysis_card(history, get_indicator("queda_geral"), "UTI Geral") is None


def test_ignored_records_are_left_out(make_record) -> None:
    records = [make_record(month=1, numerator=3, is_ignored=True)]
    assert build_analysis_card(records, get_indicator("identificacao_pulseira"), "UTI Geral") is None


def test_report_sections_follow_family_order(history) -> None:
    report = build_consolidated_report(history, "UTI Geral")

    assert [s.family for s in report.sections] == list(IndicatorFamily)
    assert report.card_count == 2
    ident = report.sections[0]
    assert ident.title == "Identificação do Paciente"
    assert [c.definition.id for c in ident.cards] == ["identificacao_pulseira"]
    assert report.sections[3].cards == []


def test_report_family_filter(history) -> None:
    report = build_consolidated_report(history, "UTI Geral", families=["cirurgia"])

    assert [s.family for s in report.sections] == [IndicatorFamily.SAFE_SURGERY]
    assert [c.definition.id for c in report.sections[0].cards] == ["evento_lado"]


def test_report_unknown_family(history) -> None:
    with pytest.raises(ValueError):
        build_consolidated_report(history, "UTI Geral", families=["nope"])


def test_report_other_sector(history) -> None:
    report = build_consolidated_report(history, "Pediatria")
    assert report.card_count == 1
    assert report.sections[0].cards[0].last_score == 29.4


def test_flatten_report(history) -> None:
    rows = flatten_report_for_export(build_consolidated_report(history, "UTI Geral"))

    assert len(rows) == 2
    first = rows[0]
    assert first["sector"] == "UTI Geral"
    assert first["family"] == "identificacao"
    assert first["points"] == 2
    assert first["first_period"] == "12/2023"
    assert first["last_period"] == "1/2024"
    assert first["trend"] == "down"
    assert first["verdict"] == "attention"
