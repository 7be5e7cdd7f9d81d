"""
Tests for quality_tracker.scoring.trend.

What we test
------------
1. Chronological sorting across year boundaries.
2. classify_trend(): last two points only; < 2 points is stable.
3. is_favorable() / is_good_trend() for both polarities.
4. Narrative verdict and interpretation line.
5. Series extraction from records (sector/indicator filter, ignored dropped).
"""

from __future__ import annotations

import pytest

from quality_tracker.catalog import get_indicator
from quality_tracker.scoring.trend import (
    TrendPoint,
    TrendVerdict,
    classify_trend,
    interpretation,
    is_favorable,
    is_good_trend,
    mean_score,
    sort_points,
    trend_points_from_records,
    trend_verdict,
)
from quality_tracker.taxonomy.indicator_taxonomy import Trend

PULSEIRA = get_indicator("identificacao_pulseira")
QUEDA_GERAL = get_indicator("queda_geral")


def _series(*scores: float) -> list[TrendPoint]:
    return [TrendPoint(year=2024, month=i + 1, score=s) for i, s in enumerate(scores)]


class TestSortAndClassify:
    def test_sort_crosses_year_boundary(self):
        points = [TrendPoint(2024, 1, 5.0), TrendPoint(2023, 12, 4.0), TrendPoint(2023, 2, 3.0)]
        assert [p.label for p in sort_points(points)] == ["2/2023", "12/2023", "1/2024"]

    def test_empty_is_stable(self):
        assert classify_trend([]) is Trend.STABLE

    def test_single_point_is_stable(self):
        assert classify_trend(_series(50.0)) is Trend.STABLE

    def test_up(self):
        assert classify_trend(_series(90.0, 10.0, 20.0)) is Trend.UP

    def test_down(self):
        assert classify_trend(_series(10.0, 20.0, 15.0)) is Trend.DOWN

    def test_equal_last_two_is_stable(self):
        assert classify_trend(_series(1.0, 7.0, 7.0)) is Trend.STABLE


class TestFavorability:
    @pytest.mark.parametrize("value, expected", [(96, True), (95, True), (94.9, False)])
    def test_higher_is_better(self, value, expected):
        assert is_favorable(value, 95, is_inverse=False) is expected

    @pytest.mark.parametrize("value, expected", [(0, True), (0.5, False)])
    def test_lower_is_better(self, value, expected):
        assert is_favorable(value, 0, is_inverse=True) is expected

    def test_missing_score_never_favorable(self):
        assert is_favorable(None, 0, is_inverse=True) is False
        assert is_favorable(None, 0, is_inverse=False) is False

    def test_good_trend_by_polarity(self):
        assert is_good_trend(Trend.UP, is_inverse=False)
        assert is_good_trend(Trend.DOWN, is_inverse=True)
        assert not is_good_trend(Trend.UP, is_inverse=True)
        assert not is_good_trend(Trend.DOWN, is_inverse=False)

    def test_stable_is_never_good(self):
        assert not is_good_trend(Trend.STABLE, is_inverse=False)
        assert not is_good_trend(Trend.STABLE, is_inverse=True)

    def test_stable_verdict_is_neutral(self):
        assert trend_verdict(Trend.STABLE, is_inverse=True) is TrendVerdict.NEUTRAL
        assert trend_verdict(Trend.UP, is_inverse=True) is TrendVerdict.ATTENTION
        assert trend_verdict(Trend.UP, is_inverse=False) is TrendVerdict.POSITIVE


class TestInterpretation:
    def test_empty_series(self):
        assert interpretation([], PULSEIRA) == "Dados insuficientes."

    def test_rising_adherence_is_positive(self):
        assert interpretation(_series(80.0, 90.0), PULSEIRA) == (
            "Média: 85.0%. Tendência de alta (Positivo)."
        )

    def test_rising_falls_need_attention(self):
        assert interpretation(_series(1.0, 2.0), QUEDA_GERAL) == (
            "Média: 1.5%. Tendência de alta (Atenção)."
        )

    def test_falling_falls_are_positive(self):
        assert interpretation(_series(2.0, 1.0), QUEDA_GERAL).endswith(
            "Tendência de queda (Positivo)."
        )

    def test_stable_series(self):
        assert interpretation(_series(5.0, 5.0), QUEDA_GERAL).endswith(
            "Tendência de estabilidade (Neutro)."
        )

    def test_mean_one_decimal(self):
        assert mean_score(_series(94.1, 100.0)) == 97.1
        assert mean_score([]) == 0.0


class TestTrendPointsFromRecords:
    def test_filters_and_sorts(self, make_record):
        records = [
            make_record(year=2024, month=1, numerator=17),
            make_record(year=2023, month=12, numerator=16),
            make_record(year=2024, month=2, numerator=1, is_ignored=True),
            make_record(year=2024, month=3, numerator=1, sector="Pediatria"),
            make_record(year=2024, month=4, numerator=1, indicator_id="identificacao_placa"),
        ]
        points = trend_points_from_records(records, PULSEIRA, "UTI Geral")
        assert [(p.label, p.score) for p in points] == [("12/2023", 94.1), ("1/2024", 100.0)]
