import math

import pytest

from business_logic.aggregation.variance import (
    VarianceStats, calculate_variance, classify_correlation, resolve_variance, round_half_up
)


def test_variance_with_zero_prediction_is_zero():
    assert calculate_variance(100, 0) == 0.0
    assert calculate_variance(0, 0) == 0.0


@pytest.mark.parametrize("actual, predicted, expected", [
    (1000, 800, 25.0),
    (500, 500, 0.0),
    (600, 1200, -50.0),
])
def test_variance_percentage(actual, predicted, expected):
    assert calculate_variance(actual, predicted) == pytest.approx(expected)


def test_precomputed_variance_wins():
    record = {'VARIANCE_PERCENTAGE': '12.5', 'DOLLARAMOUNTHIGH': '2000',
              'CAUSATION_HIGH_RECOMMENDATION': '1000'}
    assert resolve_variance(record) == 12.5


def test_zero_precomputed_variance_is_recomputed():
    record = {'VARIANCE_PERCENTAGE': '0', 'DOLLARAMOUNTHIGH': '1500',
              'CAUSATION_HIGH_RECOMMENDATION': '1000'}
    assert resolve_variance(record) == pytest.approx(50.0)


def test_missing_amounts_give_zero_variance():
    assert resolve_variance({}) == 0.0


@pytest.mark.parametrize("value, digits, expected", [
    (2.5, 0, 3),
    (3.5, 0, 4),
    (-2.5, 0, -3),
    (833.333, 0, 833),
    (2.775, 2, 2.78),
    (2.7777777, 2, 2.78),
    (-16.666666, 2, -16.67),
])
def test_round_half_up(value, digits, expected):
    assert round_half_up(value, digits) == expected


def test_round_half_up_types():
    assert isinstance(round_half_up(10.4), int)
    assert isinstance(round_half_up(10.4, 2), float)


def test_round_half_up_has_no_negative_zero():
    result = round_half_up(-0.001, 2)
    assert result == 0.0
    assert math.copysign(1.0, result) == 1.0


@pytest.mark.parametrize("avg, label", [
    (40.01, 'High'),
    (40.0, 'Medium'),
    (25.5, 'Medium'),
    (25.0, 'Low'),
    (0.0, 'Low'),
])
def test_classify_correlation(avg, label):
    assert classify_correlation(avg) == label


class TestVarianceStats:

    def test_threshold_boundaries(self):
        stats = VarianceStats.from_values([25.0, -25.0, 25.01, -25.01, 0.0])

        assert stats.count == 5
        assert stats.overprediction_count == 1
        assert stats.underprediction_count == 1
        assert stats.high_variance_count == 2
        assert stats.high_variance_pct == pytest.approx(40.0)

    def test_counts_are_independent(self):
        stats = VarianceStats.from_values([-60.0, -30.0, 10.0, 80.0])

        assert stats.overprediction_count == 2
        assert stats.underprediction_count == 1
        assert stats.high_variance_count == 3
        assert stats.overprediction_count + stats.underprediction_count <= stats.count

    def test_custom_threshold(self):
        stats = VarianceStats.from_values([15.0, -15.0, 5.0], threshold=10)
        assert stats.high_variance_count == 2

    def test_empty(self):
        stats = VarianceStats.from_values([])
        assert stats.count == 0
        assert stats.mean == 0.0
        assert stats.high_variance_pct == 0.0
