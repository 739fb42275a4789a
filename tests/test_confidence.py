import pytest

from valuation_analytics import (
    ConfidenceEstimator,
    DataPoint,
    InsufficientDataError,
    InvalidParameterError,
    series_from_values,
)

Z_95 = 1.959963984540054


def test_wider_level_contains_narrower():
    series = series_from_values([10, 12, 9, 14, 11, 13])
    estimator = ConfidenceEstimator()

    narrow = estimator.interval(series, 12.0, level=0.68)
    wide = estimator.interval(series, 12.0, level=0.95)

    assert wide.width > narrow.width
    assert wide.lower < narrow.lower
    assert wide.upper > narrow.upper
    assert narrow.level == 0.68
    assert wide.level == 0.95


def test_interval_uses_sample_standard_deviation():
    series = series_from_values([1, 2, 3, 4, 5])
    interval = ConfidenceEstimator().interval(series, 3.0, level=0.95)

    # Sample std of 1..5 is sqrt(2.5)
    half_width = Z_95 * 2.5 ** 0.5
    assert interval.lower == pytest.approx(3.0 - half_width)
    assert interval.upper == pytest.approx(3.0 + half_width)


def test_interval_is_symmetric_around_estimate():
    series = series_from_values([4, 8, 15, 16, 23, 42])
    interval = ConfidenceEstimator().interval(series, 100.0, level=0.9)

    assert (interval.lower + interval.upper) / 2 == pytest.approx(100.0)


def test_scale_widens_interval():
    series = series_from_values([1, 2, 3, 4, 5])
    estimator = ConfidenceEstimator()

    base = estimator.interval(series, 3.0, level=0.95)
    scaled = estimator.interval(series, 3.0, level=0.95, scale=2.0)

    assert scaled.width == pytest.approx(2 * base.width)


def test_single_point_collapses_to_estimate():
    interval = ConfidenceEstimator().interval([DataPoint(x=0, y=5)], 7.5, level=0.95)

    assert interval.lower == interval.upper == 7.5
    assert interval.width == 0


def test_empty_series_raises():
    with pytest.raises(InsufficientDataError):
        ConfidenceEstimator().interval([], 1.0, level=0.95)


@pytest.mark.parametrize("level", [0, 1, -0.5, 1.5, float("nan")])
def test_level_outside_unit_interval_raises(level):
    with pytest.raises(InvalidParameterError):
        ConfidenceEstimator().interval(series_from_values([1, 2, 3]), 2.0, level=level)


def test_negative_scale_raises():
    with pytest.raises(InvalidParameterError):
        ConfidenceEstimator().interval(series_from_values([1, 2, 3]), 2.0, level=0.95, scale=-1)


def test_multiplier_increases_with_level():
    levels = [0.5, 0.68, 0.8, 0.9, 0.95, 0.99]
    multipliers = [ConfidenceEstimator.multiplier(level) for level in levels]

    assert multipliers == sorted(multipliers)
    assert ConfidenceEstimator.multiplier(0.95) == pytest.approx(Z_95)
