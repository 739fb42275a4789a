from datetime import datetime

import pytest
from pydantic import ValidationError

from valuation_analytics import (
    AnalyticsError,
    ConfidenceInterval,
    DataPoint,
    DegenerateInputError,
    InsufficientDataError,
    InvalidParameterError,
    TrendAnalyzer,
    ensure_chronological,
    series_from_values,
)


def test_data_point_rejects_non_finite_values():
    with pytest.raises(ValidationError):
        DataPoint(x=0, y=float("nan"))
    with pytest.raises(ValidationError):
        DataPoint(x=float("inf"), y=1)


def test_data_point_is_immutable():
    point = DataPoint(x=0, y=1)

    with pytest.raises(ValidationError):
        point.y = 2


def test_series_from_values():
    dates = [datetime(2024, 1, 1), datetime(2024, 2, 1)]
    series = series_from_values([3.5, 4.5], dates)

    assert [(p.x, p.y, p.date) for p in series] == [(0, 3.5, dates[0]), (1, 4.5, dates[1])]


def test_series_from_values_length_mismatch():
    with pytest.raises(DegenerateInputError):
        series_from_values([1, 2, 3], [datetime(2024, 1, 1)])


def test_ensure_chronological_accepts_valid_series():
    same_day = datetime(2024, 1, 1)
    ensure_chronological([
        DataPoint(x=0, y=1, date=same_day),
        DataPoint(x=1, y=2, date=same_day),
        DataPoint(x=2, y=3),
        DataPoint(x=5, y=4, date=datetime(2024, 2, 1)),
    ])


def test_ensure_chronological_rejects_repeated_x():
    with pytest.raises(DegenerateInputError):
        ensure_chronological([DataPoint(x=0, y=1), DataPoint(x=0, y=2)])


def test_ensure_chronological_rejects_backward_dates():
    with pytest.raises(DegenerateInputError):
        ensure_chronological([
            DataPoint(x=0, y=1, date=datetime(2024, 3, 1)),
            DataPoint(x=1, y=2, date=datetime(2024, 2, 1)),
        ])


def test_confidence_interval_bounds():
    with pytest.raises(ValidationError):
        ConfidenceInterval(lower=2, upper=1, level=0.95)

    interval = ConfidenceInterval(lower=1, upper=3, level=0.9)
    assert interval.width == 2
    assert interval.contains(2)
    assert not interval.contains(3.5)


def test_error_hierarchy():
    assert issubclass(InsufficientDataError, AnalyticsError)
    assert issubclass(DegenerateInputError, AnalyticsError)
    assert issubclass(InvalidParameterError, AnalyticsError)
    assert issubclass(InvalidParameterError, ValueError)
    assert not hasattr(AnalyticsError, "exit_code")


def test_insufficient_data_error_carries_counts():
    with pytest.raises(InsufficientDataError) as excinfo:
        TrendAnalyzer().fit([DataPoint(x=0, y=1)])

    assert excinfo.value.required == 2
    assert excinfo.value.actual == 1
