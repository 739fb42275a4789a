import math
from datetime import datetime

import pytest

from valuation_analytics import DataPoint, series_from_values


class FakeClock:
    """Manually advanced clock for cache tests."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def linear_series():
    # y = 2x + 5 for x = 0..9
    return [DataPoint(x=x, y=2 * x + 5) for x in range(10)]


@pytest.fixture
def valuation_series():
    return [
        DataPoint(x=0, y=100),
        DataPoint(x=1, y=110),
        DataPoint(x=2, y=120),
        DataPoint(x=3, y=130),
    ]


@pytest.fixture
def monthly_series():
    dates = [datetime(2024, month, 1) for month in range(1, 7)]
    return series_from_values([200, 215, 222, 240, 251, 263], dates)


@pytest.fixture
def seasonal_series():
    # Three years of monthly data: linear growth plus an annual cycle peaking in month 3
    return series_from_values(
        [100 + 2 * x + 10 * math.sin(2 * math.pi * x / 12) for x in range(36)]
    )


@pytest.fixture
def noisy_series():
    # Slope 0.5 with alternating +-1 noise
    def _make(n):
        return [DataPoint(x=x, y=0.5 * x + (1 if x % 2 == 0 else -1)) for x in range(n)]

    return _make
