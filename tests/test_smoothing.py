import pytest

from valuation_analytics import InvalidParameterError, exponential_moving_average, moving_average


def test_moving_average():
    assert moving_average([1, 2, 3, 4, 5], 3) == pytest.approx([1, 2, 2, 3, 4])


def test_moving_average_period_one_is_identity():
    assert moving_average([4, 8, 15], 1) == pytest.approx([4, 8, 15])


@pytest.mark.parametrize("period", [0, -1, 6])
def test_moving_average_out_of_range_period(period):
    assert moving_average([1, 2, 3, 4, 5], period) == [1, 2, 3, 4, 5]


def test_exponential_moving_average():
    assert exponential_moving_average([10, 20, 30], alpha=0.5) == pytest.approx([10, 15, 22.5])


def test_exponential_moving_average_empty():
    assert exponential_moving_average([]) == []


@pytest.mark.parametrize("alpha", [0, -0.2, 1.5])
def test_exponential_moving_average_invalid_alpha(alpha):
    with pytest.raises(InvalidParameterError):
        exponential_moving_average([1, 2, 3], alpha=alpha)
