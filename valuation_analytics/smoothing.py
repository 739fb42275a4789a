"""Moving averages."""

from typing import List, Sequence

from .exceptions import InvalidParameterError


def moving_average(values: Sequence[float], period: int) -> List[float]:
    """
    Simple moving average.

    The first period-1 values have no full window and are kept as is. An
    out-of-range period returns the values unchanged.
    """
    values = list(values)
    if period <= 0 or period > len(values):
        return values

    averaged = values[:period - 1]
    window_sum = sum(values[:period - 1])
    for i in range(period - 1, len(values)):
        window_sum += values[i]
        averaged.append(window_sum / period)
        window_sum -= values[i - period + 1]

    return averaged


def exponential_moving_average(values: Sequence[float], alpha: float = 0.3) -> List[float]:
    """Exponential moving average seeded with the first value."""
    if not 0 < alpha <= 1:
        raise InvalidParameterError(f"alpha must be in (0, 1] (got {alpha})")
    if not values:
        return []

    ema = [float(values[0])]
    for value in values[1:]:
        ema.append(alpha * value + (1 - alpha) * ema[-1])

    return ema
