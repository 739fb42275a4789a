"""Linear trend fitting with goodness-of-fit and significance scoring."""

import logging
import math
from typing import Sequence

import numpy as np
from scipy import stats

from .base_models import DataPoint, TrendResult, TrendDirection
from .exceptions import InsufficientDataError, DegenerateInputError

logger = logging.getLogger(__name__)

MIN_TREND_POINTS = 2

# A slope within this fraction of the mean |y| per step counts as flat.
STABLE_SLOPE_RATIO = 0.005


class TrendAnalyzer:
    """
    Ordinary least squares trend over a metric series.

    Direction uses a threshold relative to the series' own scale, so a
    valuation in the millions and a health score out of 100 are judged alike.
    """

    def __init__(self, stable_slope_ratio: float = STABLE_SLOPE_RATIO):
        """
        Initialize analyzer.

        Args:
            stable_slope_ratio: Fraction of mean |y| below which a slope is stable
        """
        self.stable_slope_ratio = stable_slope_ratio

    def fit(self, series: Sequence[DataPoint]) -> TrendResult:
        """
        Fit a line to the series.

        Args:
            series: Chronologically ordered data points

        Returns:
            TrendResult describing the fitted line

        Raises:
            InsufficientDataError: fewer than 2 points
            DegenerateInputError: all x values identical
        """
        n = len(series)
        if n < MIN_TREND_POINTS:
            raise InsufficientDataError(
                f"Trend analysis needs at least {MIN_TREND_POINTS} points (got {n})",
                required=MIN_TREND_POINTS,
                actual=n
            )

        x = np.array([point.x for point in series], dtype=float)
        y = np.array([point.y for point in series], dtype=float)

        x_mean = x.mean()
        y_mean = y.mean()
        dx = x - x_mean
        sxx = float(np.dot(dx, dx))

        if sxx == 0:
            raise DegenerateInputError("Cannot fit a trend: all x values are identical")

        slope = float(np.dot(dx, y - y_mean) / sxx)
        intercept = float(y_mean - slope * x_mean)

        residuals = y - (slope * x + intercept)
        ss_res = float(np.dot(residuals, residuals))
        ss_tot = float(np.sum((y - y_mean) ** 2))
        r_squared = _clamp(1.0 - ss_res / ss_tot) if ss_tot > 0 else 0.0

        significance = self._slope_significance(slope, ss_res, sxx, n)
        confidence = min(100.0, max(0.0, 100.0 * r_squared * significance))

        result = TrendResult(
            slope=slope,
            intercept=intercept,
            r_squared=r_squared,
            direction=self._direction(slope, y),
            strength=self._strength(slope, x, y),
            confidence=confidence,
            statistical_significance=significance,
            sample_size=n
        )

        logger.debug(
            "Fitted trend over %d points: slope=%.6g intercept=%.6g r2=%.3f",
            n, slope, intercept, r_squared
        )
        return result

    def _direction(self, slope: float, y: np.ndarray) -> TrendDirection:
        """Classify slope against a threshold scaled to the series."""
        threshold = self.stable_slope_ratio * float(np.mean(np.abs(y)))
        if abs(slope) <= threshold:
            return TrendDirection.STABLE
        return TrendDirection.INCREASING if slope > 0 else TrendDirection.DECREASING

    def _strength(self, slope: float, x: np.ndarray, y: np.ndarray) -> float:
        """Fitted change across the series relative to the observed value range."""
        value_range = float(np.ptp(y))
        if value_range == 0:
            return 0.0
        return _clamp(abs(slope) * float(np.ptp(x)) / value_range)

    def _slope_significance(
        self,
        slope: float,
        ss_res: float,
        sxx: float,
        n: int
    ) -> float:
        """
        One minus the two-sided p-value of the slope's t statistic.

        Two points always fit perfectly and carry no evidence, so they score 0.
        """
        dof = n - 2
        if dof <= 0:
            return 0.0

        mse = ss_res / dof
        if mse <= 0:
            # Perfect fit
            return 1.0 if slope != 0 else 0.0

        standard_error = math.sqrt(mse / sxx)
        t_statistic = abs(slope) / standard_error
        p_value = 2.0 * float(stats.t.sf(t_statistic, dof))

        return _clamp(1.0 - p_value)


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return min(high, max(low, value))
