"""Trend-based forecasting with widening confidence bounds."""

import logging
import math
from datetime import datetime
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from .base_models import DataPoint, ForecastPoint, ensure_chronological
from .confidence import ConfidenceEstimator
from .cross_validation import CrossValidator
from .exceptions import InsufficientDataError, InvalidParameterError
from .trend import TrendAnalyzer

logger = logging.getLogger(__name__)

MIN_FORECAST_POINTS = 3


class ForecastEngine:
    """
    Linear trend forecasting.

    Projects the fitted line forward one x unit per step and wraps each value
    in an interval whose width grows with the distance from the data.
    """

    def __init__(
        self,
        confidence_level: float = 0.95,
        analyzer: Optional[TrendAnalyzer] = None,
        estimator: Optional[ConfidenceEstimator] = None,
        validator: Optional[CrossValidator] = None,
        non_negative: bool = False,
        include_accuracy: bool = False
    ):
        """
        Initialize forecaster.

        Args:
            confidence_level: Default confidence level for intervals (0-1)
            analyzer: Trend model
            estimator: Interval estimator
            validator: Backtester used for model_accuracy
            non_negative: Clamp predictions and lower bounds at zero (valuations)
            include_accuracy: Attach the backtested accuracy to every point
        """
        self.confidence_level = confidence_level
        self.analyzer = analyzer or TrendAnalyzer()
        self.estimator = estimator or ConfidenceEstimator()
        self.validator = validator or CrossValidator(self.analyzer)
        self.non_negative = non_negative
        self.include_accuracy = include_accuracy

    def forecast(
        self,
        series: Sequence[DataPoint],
        horizon: int = 6,
        confidence_level: Optional[float] = None
    ) -> List[ForecastPoint]:
        """
        Generate forecast with confidence intervals.

        Args:
            series: Chronologically ordered history
            horizon: Number of future steps
            confidence_level: Overrides the default level

        Returns:
            One ForecastPoint per step, in order
        """
        level = self.confidence_level if confidence_level is None else confidence_level

        if horizon < 1:
            raise InvalidParameterError(f"Forecast horizon must be at least 1 (got {horizon})")
        ConfidenceEstimator.multiplier(level)

        n = len(series)
        if n < MIN_FORECAST_POINTS:
            raise InsufficientDataError(
                f"Forecasting needs at least {MIN_FORECAST_POINTS} points (got {n})",
                required=MIN_FORECAST_POINTS,
                actual=n
            )
        ensure_chronological(series)

        trend = self.analyzer.fit(series)

        x = np.array([point.x for point in series], dtype=float)
        x_mean = float(x.mean())
        sxx = float(np.sum((x - x_mean) ** 2))
        last_x = series[-1].x

        model_accuracy = None
        if self.include_accuracy:
            model_accuracy = self.validator.validate(series).accuracy

        dates = self._future_dates(series, horizon)

        points = []
        for step in range(1, horizon + 1):
            x_future = last_x + step
            predicted = trend.predict(x_future)
            if self.non_negative:
                predicted = max(predicted, 0.0)

            spread = self._distance_factor(x_future, x_mean, sxx, n)
            interval = self.estimator.interval(series, predicted, level, scale=spread)
            lower = max(interval.lower, 0.0) if self.non_negative else interval.lower

            points.append(ForecastPoint(
                step=step,
                x=x_future,
                date=dates[step - 1],
                predicted_value=predicted,
                lower=lower,
                upper=interval.upper,
                confidence_level=level,
                model_accuracy=model_accuracy
            ))

        logger.debug(
            "Forecast %d steps from %d points (slope=%.6g, level=%.2f)",
            horizon, n, trend.slope, level
        )
        return points

    @staticmethod
    def _distance_factor(x: float, x_mean: float, sxx: float, n: int) -> float:
        """OLS prediction-interval factor; grows as x moves away from the data."""
        return math.sqrt(1.0 + 1.0 / n + (x - x_mean) ** 2 / sxx)

    def _future_dates(
        self,
        series: Sequence[DataPoint],
        horizon: int
    ) -> List[Optional[datetime]]:
        """Extend the sampling cadence of the series' dates."""
        dates = [point.date for point in series]
        if any(date is None for date in dates):
            return [None] * horizon

        index = pd.DatetimeIndex(dates)
        freq = self._infer_frequency(index)

        if freq is not None:
            future = pd.date_range(start=index[-1], periods=horizon + 1, freq=freq)[1:]
            return [timestamp.to_pydatetime() for timestamp in future]

        months = self._month_step(index)
        if months is not None:
            return [
                (index[-1] + pd.DateOffset(months=months * step)).to_pydatetime()
                for step in range(1, horizon + 1)
            ]

        gap = self._median_gap(index)
        if gap is None:
            return [None] * horizon

        return [(index[-1] + gap * step).to_pydatetime() for step in range(1, horizon + 1)]

    def _infer_frequency(self, index: pd.DatetimeIndex) -> Optional[str]:
        """Infer a regular frequency (e.g. monthly) from the dates."""
        if len(index) >= 3 and index.is_unique and index.is_monotonic_increasing:
            return pd.infer_freq(index)
        return None

    def _month_step(self, index: pd.DatetimeIndex) -> Optional[int]:
        """Constant spacing in calendar months (dates on any day of the month)."""
        if len(index) < 2:
            return None
        steps = np.diff(np.asarray(index.year * 12 + index.month))
        if steps[0] <= 0 or not np.all(steps == steps[0]):
            return None
        months = int(steps[0])
        days = np.asarray((index[1:] - index[:-1]).days)
        if np.all((days >= 27 * months) & (days <= 32 * months)):
            return months
        return None

    def _median_gap(self, index: pd.DatetimeIndex) -> Optional[pd.Timedelta]:
        gaps = index[1:] - index[:-1]
        positive = gaps[gaps > pd.Timedelta(0)]
        if len(positive) == 0:
            return None
        return positive.median()


def growth_rate(current: float, forecast: Optional[float]) -> Optional[float]:
    """Percentage change from current to forecast."""
    if forecast is None or current == 0:
        return None
    return ((forecast - current) / current) * 100
