"""Seasonal pattern detection."""

import logging
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .base_models import DataPoint, SeasonalPattern
from .exceptions import InvalidParameterError
from .trend import TrendAnalyzer

logger = logging.getLogger(__name__)

MIN_SEASONAL_POINTS = 12

# Quarterly, seasonal, semi-annual and annual cycles
CANDIDATE_PERIODS = (3, 4, 6, 12)

MIN_SEASONAL_CONFIDENCE = 0.3


class SeasonalityDetector:
    """
    Finds a repeating cycle in a series once a year of monthly history exists.

    The linear trend is removed first so that steady growth is not mistaken
    for a cycle. Each candidate period is scored by how much of the remaining
    variance the per-position means explain, adjusted for the number of
    positions so longer periods do not win just by having more parameters.
    """

    def __init__(
        self,
        candidate_periods: Sequence[int] = CANDIDATE_PERIODS,
        min_confidence: float = MIN_SEASONAL_CONFIDENCE,
        analyzer: Optional[TrendAnalyzer] = None
    ):
        self.candidate_periods = tuple(candidate_periods)
        self.min_confidence = min_confidence
        self.analyzer = analyzer or TrendAnalyzer()

    def detect(
        self,
        series: Sequence[DataPoint],
        expected_period: Optional[int] = None
    ) -> Optional[SeasonalPattern]:
        """
        Detect the strongest seasonal pattern.

        Args:
            series: Chronologically ordered data points
            expected_period: Test only this period instead of the candidates

        Returns:
            SeasonalPattern, or None when there is too little history or no
            candidate clears the confidence floor
        """
        if expected_period is not None and expected_period < 2:
            raise InvalidParameterError(
                f"Seasonal period must be at least 2 samples (got {expected_period})"
            )

        n = len(series)
        if n < MIN_SEASONAL_POINTS:
            logger.debug("Skipping seasonality: %d points (need %d)", n, MIN_SEASONAL_POINTS)
            return None

        residuals = self._detrend(series)
        scale = max(1.0, float(np.mean(np.abs([point.y for point in series]))))
        if np.allclose(residuals, 0.0, atol=1e-9 * scale):
            # Nothing left once the trend is removed
            return None

        periods = (expected_period,) if expected_period else self.candidate_periods

        best: Optional[SeasonalPattern] = None
        for period in sorted(periods):
            # Need at least 2 full cycles
            if n < period * 2:
                continue

            pattern = self._analyze_period(residuals, period)
            if best is None or pattern.confidence > best.confidence:
                best = pattern

        if best is None or best.confidence <= self.min_confidence:
            return None

        logger.debug(
            "Seasonal pattern: period=%d confidence=%.3f", best.period, best.confidence
        )
        return best

    def _detrend(self, series: Sequence[DataPoint]) -> np.ndarray:
        trend = self.analyzer.fit(series)
        return np.array([point.y - trend.predict(point.x) for point in series], dtype=float)

    def _analyze_period(self, residuals: np.ndarray, period: int) -> SeasonalPattern:
        """Score one candidate period against the detrended series."""
        n = len(residuals)
        positions = np.arange(n) % period

        seasonal_means = np.array([
            residuals[positions == position].mean() for position in range(period)
        ])
        seasonal_component = seasonal_means[positions]

        overall_mean = residuals.mean()
        total_variance = float(np.sum((residuals - overall_mean) ** 2))
        explained_variance = float(np.sum((seasonal_component - overall_mean) ** 2))

        confidence = 0.0
        if total_variance > 0:
            r_squared = explained_variance / total_variance
            adjusted = 1.0 - (1.0 - r_squared) * (n - 1) / (n - period)
            confidence = min(1.0, max(0.0, adjusted))

        peak_position, amplitude = self._peak_and_amplitude(seasonal_means)

        return SeasonalPattern(
            period=period,
            amplitude=amplitude,
            phase=peak_position / period,
            confidence=confidence,
            autocorrelation=self._autocorrelation(residuals, period)
        )

    @staticmethod
    def _peak_and_amplitude(seasonal_means: np.ndarray) -> Tuple[int, float]:
        peak_position = int(np.argmax(seasonal_means))
        amplitude = float(seasonal_means.max() - seasonal_means.min())
        return peak_position, amplitude

    @staticmethod
    def _autocorrelation(residuals: np.ndarray, lag: int) -> float:
        value = pd.Series(residuals).autocorr(lag=lag)
        return float(value) if np.isfinite(value) else 0.0
