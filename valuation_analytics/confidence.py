"""Confidence intervals around point estimates."""

import math
from typing import Sequence

import numpy as np
from scipy import stats

from .base_models import DataPoint, ConfidenceInterval
from .exceptions import InsufficientDataError, InvalidParameterError


class ConfidenceEstimator:
    """Symmetric intervals from the sample spread of a series."""

    def interval(
        self,
        series: Sequence[DataPoint],
        point_estimate: float,
        level: float = 0.95,
        scale: float = 1.0
    ) -> ConfidenceInterval:
        """
        Build an interval around a point estimate.

        Args:
            series: Observations whose spread sets the width
            point_estimate: Centre of the interval
            level: Confidence level in (0, 1)
            scale: Extra width multiplier (e.g. for forecast distance)

        Returns:
            ConfidenceInterval at the requested level
        """
        multiplier = self.multiplier(level)

        if not math.isfinite(scale) or scale < 0:
            raise InvalidParameterError(f"scale must be a non-negative number (got {scale})")
        if not series:
            raise InsufficientDataError(
                "Cannot estimate an interval from an empty series",
                required=1,
                actual=0
            )

        # A single observation has no spread
        if len(series) == 1:
            return ConfidenceInterval(lower=point_estimate, upper=point_estimate, level=level)

        values = np.array([point.y for point in series], dtype=float)
        std_dev = float(np.std(values, ddof=1))
        margin = multiplier * std_dev * scale

        return ConfidenceInterval(
            lower=point_estimate - margin,
            upper=point_estimate + margin,
            level=level
        )

    @staticmethod
    def multiplier(level: float) -> float:
        """Two-sided normal quantile for the confidence level."""
        if not 0 < level < 1:
            raise InvalidParameterError(f"Confidence level must be in (0, 1) (got {level})")
        return float(stats.norm.ppf((1 + level) / 2))
