"""Monte Carlo simulation of a modeled random variable."""

import logging
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from .base_models import (
    ConfidenceInterval,
    DistributionBin,
    MonteCarloResult,
    SimulationStatistics
)
from .exceptions import DegenerateInputError, InvalidParameterError

logger = logging.getLogger(__name__)

Sampler = Callable[[], float]

PERCENTILES = (5, 10, 25, 50, 75, 90, 95)
CONFIDENCE_LEVELS = (0.68, 0.95, 0.99)
VALUE_AT_RISK_PERCENTILE = 5


class MonteCarloSimulator:
    """
    Builds an empirical distribution from repeated draws of a sampler.

    The sampler carries the business model (portfolio returns, valuation
    scenarios, ...); this class only draws, bins and summarises. Intervals
    come from empirical percentiles since the sampler may be skewed.
    """

    def __init__(self, confidence_levels: Sequence[float] = CONFIDENCE_LEVELS):
        for level in confidence_levels:
            if not 0 < level < 1:
                raise InvalidParameterError(f"Confidence level must be in (0, 1) (got {level})")
        self.confidence_levels = tuple(confidence_levels)

    def simulate(
        self,
        sampler: Sampler,
        iterations: int = 10000,
        bin_count: int = 50
    ) -> MonteCarloResult:
        """
        Run the simulation.

        Args:
            sampler: Zero-argument callable returning one draw
            iterations: Number of draws
            bin_count: Number of equal-width histogram bins

        Returns:
            MonteCarloResult with distribution, statistics and intervals
        """
        if iterations < 1:
            raise InvalidParameterError(f"iterations must be at least 1 (got {iterations})")
        if bin_count < 1:
            raise InvalidParameterError(f"bin_count must be at least 1 (got {bin_count})")

        samples = np.fromiter((sampler() for _ in range(iterations)), dtype=float, count=iterations)
        if not np.all(np.isfinite(samples)):
            raise DegenerateInputError("Sampler produced a non-finite value")

        result = MonteCarloResult(
            iterations=iterations,
            distribution=self._distribution(samples, bin_count),
            statistics=self._statistics(samples),
            confidence_intervals=self._confidence_intervals(samples)
        )

        logger.debug(
            "Simulated %d draws: mean=%.6g std=%.6g",
            iterations, result.statistics.mean, result.statistics.standard_deviation
        )
        return result

    def _distribution(self, samples: np.ndarray, bin_count: int) -> List[DistributionBin]:
        """Equal-width bins over [min, max] with empirical probabilities."""
        low = float(samples.min())
        high = float(samples.max())

        if low == high:
            return [DistributionBin(value=low, probability=1.0)]

        counts, edges = np.histogram(samples, bins=bin_count, range=(low, high))
        midpoints = (edges[:-1] + edges[1:]) / 2
        total = len(samples)

        return [
            DistributionBin(value=float(midpoint), probability=float(count) / total)
            for midpoint, count in zip(midpoints, counts)
        ]

    def _statistics(self, samples: np.ndarray) -> SimulationStatistics:
        ddof = 1 if len(samples) > 1 else 0
        variance = float(np.var(samples, ddof=ddof))
        percentiles = self._percentiles(samples, PERCENTILES)

        value_at_risk = float(np.percentile(samples, VALUE_AT_RISK_PERCENTILE))
        tail = samples[samples <= value_at_risk]

        return SimulationStatistics(
            mean=float(np.mean(samples)),
            median=float(np.median(samples)),
            standard_deviation=float(np.sqrt(variance)),
            variance=variance,
            minimum=float(samples.min()),
            maximum=float(samples.max()),
            percentiles=percentiles,
            value_at_risk=value_at_risk,
            conditional_value_at_risk=float(tail.mean()) if len(tail) else value_at_risk
        )

    def _confidence_intervals(self, samples: np.ndarray) -> List[ConfidenceInterval]:
        intervals = []
        for level in self.confidence_levels:
            lower, upper = np.percentile(samples, [(1 - level) / 2 * 100, (1 + level) / 2 * 100])
            intervals.append(ConfidenceInterval(lower=float(lower), upper=float(upper), level=level))
        return intervals

    @staticmethod
    def _percentiles(samples: np.ndarray, ranks: Sequence[int]) -> Dict[int, float]:
        values = np.percentile(samples, ranks)
        return {int(rank): float(value) for rank, value in zip(ranks, values)}


def normal_sampler(mean: float, std_dev: float, seed: Optional[int] = None) -> Sampler:
    """Sampler drawing from a normal distribution."""
    if std_dev < 0:
        raise InvalidParameterError(f"std_dev must be non-negative (got {std_dev})")
    rng = np.random.default_rng(seed)
    return lambda: float(rng.normal(mean, std_dev))


def uniform_sampler(low: float, high: float, seed: Optional[int] = None) -> Sampler:
    """Sampler drawing uniformly from [low, high)."""
    if high < low:
        raise InvalidParameterError(f"high ({high}) must not be below low ({low})")
    rng = np.random.default_rng(seed)
    return lambda: float(rng.uniform(low, high))
