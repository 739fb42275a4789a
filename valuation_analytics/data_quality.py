"""Data quality scoring for metric series."""

from typing import Dict, List, Sequence

import numpy as np

from .base_models import DataPoint, DataQualityReport, QualityLevel, ensure_chronological

# Volume saturates at one year of monthly data
TARGET_SAMPLE_SIZE = 12

# Minimum for meaningful trend work
MIN_QUALITY_SAMPLE = 3

MIN_STATIONARITY_POINTS = 12

OUTLIER_Z = 2.0

VOLUME_WEIGHT = 0.6
REGULARITY_WEIGHT = 0.4


class DataQualityScorer:
    """Rates how well a series supports trend, forecast and seasonality work."""

    def __init__(
        self,
        target_sample_size: int = TARGET_SAMPLE_SIZE,
        min_sample_size: int = MIN_QUALITY_SAMPLE,
        significance_level: float = 0.05
    ):
        """
        Initialize scorer.

        Args:
            target_sample_size: Sample count at which volume stops adding to the score
            min_sample_size: Minimum sample size for a valid report
            significance_level: Alpha level for the stationarity test
        """
        self.target_sample_size = target_sample_size
        self.min_sample_size = min_sample_size
        self.alpha = significance_level

    def score(self, series: Sequence[DataPoint]) -> float:
        """
        Quality score in [0, 1].

        Volume and spacing regularity are blended, then scaled by a variance
        factor that is 0 when every value is identical.
        """
        components = self._calculate_components(series)
        return self._combine(components)

    def assess(self, series: Sequence[DataPoint]) -> DataQualityReport:
        """
        Full quality report for a series.

        Args:
            series: Chronologically ordered data points

        Returns:
            DataQualityReport
        """
        warnings: List[str] = []
        critical_issues: List[str] = []
        assumptions: Dict[str, bool] = {}

        components = self._calculate_components(series)
        score = self._combine(components)

        # Sample size check
        n = len(series)
        sample_adequate = n >= self.min_sample_size
        if not sample_adequate:
            critical_issues.append(
                f"Sample size too small: {n} observations (need {self.min_sample_size})"
            )

        values = np.array([point.y for point in series], dtype=float)

        # Variance check
        has_variance = n >= 2 and float(np.std(values)) > 0
        assumptions['has_variance'] = has_variance
        if n >= 2 and not has_variance:
            critical_issues.append("Values have zero variance - no dynamics can be inferred")

        if n >= 2 and components['regularity'] < 0.8:
            warnings.append(
                f"Irregular spacing between observations (regularity {components['regularity']:.2f})"
            )

        outlier_share = 1.0 - components['variance'] if has_variance else 0.0
        assumptions['low_outlier_rate'] = outlier_share <= 0.1
        if outlier_share > 0.1:
            warnings.append(f"High outlier rate: {outlier_share:.1%}")

        # Stationarity test (Augmented Dickey-Fuller)
        if has_variance and n >= MIN_STATIONARITY_POINTS:
            from statsmodels.tsa.stattools import adfuller
            try:
                is_stationary = bool(adfuller(values)[1] < self.alpha)
                assumptions['stationarity'] = is_stationary
                if not is_stationary:
                    warnings.append("Series is non-stationary (trending)")
            except (ValueError, np.linalg.LinAlgError) as e:
                warnings.append(f"Could not test stationarity: {e}")
        else:
            warnings.append("Not enough data to test stationarity")

        return DataQualityReport(
            is_valid=len(critical_issues) == 0,
            quality_level=self._score_to_level(score),
            score=score,
            sample_size=n,
            min_required_sample=self.min_sample_size,
            sample_size_adequate=sample_adequate,
            components=components,
            assumptions_tested=assumptions,
            warnings=warnings,
            critical_issues=critical_issues
        )

    def _calculate_components(self, series: Sequence[DataPoint]) -> Dict[str, float]:
        n = len(series)
        if n < 2:
            return {'volume': 0.0, 'regularity': 0.0, 'variance': 0.0}

        ensure_chronological(series)

        return {
            'volume': min(n / self.target_sample_size, 1.0),
            'regularity': self._regularity(series),
            'variance': self._variance_factor(series)
        }

    def _combine(self, components: Dict[str, float]) -> float:
        blended = (
            VOLUME_WEIGHT * components['volume']
            + REGULARITY_WEIGHT * components['regularity']
        )
        return min(1.0, max(0.0, blended * components['variance']))

    def _regularity(self, series: Sequence[DataPoint]) -> float:
        """Regularity of x spacing, and of date spacing when every point is dated."""
        regularity = _gap_regularity(np.diff([point.x for point in series]))

        dates = [point.date for point in series]
        if all(date is not None for date in dates):
            offsets = [(date - dates[0]).total_seconds() for date in dates]
            regularity = min(regularity, _gap_regularity(np.diff(offsets)))

        return regularity

    def _variance_factor(self, series: Sequence[DataPoint]) -> float:
        """0 for identical values, otherwise the share of non-outliers."""
        values = np.array([point.y for point in series], dtype=float)
        std_dev = float(np.std(values))
        if std_dev == 0:
            return 0.0

        outliers = int(np.sum(np.abs(values - values.mean()) > OUTLIER_Z * std_dev))
        return 1.0 - outliers / len(values)

    def _score_to_level(self, score: float) -> QualityLevel:
        """Convert numeric score to quality level."""
        if score >= 0.9:
            return QualityLevel.VERY_HIGH
        elif score >= 0.7:
            return QualityLevel.HIGH
        elif score >= 0.5:
            return QualityLevel.MEDIUM
        elif score >= 0.3:
            return QualityLevel.LOW
        else:
            return QualityLevel.VERY_LOW


def _gap_regularity(gaps: np.ndarray) -> float:
    """1 minus the coefficient of variation of the gaps, floored at 0."""
    if len(gaps) < 2:
        return 1.0
    mean_gap = float(np.mean(gaps))
    if mean_gap <= 0:
        return 0.0
    cv = float(np.std(gaps)) / mean_gap
    return 1.0 - min(cv, 1.0)
