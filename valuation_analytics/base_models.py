"""Base models for the analytics engine."""

from typing import Dict, Any, Optional, List, Sequence, Iterable
from pydantic import BaseModel, ConfigDict, Field, model_validator
from enum import Enum
from datetime import datetime

from .exceptions import DegenerateInputError


class TrendDirection(str, Enum):
    """Direction of a fitted trend."""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class QualityLevel(str, Enum):
    """Qualitative bucket for a data quality score."""
    VERY_LOW = "VERY_LOW"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


class DataPoint(BaseModel):
    """One observation of a metric series."""

    model_config = ConfigDict(frozen=True)

    x: float = Field(allow_inf_nan=False, description="Ordinal index")
    y: float = Field(allow_inf_nan=False, description="Observed value")
    date: Optional[datetime] = None


def series_from_values(
    values: Iterable[float],
    dates: Optional[Sequence[datetime]] = None
) -> List[DataPoint]:
    """
    Build a series with x = 0..n-1.

    Args:
        values: Observed values in chronological order
        dates: Optional dates, one per value

    Returns:
        List of DataPoint
    """
    values = list(values)
    if dates is not None and len(dates) != len(values):
        raise DegenerateInputError(
            f"Got {len(dates)} dates for {len(values)} values"
        )

    return [
        DataPoint(x=i, y=value, date=dates[i] if dates is not None else None)
        for i, value in enumerate(values)
    ]


def ensure_chronological(series: Sequence[DataPoint]) -> None:
    """Raise DegenerateInputError unless x strictly increases and dates never go backwards."""
    last_date = None
    for previous, current in zip(series, series[1:]):
        if current.x <= previous.x:
            raise DegenerateInputError(
                f"x values must be strictly increasing (got {previous.x} then {current.x})"
            )

    for point in series:
        if point.date is None:
            continue
        if last_date is not None and point.date < last_date:
            raise DegenerateInputError(
                f"Dates must be non-decreasing (got {last_date} then {point.date})"
            )
        last_date = point.date


class TrendResult(BaseModel):
    """Line fitted over a series."""

    model_config = ConfigDict(frozen=True)

    slope: float
    intercept: float
    r_squared: float = Field(ge=0, le=1)
    direction: TrendDirection
    strength: float = Field(ge=0, le=1)
    confidence: float = Field(ge=0, le=100)
    statistical_significance: float = Field(ge=0, le=1)
    sample_size: int

    def predict(self, x: float) -> float:
        """Evaluate the fitted line at x."""
        return self.slope * x + self.intercept


class ConfidenceInterval(BaseModel):
    """Value range expected to hold the true quantity at `level`."""

    model_config = ConfigDict(frozen=True)

    lower: float
    upper: float
    level: float = Field(gt=0, lt=1)

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.lower > self.upper:
            raise ValueError(f"lower ({self.lower}) exceeds upper ({self.upper})")
        return self

    @property
    def width(self) -> float:
        return self.upper - self.lower

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper


class SeasonalPattern(BaseModel):
    """Repeating pattern at a fixed period."""

    model_config = ConfigDict(frozen=True)

    period: int = Field(description="Cycle length in samples")
    amplitude: float = Field(ge=0, description="Peak-to-trough of the seasonal component")
    phase: float = Field(ge=0, lt=1, description="Peak position within the cycle")
    confidence: float = Field(ge=0, le=1)
    autocorrelation: float = Field(
        default=0.0,
        description="Lag-period autocorrelation of the detrended series"
    )


class ForecastPoint(BaseModel):
    """One projected future value with its bounds."""

    model_config = ConfigDict(frozen=True)

    step: int
    x: float
    date: Optional[datetime] = None
    predicted_value: float
    lower: float
    upper: float
    confidence_level: float = Field(gt=0, lt=1)
    model_accuracy: Optional[float] = Field(default=None, ge=0, le=1)


class HistoricalPrediction(BaseModel):
    """One walk-forward step of a backtest."""

    model_config = ConfigDict(frozen=True)

    predicted: float
    actual: float
    date: Optional[datetime] = None
    accuracy: float = Field(ge=0, le=1)


class CrossValidationResult(BaseModel):
    """Outcome of a walk-forward backtest."""

    model_config = ConfigDict(frozen=True)

    accuracy: float = Field(ge=0, le=1)
    mae: float = Field(ge=0)
    rmse: float = Field(ge=0)
    historical_predictions: List[HistoricalPrediction] = Field(default_factory=list)


class DistributionBin(BaseModel):
    """Histogram bin of a simulated distribution."""

    model_config = ConfigDict(frozen=True)

    value: float = Field(description="Bin midpoint")
    probability: float = Field(ge=0, le=1)


class SimulationStatistics(BaseModel):
    """Summary statistics of simulated samples."""

    model_config = ConfigDict(frozen=True)

    mean: float
    median: float
    standard_deviation: float
    variance: float
    minimum: float
    maximum: float
    percentiles: Dict[int, float]
    value_at_risk: float = Field(description="5th percentile of the samples")
    conditional_value_at_risk: float = Field(
        description="Mean of the samples at or below the value at risk"
    )


class MonteCarloResult(BaseModel):
    """Empirical distribution built from a sampler."""

    model_config = ConfigDict(frozen=True)

    iterations: int
    distribution: List[DistributionBin]
    statistics: SimulationStatistics
    confidence_intervals: List[ConfidenceInterval]


class DataQualityReport(BaseModel):
    """Report on a series' suitability for analysis."""

    # Overall assessment
    is_valid: bool = Field(description="Whether the series supports trend analysis")
    quality_level: QualityLevel
    score: float = Field(ge=0, le=1, description="Numeric quality (0-1)")

    # Sample size validation
    sample_size: int
    min_required_sample: int
    sample_size_adequate: bool

    # Score components (volume, regularity, variance)
    components: Dict[str, float] = Field(default_factory=dict)

    # Assumption tests (stationarity, outlier rate)
    assumptions_tested: Dict[str, bool] = Field(default_factory=dict)

    # Warnings and issues
    warnings: List[str] = Field(default_factory=list)
    critical_issues: List[str] = Field(default_factory=list)

    def get_summary(self) -> str:
        """Get human-readable summary of the report."""
        summary = f"{self.quality_level.value} quality ({self.score:.0%})"

        if self.critical_issues:
            summary += f"\nCritical issues: {len(self.critical_issues)}"
        if self.warnings:
            summary += f"\nWarnings: {len(self.warnings)}"

        return summary


# ---------------------------------------------------------------------------
# Business records and service results
# ---------------------------------------------------------------------------

class BusinessEvaluation(BaseModel):
    """A persisted business evaluation, as handed over by the data layer."""

    created_at: datetime
    valuations: Dict[str, Any] = Field(default_factory=dict)
    health_score: Optional[float] = None


class ValueImpact(BaseModel):
    """A recorded change in valuation attributed to an improvement."""

    calculated_at: datetime
    valuation_increase: float


class MetricSummary(BaseModel):
    """A named metric series with its latest movement and trend."""

    name: str
    values: List[DataPoint]
    current_value: float
    change: float
    change_percentage: float
    trend: TrendResult
    moving_average: List[float] = Field(default_factory=list)


class TrendAnalysisResult(BaseModel):
    """Trend of one metric, ready for display."""

    metric: str
    direction: TrendDirection
    strength: float
    confidence_score: float
    statistical_significance: float
    projected_change: float
    trend_line: List[DataPoint]


class ModelPerformance(BaseModel):
    """Backtested accuracy of the trend model."""

    accuracy: float
    mean_absolute_error: float
    root_mean_square_error: float
    historical_predictions: List[HistoricalPrediction]
    last_updated: datetime


class AdvancedAnalytics(BaseModel):
    """Full trend bundle for one subject."""

    subject_id: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    metrics: List[MetricSummary]
    trends: List[TrendAnalysisResult]
    predictions: List[ForecastPoint]
    confidence_intervals: List[ConfidenceInterval]
    seasonality: List[SeasonalPattern] = Field(default_factory=list)
    data_quality_score: float
    generated_at: datetime


class DashboardSummary(BaseModel):
    total_evaluations: int
    data_quality: float
    prediction_accuracy: float
    has_sufficient_data: bool


class DashboardData(BaseModel):
    """Everything an analytics dashboard needs for one subject."""

    advanced_trends: AdvancedAnalytics
    predictions: List[ForecastPoint]
    seasonality: List[SeasonalPattern]
    model_performance: ModelPerformance
    summary: DashboardSummary
