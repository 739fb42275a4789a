"""
Valuation Analytics

Statistical analytics over business metric series (valuation, health score,
cumulative value impact). Results are computed with fixed numerical code;
interpretation and presentation belong to the caller.

Modules:
- trend: Least squares trend with direction, strength and significance
- confidence: Intervals around point estimates
- seasonality: Periodic pattern detection
- cross_validation: Walk-forward backtesting of the trend model
- forecasting: Trend forecasts with widening confidence bounds
- monte_carlo: Empirical distributions from a sampler
- data_quality: Suitability scoring for a series
- cache: Time-bucketed result cache
- service: Analytics bundles for a subject's business records
"""

from .base_models import (
    DataPoint,
    TrendDirection,
    TrendResult,
    ConfidenceInterval,
    SeasonalPattern,
    ForecastPoint,
    HistoricalPrediction,
    CrossValidationResult,
    DistributionBin,
    SimulationStatistics,
    MonteCarloResult,
    QualityLevel,
    DataQualityReport,
    BusinessEvaluation,
    ValueImpact,
    series_from_values,
    ensure_chronological
)

from .exceptions import (
    AnalyticsError,
    InsufficientDataError,
    DegenerateInputError,
    InvalidParameterError
)

from .trend import TrendAnalyzer
from .confidence import ConfidenceEstimator
from .seasonality import SeasonalityDetector
from .cross_validation import CrossValidator
from .forecasting import ForecastEngine
from .monte_carlo import MonteCarloSimulator, normal_sampler, uniform_sampler
from .data_quality import DataQualityScorer
from .cache import AnalyticsCache
from .smoothing import moving_average, exponential_moving_average
from .service import AnalyticsService
from .config import Settings, get_settings, configure_logging

__all__ = [
    # Models
    'DataPoint',
    'TrendDirection',
    'TrendResult',
    'ConfidenceInterval',
    'SeasonalPattern',
    'ForecastPoint',
    'HistoricalPrediction',
    'CrossValidationResult',
    'DistributionBin',
    'SimulationStatistics',
    'MonteCarloResult',
    'QualityLevel',
    'DataQualityReport',
    'BusinessEvaluation',
    'ValueImpact',
    'series_from_values',
    'ensure_chronological',

    # Errors
    'AnalyticsError',
    'InsufficientDataError',
    'DegenerateInputError',
    'InvalidParameterError',

    # Components
    'TrendAnalyzer',
    'ConfidenceEstimator',
    'SeasonalityDetector',
    'CrossValidator',
    'ForecastEngine',
    'MonteCarloSimulator',
    'normal_sampler',
    'uniform_sampler',
    'DataQualityScorer',
    'AnalyticsCache',
    'moving_average',
    'exponential_moving_average',
    'AnalyticsService',

    # Configuration
    'Settings',
    'get_settings',
    'configure_logging'
]
