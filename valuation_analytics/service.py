"""Analytics bundles for a subject's business records."""

import logging
from datetime import datetime
from numbers import Number
from typing import Callable, List, Optional, Sequence

from .base_models import (
    AdvancedAnalytics,
    BusinessEvaluation,
    DashboardData,
    DashboardSummary,
    DataPoint,
    ForecastPoint,
    MetricSummary,
    ModelPerformance,
    SeasonalPattern,
    TrendAnalysisResult,
    ValueImpact,
    ConfidenceInterval
)
from .cache import AnalyticsCache
from .config import Settings, get_settings
from .confidence import ConfidenceEstimator
from .cross_validation import CrossValidator
from .data_quality import DataQualityScorer
from .exceptions import InsufficientDataError
from .forecasting import ForecastEngine, growth_rate
from .seasonality import SeasonalityDetector, MIN_SEASONAL_POINTS
from .smoothing import moving_average
from .trend import TrendAnalyzer, MIN_TREND_POINTS

logger = logging.getLogger(__name__)

MIN_EVALUATIONS = 3

# Points needed before a dashboard reports the data as sufficient
SUFFICIENT_DATA_POINTS = 6

# Checked in order; the first non-zero figure is the evaluation's valuation
VALUATION_KEYS = ('totalValuation', 'businessValue', 'estimatedValue', 'fairMarketValue')

VALUATION_METRIC = 'Business Valuation'
HEALTH_SCORE_METRIC = 'Business Health Score'
VALUE_IMPACT_METRIC = 'Cumulative Value Impact'


class AnalyticsService:
    """
    Composes the analytics components over valuation, health score and
    value impact series.

    Records come from the caller's data layer; nothing is loaded or stored
    here apart from the injected result cache.
    """

    def __init__(
        self,
        cache: Optional[AnalyticsCache] = None,
        settings: Optional[Settings] = None,
        analyzer: Optional[TrendAnalyzer] = None,
        now: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize service.

        Args:
            cache: Result cache; a fresh one is created when omitted
            settings: Runtime defaults
            analyzer: Trend model shared by every component
            now: Clock used for generated_at / last_updated stamps
        """
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else AnalyticsCache(
            ttl_seconds=self.settings.cache_ttl_seconds
        )
        self.analyzer = analyzer or TrendAnalyzer()
        self.validator = CrossValidator(self.analyzer)
        self.forecaster = ForecastEngine(
            confidence_level=self.settings.default_confidence_level,
            analyzer=self.analyzer,
            estimator=ConfidenceEstimator(),
            validator=self.validator,
            non_negative=True,
            include_accuracy=True
        )
        self.seasonality_detector = SeasonalityDetector(analyzer=self.analyzer)
        self.quality_scorer = DataQualityScorer()
        self._now = now

    # ------------------------------------------------------------------
    # Series extraction
    # ------------------------------------------------------------------

    def valuation_series(self, evaluations: Sequence[BusinessEvaluation]) -> List[DataPoint]:
        """Valuation per evaluation; evaluations without a valuation are skipped."""
        series = []
        for evaluation in _chronological(evaluations, 'created_at'):
            valuation = extract_valuation(evaluation)
            if valuation is None:
                logger.warning(
                    "Skipping evaluation from %s: no valuation figure", evaluation.created_at
                )
                continue
            series.append(DataPoint(x=len(series), y=valuation, date=evaluation.created_at))
        return series

    def health_score_series(self, evaluations: Sequence[BusinessEvaluation]) -> List[DataPoint]:
        scored = [
            evaluation for evaluation in _chronological(evaluations, 'created_at')
            if evaluation.health_score is not None
        ]
        return [
            DataPoint(x=i, y=evaluation.health_score, date=evaluation.created_at)
            for i, evaluation in enumerate(scored)
        ]

    def value_impact_series(self, impacts: Sequence[ValueImpact]) -> List[DataPoint]:
        """Running total of valuation increases."""
        series = []
        cumulative = 0.0
        for i, impact in enumerate(_chronological(impacts, 'calculated_at')):
            cumulative += impact.valuation_increase
            series.append(DataPoint(x=i, y=cumulative, date=impact.calculated_at))
        return series

    # ------------------------------------------------------------------
    # Metrics and trends
    # ------------------------------------------------------------------

    def build_metric(self, name: str, series: Sequence[DataPoint]) -> MetricSummary:
        """Latest value, last change and fitted trend of a metric."""
        trend = self.analyzer.fit(series)
        current = series[-1].y
        previous = series[-2].y if len(series) > 1 else current
        change_percentage = growth_rate(previous, current) if previous > 0 else 0.0

        return MetricSummary(
            name=name,
            values=list(series),
            current_value=current,
            change=current - previous,
            change_percentage=change_percentage,
            trend=trend,
            moving_average=moving_average(
                [point.y for point in series], self.settings.moving_average_period
            )
        )

    def analyze_trend(self, metric: MetricSummary) -> TrendAnalysisResult:
        trend = metric.trend
        first_x = metric.values[0].x
        last_x = metric.values[-1].x

        return TrendAnalysisResult(
            metric=metric.name,
            direction=trend.direction,
            strength=trend.strength,
            confidence_score=trend.confidence,
            statistical_significance=trend.statistical_significance,
            projected_change=trend.slope * self.settings.projection_steps,
            trend_line=[
                DataPoint(x=first_x, y=trend.predict(first_x)),
                DataPoint(x=last_x, y=trend.predict(last_x))
            ]
        )

    def predictions(
        self,
        series: Sequence[DataPoint],
        horizon: Optional[int] = None
    ) -> List[ForecastPoint]:
        """Forecast with the configured confidence level and backtested accuracy."""
        return self.forecaster.forecast(series, horizon or self.settings.forecast_horizon)

    def seasonality(self, series: Sequence[DataPoint]) -> List[SeasonalPattern]:
        pattern = self.seasonality_detector.detect(series)
        return [pattern] if pattern else []

    def model_performance(self, series: Sequence[DataPoint]) -> ModelPerformance:
        result = self.validator.validate(series)
        return ModelPerformance(
            accuracy=result.accuracy,
            mean_absolute_error=result.mae,
            root_mean_square_error=result.rmse,
            historical_predictions=result.historical_predictions,
            last_updated=self._now()
        )

    # ------------------------------------------------------------------
    # Bundles
    # ------------------------------------------------------------------

    def advanced_trends(
        self,
        subject_id: str,
        evaluations: Sequence[BusinessEvaluation],
        impacts: Sequence[ValueImpact] = (),
        horizon: Optional[int] = None
    ) -> AdvancedAnalytics:
        """
        Metrics, trends, forecasts, seasonality and data quality for a subject.

        Raises:
            InsufficientDataError: fewer than 3 evaluations
        """
        horizon = horizon or self.settings.forecast_horizon
        key = self.cache.make_key(subject_id, {
            'bundle': 'advanced_trends',
            'horizon': horizon,
            'evaluations': len(evaluations),
            'impacts': len(impacts)
        })
        return self.cache.get_or_compute(
            key, lambda: self._compute_advanced_trends(subject_id, evaluations, impacts, horizon)
        )

    def dashboard(
        self,
        subject_id: str,
        evaluations: Sequence[BusinessEvaluation],
        impacts: Sequence[ValueImpact] = ()
    ) -> DashboardData:
        """Everything the analytics dashboard shows for a subject."""
        key = self.cache.make_key(subject_id, {
            'bundle': 'dashboard',
            'evaluations': len(evaluations),
            'impacts': len(impacts)
        })
        return self.cache.get_or_compute(
            key, lambda: self._compute_dashboard(subject_id, evaluations, impacts)
        )

    def _compute_advanced_trends(
        self,
        subject_id: str,
        evaluations: Sequence[BusinessEvaluation],
        impacts: Sequence[ValueImpact],
        horizon: int
    ) -> AdvancedAnalytics:
        if len(evaluations) < MIN_EVALUATIONS:
            raise InsufficientDataError(
                f"Minimum {MIN_EVALUATIONS} evaluations required for trend analysis "
                f"(got {len(evaluations)})",
                required=MIN_EVALUATIONS,
                actual=len(evaluations)
            )

        ordered = _chronological(evaluations, 'created_at')
        valuation_data = self.valuation_series(ordered)

        metrics = self._build_metrics([
            (VALUATION_METRIC, valuation_data),
            (HEALTH_SCORE_METRIC, self.health_score_series(ordered)),
            (VALUE_IMPACT_METRIC, self.value_impact_series(impacts))
        ])

        predictions = self.predictions(valuation_data, horizon)

        seasonality = []
        for metric in metrics:
            if len(metric.values) >= MIN_SEASONAL_POINTS:
                seasonality.extend(self.seasonality(metric.values))

        quality_scores = [self.quality_scorer.score(metric.values) for metric in metrics]
        data_quality = sum(quality_scores) / len(quality_scores) if quality_scores else 0.0

        logger.info(
            "Advanced trends for %s: %d metrics, %d predictions, quality %.2f",
            subject_id, len(metrics), len(predictions), data_quality
        )

        return AdvancedAnalytics(
            subject_id=subject_id,
            start=ordered[0].created_at,
            end=ordered[-1].created_at,
            metrics=metrics,
            trends=[self.analyze_trend(metric) for metric in metrics],
            predictions=predictions,
            confidence_intervals=[
                ConfidenceInterval(
                    lower=point.lower,
                    upper=point.upper,
                    level=point.confidence_level
                )
                for point in predictions
            ],
            seasonality=seasonality,
            data_quality_score=data_quality,
            generated_at=self._now()
        )

    def _compute_dashboard(
        self,
        subject_id: str,
        evaluations: Sequence[BusinessEvaluation],
        impacts: Sequence[ValueImpact]
    ) -> DashboardData:
        advanced = self.advanced_trends(subject_id, evaluations, impacts)
        valuation_metric = next(
            (metric for metric in advanced.metrics if metric.name == VALUATION_METRIC), None
        )
        valuation_data = valuation_metric.values if valuation_metric else []
        performance = self.model_performance(valuation_data)
        total = len(valuation_data)

        return DashboardData(
            advanced_trends=advanced,
            predictions=advanced.predictions,
            seasonality=self.seasonality(valuation_data),
            model_performance=performance,
            summary=DashboardSummary(
                total_evaluations=total,
                data_quality=advanced.data_quality_score,
                prediction_accuracy=performance.accuracy,
                has_sufficient_data=total >= SUFFICIENT_DATA_POINTS
            )
        )

    def _build_metrics(self, named_series) -> List[MetricSummary]:
        metrics = []
        for name, series in named_series:
            if len(series) < MIN_TREND_POINTS:
                logger.debug("Skipping metric %s: %d points", name, len(series))
                continue
            metrics.append(self.build_metric(name, series))
        return metrics


def extract_valuation(evaluation: BusinessEvaluation) -> Optional[float]:
    """First non-zero valuation figure of an evaluation, or None."""
    for key in VALUATION_KEYS:
        value = evaluation.valuations.get(key)
        if isinstance(value, Number) and not isinstance(value, bool) and value:
            return float(value)
    return None


def _chronological(records: Sequence, attribute: str) -> list:
    return sorted(records, key=lambda record: getattr(record, attribute))
