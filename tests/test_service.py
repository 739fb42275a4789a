from datetime import datetime

import pytest

from valuation_analytics import (
    AnalyticsCache,
    AnalyticsService,
    BusinessEvaluation,
    InsufficientDataError,
    Settings,
    TrendDirection,
    ValueImpact,
)
from valuation_analytics.service import extract_valuation

FIXED_NOW = datetime(2025, 1, 15, 12, 0)


def make_evaluations(n=8):
    return [
        BusinessEvaluation(
            created_at=datetime(2024, month, 1),
            valuations={'totalValuation': 500_000 + 25_000 * month + (3_000 if month % 2 else 0)},
            health_score=60 + 2 * month
        )
        for month in range(1, n + 1)
    ]


def make_impacts():
    return [
        ValueImpact(calculated_at=datetime(2024, month, 15), valuation_increase=1_000 * month)
        for month in range(1, 6)
    ]


@pytest.fixture
def service(clock):
    settings = Settings(cache_ttl_seconds=60)
    return AnalyticsService(
        cache=AnalyticsCache(ttl_seconds=settings.cache_ttl_seconds, clock=clock),
        settings=settings,
        now=lambda: FIXED_NOW
    )


def test_extract_valuation_takes_first_non_zero_key():
    evaluation = BusinessEvaluation(
        created_at=datetime(2024, 1, 1),
        valuations={'totalValuation': 0, 'businessValue': 420_000, 'estimatedValue': 1}
    )

    assert extract_valuation(evaluation) == 420_000
    assert extract_valuation(BusinessEvaluation(created_at=datetime(2024, 1, 1))) is None


def test_extract_valuation_all_zero_is_missing():
    evaluation = BusinessEvaluation(
        created_at=datetime(2024, 1, 1),
        valuations={'totalValuation': 0, 'fairMarketValue': 0.0}
    )

    assert extract_valuation(evaluation) is None


def test_valuation_series_skips_missing_and_reindexes(service):
    evaluations = make_evaluations(4)
    evaluations.insert(2, BusinessEvaluation(created_at=datetime(2024, 2, 15), valuations={}))

    series = service.valuation_series(evaluations)

    assert [point.x for point in series] == [0, 1, 2, 3]
    assert all(point.date.day == 1 for point in series)


def test_series_are_sorted_chronologically(service):
    series = service.health_score_series(list(reversed(make_evaluations(5))))

    assert [point.y for point in series] == [62, 64, 66, 68, 70]


def test_value_impact_series_is_cumulative(service):
    series = service.value_impact_series(make_impacts())

    assert [point.y for point in series] == [1_000, 3_000, 6_000, 10_000, 15_000]


def test_build_metric(service):
    series = service.health_score_series(make_evaluations(5))
    metric = service.build_metric('Business Health Score', series)

    assert metric.current_value == 70
    assert metric.change == 2
    assert metric.change_percentage == pytest.approx(2 / 68 * 100)
    assert metric.trend.direction == TrendDirection.INCREASING
    assert metric.moving_average[-1] == pytest.approx(68)


def test_analyze_trend(service):
    metric = service.build_metric('Business Health Score', service.health_score_series(make_evaluations(5)))
    result = service.analyze_trend(metric)

    assert result.metric == 'Business Health Score'
    assert result.projected_change == pytest.approx(2 * 30)
    assert [point.y for point in result.trend_line] == pytest.approx([62, 70])


def test_advanced_trends(service):
    analytics = service.advanced_trends('subject-1', make_evaluations(), make_impacts())

    assert [metric.name for metric in analytics.metrics] == [
        'Business Valuation', 'Business Health Score', 'Cumulative Value Impact'
    ]
    assert all(trend.direction == TrendDirection.INCREASING for trend in analytics.trends)
    assert len(analytics.predictions) == 6
    assert analytics.predictions[0].date == datetime(2024, 9, 1)
    assert all(point.model_accuracy is not None for point in analytics.predictions)
    assert len(analytics.confidence_intervals) == 6
    assert analytics.confidence_intervals[0].lower == analytics.predictions[0].lower
    assert 0 <= analytics.data_quality_score <= 1
    assert analytics.start == datetime(2024, 1, 1)
    assert analytics.end == datetime(2024, 8, 1)
    assert analytics.generated_at == FIXED_NOW
    assert analytics.seasonality == []


def test_advanced_trends_requires_three_evaluations(service):
    with pytest.raises(InsufficientDataError):
        service.advanced_trends('subject-1', make_evaluations(2))


def test_advanced_trends_is_cached(service, clock):
    evaluations = make_evaluations()

    first = service.advanced_trends('subject-1', evaluations)
    assert service.advanced_trends('subject-1', evaluations) is first
    assert service.advanced_trends('subject-2', evaluations) is not first

    clock.advance(61)
    assert service.advanced_trends('subject-1', evaluations) is not first


def test_dashboard(service):
    dashboard = service.dashboard('subject-1', make_evaluations(), make_impacts())

    assert dashboard.summary.total_evaluations == 8
    assert dashboard.summary.has_sufficient_data
    assert 0 <= dashboard.summary.prediction_accuracy <= 1
    assert dashboard.summary.data_quality == dashboard.advanced_trends.data_quality_score
    assert dashboard.predictions == dashboard.advanced_trends.predictions
    assert len(dashboard.model_performance.historical_predictions) == 5
    assert dashboard.model_performance.last_updated == FIXED_NOW
    assert dashboard.seasonality == []


def test_dashboard_with_little_history(service):
    dashboard = service.dashboard('subject-1', make_evaluations(4))

    assert not dashboard.summary.has_sufficient_data
    assert len(dashboard.model_performance.historical_predictions) == 1


def test_dashboard_is_cached(service):
    evaluations = make_evaluations()

    assert service.dashboard('subject-1', evaluations) is service.dashboard('subject-1', evaluations)


def test_errors_propagate_and_are_not_cached(service):
    with pytest.raises(InsufficientDataError):
        service.dashboard('subject-1', make_evaluations(1))

    assert len(service.cache) == 0
