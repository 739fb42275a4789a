import logging

import pytest
from pydantic import ValidationError

from valuation_analytics import AnalyticsService, Settings, configure_logging, get_settings


def test_defaults():
    settings = Settings()

    assert settings.cache_ttl_seconds == 900
    assert settings.default_confidence_level == 0.95
    assert settings.forecast_horizon == 6
    assert settings.monte_carlo_iterations == 10000


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ANALYTICS_FORECAST_HORIZON", "9")
    monkeypatch.setenv("ANALYTICS_CACHE_TTL_SECONDS", "120")

    settings = Settings()

    assert settings.forecast_horizon == 9
    assert settings.cache_ttl_seconds == 120


def test_invalid_confidence_level_rejected():
    with pytest.raises(ValidationError):
        Settings(default_confidence_level=1.5)


def test_get_settings_is_cached():
    get_settings.cache_clear()

    assert get_settings() is get_settings()


def test_service_uses_settings_for_cache_ttl():
    service = AnalyticsService(settings=Settings(cache_ttl_seconds=42))

    assert service.cache.ttl_seconds == 42
    assert service.forecaster.confidence_level == 0.95


def test_configure_logging():
    configure_logging("debug")

    assert logging.getLogger("valuation_analytics").level == logging.DEBUG
    configure_logging("WARNING")
    assert logging.getLogger("valuation_analytics").level == logging.WARNING
