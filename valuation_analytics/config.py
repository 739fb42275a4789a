"""Runtime configuration management."""

import logging
from functools import lru_cache
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Analytics settings.

    Only runtime defaults live here. Minimum sample sizes are algorithm
    constants in their modules and are not configurable.
    """

    model_config = SettingsConfigDict(
        env_prefix="ANALYTICS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Result cache
    cache_ttl_seconds: int = Field(default=15 * 60, gt=0)

    # Forecasting
    default_confidence_level: float = Field(default=0.95, gt=0, lt=1)
    forecast_horizon: int = Field(default=6, ge=1)
    projection_steps: int = Field(default=30, ge=1)  # Steps used for projected change

    # Monte Carlo
    monte_carlo_iterations: int = Field(default=10000, ge=1)
    monte_carlo_bins: int = Field(default=50, ge=1)

    # Smoothing
    moving_average_period: int = Field(default=3, ge=1)

    # Logging
    log_level: str = "INFO"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the configured level to the package logger."""
    level = (level or get_settings().log_level).upper()
    logger = logging.getLogger("valuation_analytics")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        logger.addHandler(handler)
