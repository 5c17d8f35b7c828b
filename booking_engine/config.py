"""
Centralized configuration with environment variable overrides.

Duration bounds, VAT, tie-break policy and calendar timeouts are
configurable here. Engine components read from the ``settings`` singleton
by default but every one of them accepts explicit values on construction.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

TIE_BREAK_POLICIES = ("most_recent", "lowest_price", "latest_expiry")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class DurationConfig:
    """Appointment duration bounds and unit conversion factors."""

    min_minutes: int = _safe_int("MIN_DURATION_MINUTES", "30")
    max_minutes: int = _safe_int("MAX_DURATION_MINUTES", "10080")
    working_day_minutes: int = _safe_int("WORKING_DAY_MINUTES", "480")
    default_value: float = _safe_float("DEFAULT_DURATION_VALUE", "0.5")


@dataclass(frozen=True)
class PricingConfig:
    """VAT and customer override settings."""

    vat_rate: float = _safe_float("VAT_RATE", "0.20")
    currency_symbol: str = os.getenv("CURRENCY_SYMBOL", "£")
    override_tie_break: str = os.getenv("OVERRIDE_TIE_BREAK", "most_recent")


@dataclass(frozen=True)
class CalendarConfig:
    """Availability check settings."""

    conflict_check_timeout_sec: float = _safe_float("CONFLICT_CHECK_TIMEOUT_SEC", "5.0")
    default_job_duration_minutes: int = _safe_int("DEFAULT_JOB_DURATION_MINUTES", "120")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    duration: DurationConfig = field(default_factory=DurationConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    business_name: str = os.getenv("BUSINESS_NAME", "Detail Dynamics")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.duration.min_minutes < 1:
        raise ValueError(
            f"MIN_DURATION_MINUTES must be >= 1, got {config.duration.min_minutes}"
        )
    if config.duration.max_minutes <= config.duration.min_minutes:
        raise ValueError(
            "MAX_DURATION_MINUTES must be greater than MIN_DURATION_MINUTES, "
            f"got {config.duration.max_minutes}"
        )
    if config.duration.working_day_minutes < 1:
        raise ValueError(
            f"WORKING_DAY_MINUTES must be >= 1, got {config.duration.working_day_minutes}"
        )
    if config.duration.default_value <= 0:
        raise ValueError(
            f"DEFAULT_DURATION_VALUE must be > 0, got {config.duration.default_value}"
        )
    if not 0.0 <= config.pricing.vat_rate < 1.0:
        raise ValueError(
            f"VAT_RATE must be between 0.0 and 1.0, got {config.pricing.vat_rate}"
        )
    if config.pricing.override_tie_break not in TIE_BREAK_POLICIES:
        raise ValueError(
            f"OVERRIDE_TIE_BREAK must be one of {list(TIE_BREAK_POLICIES)}, "
            f"got {config.pricing.override_tie_break!r}"
        )
    if config.calendar.conflict_check_timeout_sec <= 0:
        raise ValueError(
            "CONFLICT_CHECK_TIMEOUT_SEC must be > 0, "
            f"got {config.calendar.conflict_check_timeout_sec}"
        )
    if config.calendar.default_job_duration_minutes < 1:
        raise ValueError(
            "DEFAULT_JOB_DURATION_MINUTES must be >= 1, "
            f"got {config.calendar.default_job_duration_minutes}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.business_name)
    return config


# Singleton instance
settings = load_config()
