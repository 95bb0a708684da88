"""Environment variable validation and settings for the content guard."""

import logging
import os
from dataclasses import dataclass
from typing import Dict

logger = logging.getLogger(__name__)

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigurationError(Exception):
    """Raised when environment variables carry invalid values."""
    pass


def get_env_bool(name: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on", "enabled"}


def get_env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


def get_env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None


@dataclass(frozen=True)
class Settings:
    """Tunables for caching, batching, retries and resource ranking."""

    cache_max_age_seconds: float = 5 * 60
    history_max_length: int = 50
    batch_size: int = 5
    retry_max_attempts: int = 3
    retry_delay_seconds: float = 1.0
    resource_limit: int = 5
    log_level: str = "INFO"
    json_event_logs: bool = True


def load_settings() -> Settings:
    """Read settings from the environment, falling back to the defaults."""
    defaults = Settings()
    return Settings(
        cache_max_age_seconds=get_env_float("CACHE_MAX_AGE_SECONDS", defaults.cache_max_age_seconds),
        history_max_length=get_env_int("HISTORY_MAX_LENGTH", defaults.history_max_length),
        batch_size=get_env_int("BATCH_SIZE", defaults.batch_size),
        retry_max_attempts=get_env_int("RETRY_MAX_ATTEMPTS", defaults.retry_max_attempts),
        retry_delay_seconds=get_env_float("RETRY_DELAY_SECONDS", defaults.retry_delay_seconds),
        resource_limit=get_env_int("RESOURCE_LIMIT", defaults.resource_limit),
        log_level=(os.getenv("LOG_LEVEL") or defaults.log_level).upper(),
        json_event_logs=get_env_bool("JSON_EVENT_LOGS", defaults.json_event_logs),
    )


def validate_environment() -> Settings:
    """Validate the environment and return the effective settings.

    Raises ConfigurationError if a value is out of range.
    """
    settings = load_settings()

    positive = {
        "CACHE_MAX_AGE_SECONDS": settings.cache_max_age_seconds,
        "HISTORY_MAX_LENGTH": settings.history_max_length,
        "BATCH_SIZE": settings.batch_size,
        "RESOURCE_LIMIT": settings.resource_limit,
    }
    invalid = [name for name, value in positive.items() if value <= 0]
    if invalid:
        raise ConfigurationError(
            f"Environment variables must be positive: {', '.join(invalid)}"
        )

    if settings.retry_max_attempts < 0:
        raise ConfigurationError("RETRY_MAX_ATTEMPTS must not be negative")
    if settings.retry_delay_seconds < 0:
        raise ConfigurationError("RETRY_DELAY_SECONDS must not be negative")
    if settings.log_level not in _LOG_LEVELS:
        raise ConfigurationError(f"Invalid LOG_LEVEL: {settings.log_level}")

    optional_vars: Dict[str, str] = {
        "CACHE_MAX_AGE_SECONDS": "Lifetime of cached AI responses",
        "BATCH_SIZE": "Concurrent calls per batch",
        "RETRY_MAX_ATTEMPTS": "Retries for retryable upstream failures",
    }
    for var, description in optional_vars.items():
        if not os.getenv(var):
            logger.info("Environment variable %s not set (%s); using default", var, description)

    return settings


def configure_logging(settings: Settings | None = None) -> None:
    """Apply the configured level to the root logger."""
    settings = settings or load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
