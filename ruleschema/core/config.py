"""Library configuration using Pydantic Settings.

Configuration is loaded from environment variables prefixed with
`RULESCHEMA_`. Every setting has a default, so importing the library never
requires any environment to be present.
"""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class Settings(BaseSettings):
    """
    Library settings with type validation.

    Attributes:
        log_level: Level applied by `configure_structured_logging`
        structured_logs: Emit JSON log lines instead of plain text
        metrics_enabled: Record Prometheus metrics for compile/validate
        lazy_cache_enabled: Memoise rule lists returned by lazy builders
        lazy_cache_size: Compiled rule lists kept per lazy builder; the least
                         recently used entry is evicted first
        default_abort_early: Default for the `abort_early` validate option
    """

    model_config = SettingsConfigDict(env_prefix="RULESCHEMA_", extra="ignore")

    # Logging
    log_level: str = "WARNING"
    structured_logs: bool = False

    # Metrics
    metrics_enabled: bool = True

    # Compiler
    lazy_cache_enabled: bool = True
    lazy_cache_size: int = Field(default=128, ge=1)

    # Validation
    default_abort_early: bool = True

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | int) -> str:
        """Normalise log_level to an upper-case stdlib level name."""
        if isinstance(v, int):
            return logging.getLevelName(v)
        level = str(v).strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {list(_LOG_LEVELS)}, got '{v}'")
        return level


def get_settings() -> Settings:
    """Build a fresh Settings instance from the current environment."""
    return Settings()


settings = Settings()
