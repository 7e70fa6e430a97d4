"""
Observability module for ruleschema.

Provides:
- Structured logging with JSON format
- Prometheus metrics for compilation and validation

Usage:
    from ruleschema.core.observability import (
        configure_structured_logging,
        get_logger,
        metrics,
    )
"""

import json
import logging
from datetime import UTC, datetime

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest

logger = logging.getLogger(__name__)

# ============================================================================
# Structured Logging Configuration
# ============================================================================

# LogRecord attributes that are not user-supplied `extra` fields
_RESERVED_RECORD_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
    }
)


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs logs as JSON with standard fields:
    - timestamp: ISO 8601 format
    - level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - logger: Logger name
    - message: Log message
    - exception: Type and message when exc_info is set
    - extra: Any additional context from logging.extra
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON.

        Args:
            record: Python logging LogRecord

        Returns:
            JSON-formatted log string
        """
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
            }

        # These come from logger.debug("msg", extra={"key": "value"})
        extra_keys = {
            k: v for k, v in record.__dict__.items() if k not in _RESERVED_RECORD_KEYS
        }
        if extra_keys:
            log_entry["extra"] = extra_keys

        return json.dumps(log_entry, default=str)


def configure_structured_logging(level: str | None = None, structured: bool | None = None) -> None:
    """
    Configure the `ruleschema` logger.

    Args:
        level: Log level name; defaults to `settings.log_level`
        structured: Emit JSON lines; defaults to `settings.structured_logs`
    """
    from ruleschema.core.config import settings

    package_logger = logging.getLogger("ruleschema")
    package_logger.handlers.clear()
    package_logger.setLevel(
        getattr(logging, (level or settings.log_level).upper(), logging.WARNING)
    )

    handler = logging.StreamHandler()
    if structured if structured is not None else settings.structured_logs:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))

    package_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ruleschema hierarchy.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


# ============================================================================
# Prometheus Metrics
# ============================================================================

# Use a custom registry to avoid conflicts with the host application's metrics
_registry = CollectorRegistry()


class Metrics:
    """
    Centralized metrics collection for the library.

    Metrics groups:
    - Compiler: Compilation count, duration, shape size
    - Validation: Validation outcomes
    """

    def __init__(self, registry: CollectorRegistry) -> None:
        """Initialize all metrics with proper labels."""
        self.registry = registry

        # -------------------------------------------------------------------
        # Compiler Metrics
        # -------------------------------------------------------------------

        self.compilations_total = Counter(
            "ruleschema_compilations_total",
            "Total rule list compilations",
            ["status", "kind"],
            registry=self.registry,
        )

        self.compile_duration_seconds = Histogram(
            "ruleschema_compile_duration_seconds",
            "Rule list compilation duration in seconds",
            ["kind"],
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0),
            registry=self.registry,
        )

        self.shape_fields = Histogram(
            "ruleschema_shape_fields",
            "Number of fields in compiled object shapes",
            buckets=(1, 2, 5, 10, 25, 50, 100, 250),
            registry=self.registry,
        )

        # -------------------------------------------------------------------
        # Validation Metrics
        # -------------------------------------------------------------------

        self.validations_total = Counter(
            "ruleschema_validations_total",
            "Total root-level validations",
            ["status"],
            registry=self.registry,
        )


# Global metrics instance
metrics = Metrics(_registry)


def _metrics_enabled() -> bool:
    from ruleschema.core.config import settings

    return settings.metrics_enabled


def record_compilation(status: str, kind: str, duration: float) -> None:
    """
    Record one compilation outcome.

    Metrics failures are logged and ignored so they never break compilation.

    Args:
        status: "success" or "error"
        kind: Kind name of the compiled rule list ("unknown" if unresolved)
        duration: Compilation duration in seconds
    """
    if not _metrics_enabled():
        return
    try:
        metrics.compilations_total.labels(status=status, kind=kind).inc()
        metrics.compile_duration_seconds.labels(kind=kind).observe(duration)
    except Exception:
        logger.debug("Failed to record compilation metrics", exc_info=True)


def record_shape(field_count: int) -> None:
    """Record the size of a compiled shape."""
    if not _metrics_enabled():
        return
    try:
        metrics.shape_fields.observe(field_count)
    except Exception:
        logger.debug("Failed to record shape metrics", exc_info=True)


def record_validation(status: str) -> None:
    """Record a root-level validation outcome ("valid" or "invalid")."""
    if not _metrics_enabled():
        return
    try:
        metrics.validations_total.labels(status=status).inc()
    except Exception:
        logger.debug("Failed to record validation metrics", exc_info=True)


def generate_metrics() -> bytes:
    """
    Render all ruleschema metrics.

    Returns:
        Metrics in Prometheus text exposition format
    """
    return generate_latest(_registry)
