"""
Unit tests for observability features.

Tests cover:
- Structured logging with JSON format
- Logger configuration from settings
- Prometheus metrics for compilation and validation
- Metric recording never breaking the caller
"""

import json
import logging

import pytest

from ruleschema import compile_rules
from ruleschema.core import observability
from ruleschema.core.observability import (
    StructuredFormatter,
    configure_structured_logging,
    generate_metrics,
    get_logger,
    metrics,
    record_compilation,
    record_shape,
    record_validation,
)


def _sample(name, **labels):
    return metrics.registry.get_sample_value(name, labels) or 0.0


def _record(msg="Compiled rule list", exc_info=None, **extra):
    record = logging.LogRecord(
        name="ruleschema.compiler.compiler",
        level=logging.INFO,
        pathname="compiler.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredLogging:
    """Tests for the JSON formatter and logger configuration."""

    @pytest.mark.anyio
    async def test_structured_formatter_outputs_json(self):
        """Test that StructuredFormatter emits one JSON object."""
        data = json.loads(StructuredFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "ruleschema.compiler.compiler"
        assert data["message"] == "Compiled rule list"
        assert data["line"] == 42
        assert "timestamp" in data
        assert "extra" not in data

    @pytest.mark.anyio
    async def test_structured_formatter_includes_extra_fields(self):
        """Test that `extra` fields are nested under `extra`."""
        data = json.loads(StructuredFormatter().format(_record(kind="object", path="$")))

        assert data["extra"] == {"kind": "object", "path": "$"}

    @pytest.mark.anyio
    async def test_structured_formatter_includes_exception(self):
        """Test that exception type and message are reported."""
        try:
            raise ValueError("bad rule")
        except ValueError:
            import sys

            record = _record(exc_info=sys.exc_info())

        data = json.loads(StructuredFormatter().format(record))

        assert data["exception"] == {"type": "ValueError", "message": "bad rule"}

    @pytest.mark.anyio
    async def test_configure_structured_logging(self, restore_package_logger):
        """Test that the package logger gets one JSON handler."""
        configure_structured_logging(level="debug", structured=True)

        assert restore_package_logger.level == logging.DEBUG
        assert len(restore_package_logger.handlers) == 1
        assert isinstance(restore_package_logger.handlers[0].formatter, StructuredFormatter)

    @pytest.mark.anyio
    async def test_configure_uses_settings(self, restore_package_logger, settings_override):
        """Test that defaults come from settings."""
        settings_override(log_level="ERROR", structured_logs=False)

        configure_structured_logging()

        assert restore_package_logger.level == logging.ERROR
        assert not isinstance(restore_package_logger.handlers[0].formatter, StructuredFormatter)

    @pytest.mark.anyio
    async def test_get_logger(self):
        """Test that get_logger returns the named logger."""
        assert get_logger("ruleschema.schema") is logging.getLogger("ruleschema.schema")


class TestMetrics:
    """Tests for Prometheus metrics."""

    @pytest.mark.anyio
    async def test_validation_outcomes_counted(self):
        """Test that root validations are counted by outcome."""
        schema = compile_rules([["number"], ["max", 1]])
        valid_before = _sample("ruleschema_validations_total", status="valid")
        invalid_before = _sample("ruleschema_validations_total", status="invalid")

        await schema.is_valid(1)
        await schema.is_valid(2)

        assert _sample("ruleschema_validations_total", status="valid") == valid_before + 1
        assert _sample("ruleschema_validations_total", status="invalid") == invalid_before + 1

    @pytest.mark.anyio
    async def test_nested_validations_not_counted(self):
        """Test that only the root validation is counted."""
        schema = compile_rules([["object", {"a": [["number"]], "b": [["number"]]}]])
        before = _sample("ruleschema_validations_total", status="valid")

        await schema.validate({"a": 1, "b": 2})

        assert _sample("ruleschema_validations_total", status="valid") == before + 1

    @pytest.mark.anyio
    async def test_shape_size_recorded(self):
        """Test the shape size histogram."""
        before = _sample("ruleschema_shape_fields_count")

        compile_rules([["object", {"a": [["number"]], "b": [["string"]]}]])

        assert _sample("ruleschema_shape_fields_count") == before + 1

    @pytest.mark.anyio
    async def test_record_helpers_respect_setting(self, settings_override):
        """Test that nothing is recorded while metrics are disabled."""
        settings_override(metrics_enabled=False)
        before = _sample("ruleschema_validations_total", status="valid")

        record_validation("valid")

        assert _sample("ruleschema_validations_total", status="valid") == before

    @pytest.mark.anyio
    async def test_record_helpers_never_raise(self, monkeypatch):
        """Test that metric failures are swallowed."""

        class Broken:
            def labels(self, **kwargs):
                raise RuntimeError("registry gone")

            def observe(self, value):
                raise RuntimeError("registry gone")

        monkeypatch.setattr(metrics, "compilations_total", Broken())
        monkeypatch.setattr(metrics, "validations_total", Broken())
        monkeypatch.setattr(metrics, "shape_fields", Broken())

        record_compilation("success", "string", 0.001)
        record_validation("valid")
        record_shape(3)

    @pytest.mark.anyio
    async def test_generate_metrics(self):
        """Test the exposition output."""
        compile_rules([["string"]])

        output = generate_metrics()

        assert isinstance(output, bytes)
        assert b"ruleschema_compilations_total" in output
        assert b"ruleschema_validations_total" in output

    @pytest.mark.anyio
    async def test_private_registry(self):
        """Test that metrics are not registered on the default registry."""
        from prometheus_client import REGISTRY

        assert metrics.registry is observability._registry
        assert metrics.registry is not REGISTRY
