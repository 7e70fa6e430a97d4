"""
Pytest configuration and shared fixtures.

Provides:
- AnyIO backend selection for async tests
- settings_override: temporarily change library settings
- restore_package_logger: undo logging configuration made by a test
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]

# Add the package root to path for imports
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ruleschema.core import config  # noqa: E402 (import after path setup)


# =============================================================================
# AnyIO Backend Configuration
# =============================================================================
# Per AnyIO testing docs: https://anyio.readthedocs.io/en/stable/testing.html
@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings_override(monkeypatch):
    """
    Override fields of the module-level settings for one test.

    Usage:
        def test_x(settings_override):
            settings_override(metrics_enabled=False)
    """

    def _override(**values):
        for name, value in values.items():
            monkeypatch.setattr(config.settings, name, value)

    return _override


@pytest.fixture
def restore_package_logger():
    """Restore handlers and level of the `ruleschema` logger after the test."""
    package_logger = logging.getLogger("ruleschema")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    yield package_logger
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)
