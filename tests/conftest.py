# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from unittest.mock import MagicMock

import pytest

from fieldguard.config import ValidationConfig
from fieldguard.core.rules import Rule, RuleEngine, Severity
from fieldguard.runtime.telemetry import MonitoringCallbacks
from tests.async_utils import ControlledValidator


def pytest_configure(config):
    """Register custom marks."""
    config.addinivalue_line("markers", "property: mark test as a property-based test")
    config.addinivalue_line("markers", "timing: mark test as relying on real event loop timers")


@pytest.fixture
def fast_config():
    """A config with short timers so debounce tests finish quickly."""
    return ValidationConfig(debounce_ms=10, announcement_clear_ms=0)


@pytest.fixture
def controlled_validator():
    """A validator whose answers are released by the test, in any order."""
    return ControlledValidator()


@pytest.fixture
def callbacks():
    """Monitoring callbacks backed by mocks."""
    return MonitoringCallbacks(
        on_validation_started=MagicMock(),
        on_validation_completed=MagicMock(),
        on_success=MagicMock(),
        on_error=MagicMock(),
        on_retry=MagicMock(),
        on_performance_metric=MagicMock(),
        on_clear=MagicMock(),
    )


@pytest.fixture
def engine():
    return RuleEngine()


@pytest.fixture
def basic_rules():
    """Two errors and one warning, in that order."""
    return [
        Rule("required", "Required", lambda v: len(v) > 0, "Value is required"),
        Rule("digits", "Digits only", lambda v: v.isdigit(), "Digits only"),
        Rule("short", "Short", lambda v: len(v) <= 4, "Keep it short", Severity.WARNING),
    ]
