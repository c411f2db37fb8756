"""fieldguard: debounced, supersession-safe asynchronous validation for form fields

Each field owns a debounce timer, an attempt sequencer, a bounded result cache
and a small state machine (IDLE, VALIDATING, VALID, INVALID, ERROR). Slow or
out-of-order validator responses can never overwrite a fresher result, and
every state change is summarized into one live-region sentence for assistive
technology.

Responsibilities:
    - Debounced triggering from keystrokes
    - Rule evaluation with fail-open predicates
    - Stale-result suppression
    - Monitoring callbacks that cannot break validation
    - Screen-reader announcements that never go stale

Interactions:
    - Rendering layer reads ``FieldSnapshot`` and ``announcement``
    - Callers supply validators, rules, callbacks and a translator
"""

from fieldguard.config import ValidationConfig
from fieldguard.core import (
    ConfigurationError,
    FieldDisposedError,
    FieldGuardError,
    FieldStatus,
    Rule,
    Severity,
    TransitionError,
    ValidationResult,
    ValidatorRejectedError,
    ValidatorResponse,
)
from fieldguard.runtime import AsyncFieldValidator, FieldSnapshot, MonitoringCallbacks
from fieldguard.widgets import OtpFieldValidator, PasswordFieldValidator, TextFieldValidator

__version__ = "0.1.0"

__all__ = [
    "ValidationConfig",
    "ConfigurationError",
    "FieldDisposedError",
    "FieldGuardError",
    "FieldStatus",
    "Rule",
    "Severity",
    "TransitionError",
    "ValidationResult",
    "ValidatorRejectedError",
    "ValidatorResponse",
    "AsyncFieldValidator",
    "FieldSnapshot",
    "MonitoringCallbacks",
    "OtpFieldValidator",
    "PasswordFieldValidator",
    "TextFieldValidator",
]
