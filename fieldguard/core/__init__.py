"""
Core package: data model, rule engine and the validation state machine.

Everything here is synchronous and free of event-loop concerns; scheduling
lives in ``fieldguard.runtime``.
"""

from .errors import (
    ConfigurationError,
    FieldDisposedError,
    FieldGuardError,
    TransitionError,
    ValidatorRejectedError,
)
from .results import ValidationRequest, ValidationResult, ValidatorResponse
from .rules import Rule, RuleEngine, RuleEvaluation, RuleKind, RuleOutcome, RuleSet, Severity, calculate_score
from .state_machine import FieldStatus, FieldValidationState, ValidationStateMachine

__all__ = [
    "ConfigurationError",
    "FieldDisposedError",
    "FieldGuardError",
    "TransitionError",
    "ValidatorRejectedError",
    "ValidationRequest",
    "ValidationResult",
    "ValidatorResponse",
    "Rule",
    "RuleEngine",
    "RuleEvaluation",
    "RuleKind",
    "RuleOutcome",
    "RuleSet",
    "Severity",
    "calculate_score",
    "FieldStatus",
    "FieldValidationState",
    "ValidationStateMachine",
]
