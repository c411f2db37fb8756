# fieldguard/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any, Dict, Optional


class FieldGuardError(Exception):
    """
    Base exception class for errors raised by the field validation library.

    :param message: Human-readable description of the failure.
    :param details: Optional structured context for logging and telemetry.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ConfigurationError(FieldGuardError):
    """
    Raised when a field is constructed with an invalid configuration or rule set.
    """


class TransitionError(FieldGuardError):
    """
    Raised when the validation state machine is asked to perform a transition
    its transition table does not allow.
    """

    def __init__(self, message: str, source: Any, target: Any) -> None:
        super().__init__(message, {"source": getattr(source, "name", source), "target": getattr(target, "name", target)})
        self.source = source
        self.target = target


class ValidatorRejectedError(FieldGuardError):
    """
    Raised internally when an externally supplied validator raises instead of
    returning a verdict. The original exception is kept as ``__cause__``.
    """

    def __init__(self, value: str, cause: BaseException) -> None:
        super().__init__("Validator rejected", {"error": type(cause).__name__})
        self.value = value
        self.__cause__ = cause


class FieldDisposedError(FieldGuardError):
    """
    Raised when a field validator is used after ``dispose()``.
    """
