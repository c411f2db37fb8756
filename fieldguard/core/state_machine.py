# fieldguard/core/state_machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Dict, FrozenSet, List, Optional

from fieldguard.core.errors import TransitionError
from fieldguard.core.results import ValidationResult

logger = logging.getLogger(__name__)


class FieldStatus(Enum):
    """Externally observable validation status of a field."""

    IDLE = auto()
    VALIDATING = auto()
    VALID = auto()
    INVALID = auto()
    ERROR = auto()


_SETTLED = frozenset({FieldStatus.VALIDATING, FieldStatus.IDLE})

_TRANSITIONS: Dict[FieldStatus, FrozenSet[FieldStatus]] = {
    FieldStatus.IDLE: frozenset({FieldStatus.VALIDATING, FieldStatus.IDLE}),
    FieldStatus.VALIDATING: frozenset(
        {
            FieldStatus.VALIDATING,
            FieldStatus.VALID,
            FieldStatus.INVALID,
            FieldStatus.ERROR,
            FieldStatus.IDLE,
        }
    ),
    FieldStatus.VALID: _SETTLED,
    FieldStatus.INVALID: _SETTLED,
    FieldStatus.ERROR: _SETTLED,
}


@dataclass(frozen=True)
class FieldValidationState:
    """
    Snapshot of a field's validation state. A new snapshot replaces the old one
    on every change.
    """

    status: FieldStatus = FieldStatus.IDLE
    result: Optional[ValidationResult] = None
    retry_count: int = 0


class ValidationStateMachine:
    """
    Owns the validation status of one field and enforces the transition table.
    Transitions happen only through ``begin``, ``accept`` and ``reset``.
    """

    def __init__(self, hooks: Optional[List] = None) -> None:
        """
        :param hooks: Optional objects implementing
                      ``on_transition(previous, current)``.
        """
        self._hooks = list(hooks or [])
        self._state = FieldValidationState()

    @property
    def state(self) -> FieldValidationState:
        """The current snapshot."""
        return self._state

    @property
    def status(self) -> FieldStatus:
        return self._state.status

    def add_hook(self, hook) -> None:
        self._hooks.append(hook)

    def can_transition(self, target: FieldStatus) -> bool:
        return target in _TRANSITIONS[self._state.status]

    def begin(self) -> FieldValidationState:
        """Enter VALIDATING for a new attempt, keeping the last result visible."""
        return self._transition(replace(self._state, status=FieldStatus.VALIDATING))

    def accept(self, result: ValidationResult, failed: bool = False) -> FieldValidationState:
        """
        Apply an accepted result.

        :param result: The result of the current attempt.
        :param failed: True when the external validator rejected; enters ERROR.
        """
        if failed:
            status = FieldStatus.ERROR
        elif result.is_valid:
            status = FieldStatus.VALID
        else:
            status = FieldStatus.INVALID
        return self._transition(replace(self._state, status=status, result=result))

    def reset(self) -> FieldValidationState:
        """Return to IDLE with no result and a zero retry count."""
        return self._transition(FieldValidationState())

    def record_retry(self) -> FieldValidationState:
        """Count a retry. This is not a transition and notifies no hooks."""
        self._state = replace(self._state, retry_count=self._state.retry_count + 1)
        return self._state

    def _transition(self, new_state: FieldValidationState) -> FieldValidationState:
        previous = self._state
        if not self.can_transition(new_state.status):
            raise TransitionError(
                f"Cannot transition from {previous.status.name} to {new_state.status.name}",
                previous.status,
                new_state.status,
            )
        self._state = new_state
        self._notify(previous, new_state)
        return new_state

    def _notify(self, previous: FieldValidationState, current: FieldValidationState) -> None:
        for hook in self._hooks:
            if not hasattr(hook, "on_transition"):
                continue
            try:
                hook.on_transition(previous, current)
            except Exception:
                logger.exception("Transition hook %r failed", hook)
