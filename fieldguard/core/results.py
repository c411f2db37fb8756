# fieldguard/core/results.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class ValidationRequest:
    """
    One validation attempt for a field. Requests are never mutated; a request
    whose ``attempt_id`` has been superseded is discarded when it resolves.
    """

    value: str
    attempt_id: int
    enqueued_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ValidationResult:
    """
    The outcome of a single validation attempt. Results are immutable and are
    swapped in as a whole, so consumers never observe a partial update.

    ``score`` is 0..100 for rule-scored fields, or 0..max strength for
    strength-meter fields.
    """

    is_valid: bool
    message: Optional[str] = None
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    suggestions: Tuple[str, ...] = ()
    score: int = 0
    timestamp: float = field(default_factory=time.time)

    @classmethod
    def failure(cls, message: str) -> "ValidationResult":
        """Build the generic result used when a validator rejects."""
        return cls(is_valid=False, message=message, errors=(message,), score=0)


@dataclass(frozen=True)
class ValidatorResponse:
    """
    Structured verdict an external validator may return instead of a bare bool.
    """

    is_valid: bool
    message: Optional[str] = None
