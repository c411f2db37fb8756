# fieldguard/widgets/otp.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import re
from typing import Any, Callable, Iterable, List, Optional, Union

from fieldguard.core.errors import ConfigurationError
from fieldguard.core.rules import Rule, RuleSet, Severity
from fieldguard.core.state_machine import FieldStatus, FieldValidationState
from fieldguard.runtime.async_field import AsyncFieldValidator

_NUMERIC = re.compile(r"^\d+$")
_ALPHANUMERIC = re.compile(r"^[a-zA-Z0-9]+$")
_WHITESPACE = re.compile(r"\s")
_SPECIAL = re.compile(r"[^a-zA-Z0-9]")

COMMON_PATTERNS = ("123456", "000000", "111111", "abcdef", "qwerty")
CHARSETS = ("numeric", "alphanumeric")


def _has_repeats(value: str) -> bool:
    return any(a == b for a, b in zip(value, value[1:]))


def _has_sequence(value: str) -> bool:
    return any(abs(ord(a) - ord(b)) == 1 for a, b in zip(value, value[1:]))


def _length_rule(length: Optional[int]) -> Rule:
    def test(value: str) -> bool:
        return len(value) == length if length else len(value) >= 4

    return Rule("length", "Length", test, "OTP code must be the correct length")


def build_otp_rules(
    length: Optional[int] = 6,
    charset: Optional[str] = "numeric",
    security_rules: bool = False,
    custom_rules: Iterable[Union[Rule, Callable[[str], Any]]] = (),
) -> RuleSet:
    """
    Assemble the OTP rule set once, at construction.

    :param length: Exact code length; None accepts any code of 4+ characters.
    :param charset: "numeric", "alphanumeric" or None for no charset rule.
    :param security_rules: Add the repeat/sequence/common-pattern warnings.
    :param custom_rules: Extra rules; bare predicates become ``custom-<n>`` errors.
    """
    if charset is not None and charset not in CHARSETS:
        raise ConfigurationError(f"Unknown OTP charset '{charset}'")

    rules: List[Rule] = [
        Rule("required", "Required", lambda value: len(value) > 0, "OTP code is required"),
        _length_rule(length),
    ]
    if charset == "numeric":
        rules.append(
            Rule("numeric", "Numbers only", lambda v: bool(_NUMERIC.match(v)), "OTP code must contain only numbers")
        )
    elif charset == "alphanumeric":
        rules.append(
            Rule(
                "alphanumeric",
                "Letters and numbers only",
                lambda v: bool(_ALPHANUMERIC.match(v)),
                "OTP code must contain only letters and numbers",
            )
        )
    rules.append(Rule("no_spaces", "No spaces", lambda v: not _WHITESPACE.search(v), "OTP code cannot contain spaces"))
    rules.append(
        Rule(
            "no_special_chars",
            "No special characters",
            lambda v: not _SPECIAL.search(v),
            "OTP code cannot contain special characters",
        )
    )
    if security_rules:
        rules.extend(
            [
                Rule(
                    "no_repeating_chars",
                    "No repeating characters",
                    lambda v: not _has_repeats(v),
                    "OTP code cannot have repeating characters",
                    Severity.WARNING,
                ),
                Rule(
                    "no_sequential_chars",
                    "No sequential characters",
                    lambda v: not _has_sequence(v),
                    "OTP code should not have sequential characters",
                    Severity.WARNING,
                ),
                Rule(
                    "no_common_patterns",
                    "No common patterns",
                    lambda v: v.lower() not in COMMON_PATTERNS,
                    "OTP code should not use common patterns",
                    Severity.WARNING,
                ),
            ]
        )
    for index, custom in enumerate(custom_rules):
        if isinstance(custom, Rule):
            rules.append(custom)
        else:
            rules.append(Rule.custom(f"custom-{index}", custom, message="Custom validation failed"))
    return RuleSet(rules)


class OtpFieldValidator(AsyncFieldValidator):
    """
    Validation for a one-time-code input of fixed length.
    """

    def __init__(
        self,
        length: int = 6,
        charset: Optional[str] = "numeric",
        security_rules: bool = False,
        custom_rules: Iterable[Union[Rule, Callable[[str], Any]]] = (),
        **kwargs: Any,
    ) -> None:
        if length <= 0:
            raise ConfigurationError("OTP length must be positive", {"length": length})
        self._length = length
        super().__init__(
            rules=build_otp_rules(length, charset, security_rules, custom_rules),
            **kwargs,
        )

    @property
    def length(self) -> int:
        return self._length

    @property
    def is_complete(self) -> bool:
        return len(self.value) == self._length

    def _describe(self, state: FieldValidationState) -> List[Optional[str]]:
        parts = super()._describe(state)
        if state.status in (FieldStatus.VALIDATING, FieldStatus.VALID):
            return parts
        entered = len(self._attempt_value)
        if entered == self._length:
            parts.append(self._announcer.translate("otp_complete"))
        else:
            parts.append(self._announcer.translate("otp_progress", length=entered, total=self._length))
        return parts
