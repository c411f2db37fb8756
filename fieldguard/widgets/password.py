# fieldguard/widgets/password.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import re
from typing import Any, Iterable, List, Optional, Tuple

from zxcvbn import zxcvbn

from fieldguard.core.errors import ConfigurationError
from fieldguard.core.rules import Rule, RuleSet, Severity
from fieldguard.core.state_machine import FieldStatus, FieldValidationState
from fieldguard.runtime.async_field import AsyncFieldValidator

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"[0-9]")
_SPECIAL = re.compile(r"[^A-Za-z0-9]")
_TRIPLE = re.compile(r"(.)\1{2,}")
_DIGIT_RUN = re.compile(r"123|234|345|456|567|678|789|890|012")
_LETTER_RUN = re.compile("|".join("abcdefghijklmnopqrstuvwxyz"[i : i + 3] for i in range(24)), re.IGNORECASE)

COMMON_PASSWORDS = ("password", "123456", "admin", "qwerty", "letmein")
COMPLEXITY_THRESHOLD = 60
RECOMMENDED_LENGTH = 12

_STRENGTH_KEYS = (
    "strength_very_weak",
    "strength_weak",
    "strength_fair",
    "strength_strong",
    "strength_very_strong",
)


def password_strength(
    password: str,
    min_length: int = 8,
    require_uppercase: bool = True,
    require_lowercase: bool = True,
    require_number: bool = True,
    require_special: bool = False,
) -> int:
    """
    Count the satisfied requirements: one point for the minimum length and one
    for each enabled character class present.
    """
    score = 0
    if len(password) >= min_length:
        score += 1
    if require_uppercase and _UPPER.search(password):
        score += 1
    if require_lowercase and _LOWER.search(password):
        score += 1
    if require_number and _DIGIT.search(password):
        score += 1
    if require_special and _SPECIAL.search(password):
        score += 1
    return score


def password_complexity(password: str) -> int:
    """
    Weighted 0..100 complexity score: length, character variety and distinct
    characters add points; runs of a repeated character and ascending digit or
    letter sequences take points away.
    """
    length = len(password)
    score = 0
    score += 20 if length >= 8 else 0
    score += 10 if length >= 12 else 0
    score += 10 if length >= 16 else 0
    score += 10 if _LOWER.search(password) else 0
    score += 10 if _UPPER.search(password) else 0
    score += 10 if _DIGIT.search(password) else 0
    score += 15 if _SPECIAL.search(password) else 0
    unique = len(set(password))
    score += 10 if unique >= 8 else 0
    score += 5 if unique >= 12 else 0
    score -= 15 if _TRIPLE.search(password) else 0
    score -= 20 if _DIGIT_RUN.search(password) else 0
    score -= 20 if _LETTER_RUN.search(password) else 0
    return max(0, min(100, score))


def zxcvbn_strength(password: str) -> int:
    """Strength meter reading from zxcvbn: its 0..4 guess score plus one."""
    if not password:
        return 0
    return zxcvbn(password)["score"] + 1


def strength_label_key(strength: int) -> str:
    """Translation key for a strength meter reading."""
    return _STRENGTH_KEYS[max(0, min(strength, len(_STRENGTH_KEYS) - 1))]


def build_password_rules(
    min_length: int = 8,
    require_uppercase: bool = True,
    require_lowercase: bool = True,
    require_number: bool = True,
    require_special: bool = False,
    forbid_common: bool = False,
    custom_rules: Iterable[Rule] = (),
    suggest: bool = True,
) -> RuleSet:
    """
    Build the active password rules. Custom rules come first, then the
    enabled requirements; disabled requirements are left out entirely. With
    ``suggest`` two INFO rules recommend a more complex and a longer password.
    """
    if min_length < 1:
        raise ConfigurationError("Minimum password length must be positive", {"min_length": min_length})

    rules: List[Rule] = list(custom_rules)
    rules.append(
        Rule(
            "min_length",
            f"Minimum length: {min_length}",
            lambda v: len(v) >= min_length,
            f"Must be at least {min_length} characters",
        )
    )
    if require_uppercase:
        rules.append(Rule("uppercase", "Uppercase letter", lambda v: bool(_UPPER.search(v)), "Must contain an uppercase letter"))
    if require_lowercase:
        rules.append(Rule("lowercase", "Lowercase letter", lambda v: bool(_LOWER.search(v)), "Must contain a lowercase letter"))
    if require_number:
        rules.append(Rule("number", "Number", lambda v: bool(_DIGIT.search(v)), "Must contain a number"))
    if require_special:
        rules.append(Rule("special", "Special character", lambda v: bool(_SPECIAL.search(v)), "Must contain a special character"))
    if forbid_common:
        rules.append(
            Rule(
                "no_common_passwords",
                "Not a common password",
                lambda v: v.lower() not in COMMON_PASSWORDS,
                "Avoid common passwords",
                Severity.WARNING,
            )
        )
    if suggest:
        rules.append(
            Rule(
                "complexity",
                "Complex password",
                lambda v: password_complexity(v) >= COMPLEXITY_THRESHOLD,
                "Make the password more complex",
                Severity.INFO,
            )
        )
        rules.append(
            Rule(
                "recommended_length",
                f"At least {RECOMMENDED_LENGTH} characters",
                lambda v: len(v) >= RECOMMENDED_LENGTH,
                f"Use a longer password (at least {RECOMMENDED_LENGTH} characters)",
                Severity.INFO,
            )
        )
    return RuleSet(rules)


class PasswordFieldValidator(AsyncFieldValidator):
    """
    Password validation with a strength meter. The result score is the meter
    reading (0..``max_strength``) rather than the 0..100 rule score, and every
    announcement lists the state of each active requirement. Suggestions for a
    more complex or longer password ride along on the result.
    """

    def __init__(
        self,
        min_length: int = 8,
        require_uppercase: bool = True,
        require_lowercase: bool = True,
        require_number: bool = True,
        require_special: bool = False,
        forbid_common: bool = False,
        custom_rules: Iterable[Rule] = (),
        use_zxcvbn: bool = False,
        suggest: bool = True,
        **kwargs: Any,
    ) -> None:
        """
        :param use_zxcvbn: Read the strength meter from zxcvbn (1..5) instead
                           of counting satisfied requirements.
        :param suggest: Attach complexity and length suggestions to results.
        """
        self._requirements = (min_length, require_uppercase, require_lowercase, require_number, require_special)
        self._use_zxcvbn = use_zxcvbn
        super().__init__(
            rules=build_password_rules(
                min_length,
                require_uppercase,
                require_lowercase,
                require_number,
                require_special,
                forbid_common,
                custom_rules,
                suggest,
            ),
            **kwargs,
        )

    @property
    def max_strength(self) -> int:
        if self._use_zxcvbn:
            return 5
        return 1 + sum(1 for flag in self._requirements[1:] if flag)

    @property
    def strength(self) -> int:
        """Meter reading for the current value."""
        return self._strength(self.value)

    def rule_statuses(self, value: Optional[str] = None) -> List[Tuple[str, bool]]:
        """``(label, passed)`` for every active requirement, in order."""
        value = self.value if value is None else value
        evaluation = self._engine.evaluate(value, self._rules)
        return [
            (outcome.label, outcome.passed) for outcome in evaluation.outcomes if outcome.severity is not Severity.INFO
        ]

    def _strength(self, value: str) -> int:
        if self._use_zxcvbn:
            return zxcvbn_strength(value)
        return password_strength(value, *self._requirements)

    def _score(self, value: str, errors: Tuple[str, ...], warnings: Tuple[str, ...]) -> int:
        return self._strength(value)

    def _describe(self, state: FieldValidationState) -> List[Optional[str]]:
        t = self._announcer.translate
        value = self._attempt_value
        strength = self._strength(value)
        parts: List[Optional[str]] = [t("password_strength", strength=t(strength_label_key(strength)))]
        parts.extend(super()._describe(state))
        if state.status is not FieldStatus.VALIDATING:
            rules = ", ".join(
                t("rule_met" if passed else "rule_missing", label=label) for label, passed in self.rule_statuses(value)
            )
            parts.append(t("rules", rules=rules))
        return parts
