# fieldguard/core/rules.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, Union

from fieldguard.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

RuleTest = Callable[[str], Union[bool, str]]


class Severity(Enum):
    """How a failing rule is reported."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class RuleKind(Enum):
    """Whether a rule ships with the library or was supplied by the caller."""

    BUILTIN = "builtin"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Rule:
    """
    A stateless predicate check. ``test`` returns True to pass, False to fail
    with ``message``, or a string to fail with that string as the message.
    """

    key: str
    label: str
    test: RuleTest
    message: str
    severity: Severity = Severity.ERROR
    kind: RuleKind = RuleKind.BUILTIN

    @classmethod
    def custom(
        cls,
        key: str,
        test: RuleTest,
        label: Optional[str] = None,
        message: Optional[str] = None,
        severity: Union[Severity, str] = Severity.ERROR,
    ) -> "Rule":
        """
        Build a caller-supplied rule from the ``{key, label, test, [severity]}``
        contract.

        :param key: Unique key within the rule set.
        :param test: Predicate taking the field value.
        :param label: Text used in announcements; defaults to the key.
        :param message: Failure message; defaults to the label.
        :param severity: A Severity or its string value.
        """
        if not callable(test):
            raise ConfigurationError(f"Rule '{key}' test must be callable")
        try:
            severity = Severity(severity)
        except ValueError:
            raise ConfigurationError(f"Rule '{key}' has unknown severity", {"severity": severity})
        label = label or key
        return cls(
            key=key,
            label=label,
            test=test,
            message=message or label,
            severity=severity,
            kind=RuleKind.CUSTOM,
        )


class RuleSet:
    """
    An ordered collection of rules with unique keys. Order is the evaluation
    order.
    """

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: List[Rule] = []
        seen = set()
        for rule in rules:
            if rule.key in seen:
                raise ConfigurationError(f"Duplicate rule key '{rule.key}'")
            seen.add(rule.key)
            self._rules.append(rule)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def keys(self) -> List[str]:
        return [rule.key for rule in self._rules]


@dataclass(frozen=True)
class RuleOutcome:
    """Result of one rule for one value."""

    key: str
    label: str
    passed: bool
    message: Optional[str]
    severity: Severity


@dataclass(frozen=True)
class RuleEvaluation:
    """Aggregate of every rule outcome for one value."""

    is_valid: bool
    errors: Tuple[str, ...]
    warnings: Tuple[str, ...]
    suggestions: Tuple[str, ...]
    outcomes: Tuple[RuleOutcome, ...] = ()


def calculate_score(error_count: int, warning_count: int) -> int:
    """
    Score a rule evaluation: an error costs two points and a warning one,
    floored at zero.
    """
    return max(0, round(100 - (error_count * 2 + warning_count * 1)))


class RuleEngine:
    """
    Evaluates every rule of a rule set against a value. Failures accumulate;
    no rule prevents later rules from running.
    """

    def evaluate(self, value: str, rules: Iterable[Rule]) -> RuleEvaluation:
        """
        :param value: The field value.
        :param rules: Rules in declaration order.
        :return: The aggregated evaluation.
        """
        errors: List[str] = []
        warnings: List[str] = []
        suggestions: List[str] = []
        outcomes: List[RuleOutcome] = []

        for rule in rules:
            outcome = self._run(rule, value)
            outcomes.append(outcome)
            if outcome.passed:
                continue
            if rule.severity is Severity.ERROR:
                errors.append(outcome.message)
            elif rule.severity is Severity.WARNING:
                warnings.append(outcome.message)
            else:
                suggestions.append(outcome.message)

        return RuleEvaluation(
            is_valid=not errors,
            errors=tuple(errors),
            warnings=tuple(warnings),
            suggestions=tuple(suggestions),
            outcomes=tuple(outcomes),
        )

    @staticmethod
    def _run(rule: Rule, value: str) -> RuleOutcome:
        try:
            verdict = rule.test(value)
        except Exception:
            # Fail open: a broken predicate must not lock the user out.
            logger.warning("Validation rule %s failed", rule.key, exc_info=True)
            return RuleOutcome(rule.key, rule.label, True, None, rule.severity)

        if isinstance(verdict, str):
            if verdict == "true":
                return RuleOutcome(rule.key, rule.label, True, None, rule.severity)
            return RuleOutcome(rule.key, rule.label, False, verdict or rule.message, rule.severity)
        if verdict:
            return RuleOutcome(rule.key, rule.label, True, None, rule.severity)
        return RuleOutcome(rule.key, rule.label, False, rule.message, rule.severity)
