# fieldguard/config.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Any, Mapping

from fieldguard.core.errors import ConfigurationError

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(frozen=True)
class ValidationConfig:
    """
    Construction-time settings for a field validator. Instances are immutable;
    use ``dataclasses.replace`` to derive a variant.

    :param debounce_ms: Quiet period before a keystroke burst is validated.
    :param max_retry_attempts: Upper bound for ``retry_validation()`` calls.
    :param cache_size: Number of memoized results kept per field.
    :param enable_memoization: Reuse results for previously seen values.
    :param enable_retry: Allow explicit retries.
    :param auto_validate: Validate automatically after input settles.
    :param enable_performance_tracking: Report validation durations to telemetry.
    :param announce: Publish live-region announcements.
    :param announcement_clear_ms: Delay before a published announcement is cleared.
    :param announcement_settle_ms: Quiet period before an announcement is published.
    :param history_limit: Number of applied results kept in the history.
    """

    debounce_ms: int = 300
    max_retry_attempts: int = 3
    cache_size: int = 100
    enable_memoization: bool = True
    enable_retry: bool = True
    auto_validate: bool = True
    enable_performance_tracking: bool = False
    announce: bool = True
    announcement_clear_ms: int = 1000
    announcement_settle_ms: int = 0
    history_limit: int = 50

    def __post_init__(self) -> None:
        for name in (
            "debounce_ms",
            "max_retry_attempts",
            "cache_size",
            "announcement_clear_ms",
            "announcement_settle_ms",
            "history_limit",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer", {name: value})
            if value < 0:
                raise ConfigurationError(f"{name} must not be negative", {name: value})

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "ValidationConfig":
        """
        Build a config from a plain mapping. Keys may be snake_case or the
        camelCase spelling used by component props (``validationDebounceMs``
        is accepted as an alias of ``debounce_ms``).

        :raises ConfigurationError: If a key is not a known setting.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in mapping.items():
            name = _ALIASES.get(key) or _CAMEL_BOUNDARY.sub("_", key).lower()
            if name not in known:
                raise ConfigurationError(f"Unknown validation setting '{key}'")
            kwargs[name] = value
        return cls(**kwargs)


_ALIASES = {
    "validationDebounceMs": "debounce_ms",
    "maxRetryAttempts": "max_retry_attempts",
    "enableRetryValidation": "enable_retry",
    "autoValidate": "auto_validate",
    "enablePerformanceTracking": "enable_performance_tracking",
}
