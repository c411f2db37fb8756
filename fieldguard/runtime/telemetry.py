# fieldguard/runtime/telemetry.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, fields
from typing import Any, Callable, Optional

from fieldguard.core.results import ValidationResult

logger = logging.getLogger(__name__)


@dataclass
class MonitoringCallbacks:
    """
    Caller-supplied lifecycle callbacks. Every callback is optional and
    receives a wall-clock timestamp as its last argument.
    """

    on_validation_started: Optional[Callable[[str, float], Any]] = None
    on_validation_completed: Optional[Callable[[ValidationResult, str, float], Any]] = None
    on_success: Optional[Callable[[str, float], Any]] = None
    on_error: Optional[Callable[[str, float], Any]] = None
    on_retry: Optional[Callable[[int, float], Any]] = None
    on_performance_metric: Optional[Callable[[str, float, float], Any]] = None
    on_clear: Optional[Callable[[float], Any]] = None


_CALLBACK_NAMES = frozenset(f.name for f in fields(MonitoringCallbacks))


class TelemetryEmitter:
    """
    Best-effort fan-out of validation lifecycle events. Nothing raised by a
    callback reaches the caller: faults are logged and, where possible,
    forwarded to ``on_error``.
    """

    def __init__(self, callbacks: Optional[MonitoringCallbacks] = None, enabled: bool = True) -> None:
        self._callbacks = callbacks or MonitoringCallbacks()
        self._enabled = enabled
        self._pending = set()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def emit(self, name: str, *args: Any) -> None:
        """
        Invoke callback ``name`` with ``args`` followed by the current timestamp.

        :param name: A ``MonitoringCallbacks`` field name.
        """
        if name not in _CALLBACK_NAMES:
            raise ValueError(f"Unknown monitoring callback '{name}'")
        if not self._enabled:
            return
        callback = getattr(self._callbacks, name)
        if callback is None:
            return
        try:
            outcome = callback(*args, time.time())
        except Exception as exc:
            logger.exception("Monitoring callback %s failed", name)
            self._report_fault(name, exc)
            return
        if inspect.isawaitable(outcome):
            self._track(name, outcome)

    def validation_started(self, value: str) -> None:
        self.emit("on_validation_started", value)

    def validation_completed(self, result: ValidationResult, value: str) -> None:
        self.emit("on_validation_completed", result, value)
        if result.is_valid:
            self.emit("on_success", value)

    def error(self, message: str) -> None:
        self.emit("on_error", message)

    def retry(self, count: int) -> None:
        self.emit("on_retry", count)

    def performance_metric(self, metric: str, duration_ms: float) -> None:
        self.emit("on_performance_metric", metric, duration_ms)

    def cleared(self) -> None:
        self.emit("on_clear")

    def _report_fault(self, name: str, exc: BaseException) -> None:
        if name == "on_error" or self._callbacks.on_error is None:
            return
        try:
            self._callbacks.on_error(f"Monitoring callback {name} failed: {exc}", time.time())
        except Exception:
            logger.exception("Monitoring callback on_error failed")

    def _track(self, name: str, awaitable: Any) -> None:
        future = asyncio.ensure_future(awaitable)
        self._pending.add(future)

        def _done(fut: "asyncio.Future") -> None:
            self._pending.discard(fut)
            if fut.cancelled():
                return
            exc = fut.exception()
            if exc is not None:
                logger.error("Monitoring callback %s failed", name, exc_info=exc)
                self._report_fault(name, exc)

        future.add_done_callback(_done)
