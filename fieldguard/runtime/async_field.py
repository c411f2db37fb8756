# fieldguard/runtime/async_field.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional, Set, Tuple, Union

from fieldguard.config import ValidationConfig
from fieldguard.core.errors import FieldDisposedError, ValidatorRejectedError
from fieldguard.core.results import ValidationRequest, ValidationResult, ValidatorResponse
from fieldguard.core.rules import Rule, RuleEngine, RuleEvaluation, RuleSet, calculate_score
from fieldguard.core.state_machine import FieldStatus, FieldValidationState, ValidationStateMachine
from fieldguard.interfaces.protocols import AsyncValidator, HistoryStore, TransitionHook, Translator
from fieldguard.runtime.announcer import LiveRegionAnnouncer, compose
from fieldguard.runtime.cache import ResultCache
from fieldguard.runtime.history import ValidationHistory, ValidationStats
from fieldguard.runtime.sequencer import Sequencer
from fieldguard.runtime.telemetry import MonitoringCallbacks, TelemetryEmitter
from fieldguard.runtime.timers import DebounceScheduler

logger = logging.getLogger(__name__)

VALIDATION_FAILED = "Validation failed"
INVALID_VALUE = "Invalid value"
RETRY_LIMIT_EXCEEDED = "Maximum retry attempts exceeded"


@dataclass(frozen=True)
class FieldSnapshot:
    """
    The state a rendering layer needs to draw a field: status flags, the
    visible message, and the diagnostics of the last applied result.
    """

    is_valid: bool
    is_validating: bool
    error: Optional[str]
    warnings: Tuple[str, ...]
    suggestions: Tuple[str, ...]
    score: int
    last_validation_timestamp: Optional[float]
    status: FieldStatus
    retry_count: int


def _normalize_verdict(verdict: Any) -> Tuple[bool, Optional[str]]:
    """Reduce any accepted validator verdict to ``(is_valid, message)``."""
    if isinstance(verdict, bool):
        return verdict, None
    if isinstance(verdict, str):
        return verdict == "true", (None if verdict == "true" else verdict or None)
    if isinstance(verdict, ValidatorResponse):
        return verdict.is_valid, verdict.message
    if isinstance(verdict, Mapping):
        is_valid = verdict.get("is_valid", verdict.get("isValid", False))
        return bool(is_valid), verdict.get("message")
    if hasattr(verdict, "is_valid"):
        return bool(verdict.is_valid), getattr(verdict, "message", None)
    return bool(verdict), None


class AsyncFieldValidator:
    """
    Debounced, supersession-safe validation for one input field.

    Keystrokes go through ``on_input``; once input has been quiet for the
    configured debounce interval an attempt is started. Every attempt gets an
    id from the sequencer and only the newest attempt may change the visible
    state, so a slow validator answering late can never overwrite a fresher
    result. Attempts are never cancelled; stale ones are discarded when they
    finish.
    """

    def __init__(
        self,
        rules: Optional[Union[RuleSet, Iterable[Rule]]] = None,
        validator: Optional[AsyncValidator] = None,
        config: Optional[ValidationConfig] = None,
        callbacks: Optional[MonitoringCallbacks] = None,
        translate: Optional[Translator] = None,
        history_store: Optional[HistoryStore] = None,
        on_announce: Optional[Callable[[str], None]] = None,
        hooks: Optional[List[TransitionHook]] = None,
        telemetry_enabled: bool = True,
    ) -> None:
        """
        :param rules: Synchronous rules evaluated on every attempt.
        :param validator: Optional external validator, sync or async.
        :param config: Field settings; defaults to ``ValidationConfig()``.
        :param callbacks: Monitoring callbacks.
        :param translate: Announcement string lookup.
        :param history_store: Persistence port for the validation history.
        :param on_announce: Receives every live-region text change.
        :param hooks: Extra state machine transition observers.
        :param telemetry_enabled: Turn monitoring callbacks off entirely.
        """
        self._config = config or ValidationConfig()
        self._rules = rules if isinstance(rules, RuleSet) else RuleSet(rules or ())
        self._validator = validator
        self._engine = RuleEngine()
        self._scheduler = DebounceScheduler()
        self._sequencer = Sequencer()
        self._cache = ResultCache(self._config.cache_size)
        self._telemetry = TelemetryEmitter(callbacks, enabled=telemetry_enabled)
        self._announcer = LiveRegionAnnouncer(
            translate=translate,
            clear_after_ms=self._config.announcement_clear_ms,
            settle_ms=self._config.announcement_settle_ms,
            on_publish=on_announce,
        )
        self._history = ValidationHistory(self._config.history_limit, history_store)
        self._machine = ValidationStateMachine(hooks)
        self._value = ""
        self._attempt_value = ""
        self._tasks: Set[asyncio.Future] = set()
        self._last_error: Optional[ValidatorRejectedError] = None
        self._disposed = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def config(self) -> ValidationConfig:
        return self._config

    @property
    def rules(self) -> RuleSet:
        return self._rules

    @property
    def value(self) -> str:
        """Most recent input value."""
        return self._value

    @property
    def state(self) -> FieldValidationState:
        return self._machine.state

    @property
    def status(self) -> FieldStatus:
        return self._machine.status

    @property
    def announcement(self) -> str:
        """Current text for the ``aria-live="polite"`` region."""
        return self._announcer.message

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    @property
    def history(self) -> ValidationHistory:
        return self._history

    @property
    def last_error(self) -> Optional[ValidatorRejectedError]:
        """The most recent validator rejection that was applied, if any."""
        return self._last_error

    @property
    def pending(self) -> bool:
        """True while a debounce timer is armed or a debounced attempt runs."""
        return self._scheduler.pending or bool(self._tasks)

    @property
    def snapshot(self) -> FieldSnapshot:
        state = self._machine.state
        result = state.result
        failed = state.status in (FieldStatus.INVALID, FieldStatus.ERROR)
        return FieldSnapshot(
            is_valid=state.status is FieldStatus.VALID,
            is_validating=state.status is FieldStatus.VALIDATING,
            error=(result.message or INVALID_VALUE) if failed and result else None,
            warnings=result.warnings if result else (),
            suggestions=result.suggestions if result else (),
            score=result.score if result else 0,
            last_validation_timestamp=result.timestamp if result else None,
            status=state.status,
            retry_count=state.retry_count,
        )

    def get_validation_stats(self) -> ValidationStats:
        return self._history.stats(retry_count=self._machine.state.retry_count, cache_size=len(self._cache))

    # ------------------------------------------------------------------
    # Input and imperative API
    # ------------------------------------------------------------------
    def on_input(self, value: str) -> None:
        """
        Record a keystroke-driven value change and, when auto validation is on,
        (re)arm the debounce timer for it.
        """
        self._ensure_active()
        self._value = value
        if self._is_empty(value):
            self._to_idle()
            return
        if self._config.auto_validate:
            self._scheduler.schedule(value, self._config.debounce_ms, self._on_debounce_fire)

    async def validate(self, value: Optional[str] = None) -> ValidationResult:
        """
        Validate ``value`` (or the current value) immediately.

        The result is always returned to the caller. It is applied to the field
        only if no newer attempt was started in the meantime.
        """
        self._ensure_active()
        if value is None:
            value = self._value
        else:
            self._value = value
        request = self._start(value)
        return await self._run(request, use_cache=self._config.enable_memoization)

    async def retry_validation(self) -> Optional[ValidationResult]:
        """
        Re-run validation for the current value, bypassing the cache.

        :return: The new result, or None when retries are disabled, there is
                 nothing to validate, or the retry budget is spent.
        """
        self._ensure_active()
        if not self._config.enable_retry or self._is_empty(self._value):
            return None
        if self._machine.state.retry_count >= self._config.max_retry_attempts:
            self._telemetry.error(RETRY_LIMIT_EXCEEDED)
            return None
        state = self._machine.record_retry()
        self._telemetry.retry(state.retry_count)
        return await self._run(self._start(self._value), use_cache=False)

    def clear(self) -> None:
        """
        Return to IDLE: cancel the pending debounce, drop in-flight attempts,
        empty the cache and zero the retry count. Safe to call repeatedly.
        """
        self._ensure_active()
        self._scheduler.cancel()
        self._sequencer.supersede()
        self._cache.clear()
        self._last_error = None
        self._machine.reset()
        self._announcer.clear()
        self._telemetry.cleared()

    def reset(self) -> None:
        """``clear()`` and also forget the current value and the history."""
        self.clear()
        self._value = ""
        self._attempt_value = ""
        self._history.clear()

    def dispose(self) -> None:
        """Tear down timers and strand in-flight attempts. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        self._scheduler.cancel()
        self._sequencer.supersede()
        self._announcer.dispose()

    async def join(self) -> None:
        """Wait until every debounced attempt started so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Attempt pipeline
    # ------------------------------------------------------------------
    def _start(self, value: str) -> ValidationRequest:
        """Issue an attempt id and enter VALIDATING for ``value``."""
        request = ValidationRequest(value=value, attempt_id=self._sequencer.next_attempt_id())
        self._attempt_value = value
        self._announce(self._machine.begin())
        self._telemetry.validation_started(value)
        return request

    async def _run(self, request: ValidationRequest, use_cache: bool) -> ValidationResult:
        value = request.value
        started = time.perf_counter()

        if use_cache:
            cached = self._cache.get(value)
            if cached is not None:
                if not self._sequencer.is_current(request.attempt_id):
                    logger.debug("Discarding stale cache hit for attempt %d", request.attempt_id)
                    return cached
                logger.debug("Cache hit for attempt %d", request.attempt_id)
                self._apply(request, cached)
                self._track_duration("validation-cache-hit", started)
                return cached

        evaluation = self._engine.evaluate(value, self._rules)
        if self._validator is None:
            result = self._result_from_rules(value, evaluation)
        else:
            try:
                verdict = self._validator(value)
                if inspect.isawaitable(verdict):
                    verdict = await verdict
            except Exception as exc:
                return self._reject(request, exc, started)
            result = self._result_from_verdict(value, verdict, evaluation)

        if not self._sequencer.is_current(request.attempt_id):
            logger.debug("Discarding stale result for attempt %d", request.attempt_id)
            return result

        if self._config.enable_memoization:
            self._cache.put(value, result)
        self._apply(request, result)
        self._track_duration("validation-complete", started)
        return result

    def _apply(self, request: ValidationRequest, result: ValidationResult) -> None:
        self._last_error = None
        state = self._machine.accept(result)
        self._history.record(request.value, result)
        self._telemetry.validation_completed(result, request.value)
        self._announce(state)

    def _reject(self, request: ValidationRequest, exc: Exception, started: float) -> ValidationResult:
        result = ValidationResult.failure(VALIDATION_FAILED)
        if not self._sequencer.is_current(request.attempt_id):
            logger.debug("Discarding stale rejection for attempt %d", request.attempt_id)
            return result
        error = ValidatorRejectedError(request.value, exc)
        logger.error("Validator rejected attempt %d: %s", request.attempt_id, error, exc_info=exc)
        self._last_error = error
        state = self._machine.accept(result, failed=True)
        self._history.record(request.value, result)
        self._telemetry.error(str(exc) or VALIDATION_FAILED)
        self._announce(state)
        self._track_duration("validation-error", started)
        return result

    def _result_from_rules(self, value: str, evaluation: RuleEvaluation) -> ValidationResult:
        return ValidationResult(
            is_valid=evaluation.is_valid,
            message=evaluation.errors[0] if evaluation.errors else None,
            errors=evaluation.errors,
            warnings=evaluation.warnings,
            suggestions=evaluation.suggestions,
            score=self._score(value, evaluation.errors, evaluation.warnings),
        )

    def _result_from_verdict(self, value: str, verdict: Any, evaluation: RuleEvaluation) -> ValidationResult:
        # The external validator decides validity; rules add diagnostics.
        is_valid, message = _normalize_verdict(verdict)
        if is_valid:
            errors: Tuple[str, ...] = ()
        else:
            message = message or (evaluation.errors[0] if evaluation.errors else INVALID_VALUE)
            errors = (message,)
        return ValidationResult(
            is_valid=is_valid,
            message=message,
            errors=errors,
            warnings=evaluation.warnings,
            suggestions=evaluation.suggestions,
            score=self._score(value, errors, evaluation.warnings),
        )

    def _score(self, value: str, errors: Tuple[str, ...], warnings: Tuple[str, ...]) -> int:
        return calculate_score(len(errors), len(warnings))

    def _is_empty(self, value: str) -> bool:
        return not value

    def _to_idle(self) -> None:
        self._scheduler.cancel()
        self._sequencer.supersede()
        self._announce(self._machine.reset())

    def _on_debounce_fire(self, value: str) -> None:
        request = self._start(value)
        task = asyncio.ensure_future(self._run(request, use_cache=self._config.enable_memoization))
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Debounced validation failed", exc_info=exc)

    def _track_duration(self, metric: str, started: float) -> None:
        if self._config.enable_performance_tracking:
            self._telemetry.performance_metric(metric, (time.perf_counter() - started) * 1000.0)

    def _ensure_active(self) -> None:
        if self._disposed:
            raise FieldDisposedError("Field validator has been disposed")

    # ------------------------------------------------------------------
    # Announcements
    # ------------------------------------------------------------------
    def _announce(self, state: FieldValidationState) -> None:
        if not self._config.announce:
            return
        text = compose(self._describe(state)) if state.status is not FieldStatus.IDLE else ""
        if not text:
            # A state with nothing to say still replaces the previous sentence.
            self._announcer.clear()
            return
        self._announcer.announce(text)

    def _describe(self, state: FieldValidationState) -> List[Optional[str]]:
        """Sentence parts announced for ``state``; widgets extend this."""
        t = self._announcer.translate
        result = state.result
        if state.status is FieldStatus.VALIDATING:
            return [t("validating")]
        if state.status is FieldStatus.VALID:
            return [t("valid"), result.message if result else None]
        if state.status is FieldStatus.INVALID:
            return [t("invalid", message=(result.message if result else None) or INVALID_VALUE)]
        if state.status is FieldStatus.ERROR:
            return [t("error")]
        return []
