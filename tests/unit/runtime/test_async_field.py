# tests/unit/runtime/test_async_field.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import asyncio
from unittest.mock import MagicMock

import pytest

from fieldguard.config import ValidationConfig
from fieldguard.core.errors import FieldDisposedError, ValidatorRejectedError
from fieldguard.core.results import ValidatorResponse
from fieldguard.core.state_machine import FieldStatus
from fieldguard.interfaces.protocols import AsyncValidator, TransitionHook, Translator
from fieldguard.runtime.announcer import default_translator
from fieldguard.runtime.async_field import AsyncFieldValidator
from fieldguard.runtime.telemetry import MonitoringCallbacks

QUIET = ValidationConfig(announcement_clear_ms=0)


# -----------------------------------------------------------------------------
# FIXTURES
# -----------------------------------------------------------------------------
@pytest.fixture
def rules_field(basic_rules):
    """A field validated by synchronous rules only."""
    return AsyncFieldValidator(rules=basic_rules, config=QUIET)


@pytest.fixture
def remote_field(controlled_validator, callbacks):
    """A field backed by a validator the test answers by hand."""
    return AsyncFieldValidator(validator=controlled_validator, config=QUIET, callbacks=callbacks)


# -----------------------------------------------------------------------------
# RULE-ONLY VALIDATION
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_initial_snapshot(rules_field) -> None:
    snapshot = rules_field.snapshot
    assert snapshot.status is FieldStatus.IDLE
    assert not snapshot.is_valid and not snapshot.is_validating
    assert snapshot.error is None
    assert snapshot.score == 0
    assert snapshot.last_validation_timestamp is None


@pytest.mark.asyncio
async def test_rule_failure_is_invalid(rules_field) -> None:
    result = await rules_field.validate("ab")
    assert not result.is_valid
    assert result.errors == ("Digits only",)
    assert result.score == 98

    snapshot = rules_field.snapshot
    assert snapshot.status is FieldStatus.INVALID
    assert snapshot.error == "Digits only"
    assert snapshot.last_validation_timestamp == result.timestamp
    assert rules_field.announcement == "Invalid: Digits only"


@pytest.mark.asyncio
async def test_rule_success_with_warning(rules_field) -> None:
    result = await rules_field.validate("123456")
    assert result.is_valid
    assert result.warnings == ("Keep it short",)
    assert result.score == 99
    assert rules_field.snapshot.is_valid
    assert rules_field.snapshot.warnings == ("Keep it short",)
    assert rules_field.announcement == "Valid"


@pytest.mark.asyncio
async def test_validate_without_argument_uses_current_value(rules_field) -> None:
    rules_field.on_input("12")
    result = await rules_field.validate()
    assert result.is_valid
    rules_field.dispose()


# -----------------------------------------------------------------------------
# EXTERNAL VALIDATOR
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_validating_state_while_in_flight(remote_field, controlled_validator) -> None:
    task = asyncio.create_task(remote_field.validate("1234"))
    await asyncio.sleep(0)
    assert remote_field.status is FieldStatus.VALIDATING
    assert remote_field.snapshot.is_validating
    assert remote_field.announcement == "Validating..."
    controlled_validator.resolve("1234", True)
    await task
    assert remote_field.status is FieldStatus.VALID


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "verdict,expected_valid,expected_message",
    [
        (True, True, None),
        (False, False, "Invalid value"),
        ("Code expired", False, "Code expired"),
        ("true", True, None),
        (ValidatorResponse(False, "Unknown user"), False, "Unknown user"),
        ({"isValid": True, "message": "Looks good"}, True, "Looks good"),
        ({"is_valid": False}, False, "Invalid value"),
    ],
)
async def test_verdict_shapes(verdict, expected_valid, expected_message) -> None:
    field = AsyncFieldValidator(validator=lambda value: verdict, config=QUIET)
    result = await field.validate("abc")
    assert result.is_valid is expected_valid
    assert result.message == expected_message
    assert field.status is (FieldStatus.VALID if expected_valid else FieldStatus.INVALID)


@pytest.mark.asyncio
async def test_rule_error_is_fallback_message(basic_rules) -> None:
    async def validator(value):
        return False

    field = AsyncFieldValidator(rules=basic_rules, validator=validator, config=QUIET)
    result = await field.validate("ab")
    assert result.message == "Digits only"
    assert result.errors == ("Digits only",)


@pytest.mark.asyncio
async def test_validator_decides_validity_and_rules_add_warnings(basic_rules) -> None:
    async def validator(value):
        return True

    field = AsyncFieldValidator(rules=basic_rules, validator=validator, config=QUIET)
    result = await field.validate("abcdef")
    assert result.is_valid
    assert result.errors == ()
    assert result.warnings == ("Keep it short",)
    assert result.score == 99


@pytest.mark.asyncio
async def test_rejection_is_error_not_invalid(remote_field, controlled_validator, callbacks) -> None:
    task = asyncio.create_task(remote_field.validate("1234"))
    await asyncio.sleep(0)
    controlled_validator.reject("1234", ConnectionError("timeout"))
    result = await task

    assert result.message == "Validation failed"
    assert remote_field.status is FieldStatus.ERROR
    assert remote_field.snapshot.error == "Validation failed"
    assert isinstance(remote_field.last_error, ValidatorRejectedError)
    assert isinstance(remote_field.last_error.__cause__, ConnectionError)
    callbacks.on_error.assert_called_once()
    assert callbacks.on_error.call_args[0][0] == "timeout"
    callbacks.on_validation_completed.assert_not_called()
    assert remote_field.announcement == "Validation failed"


@pytest.mark.asyncio
async def test_rejections_are_not_cached(remote_field, controlled_validator) -> None:
    task = asyncio.create_task(remote_field.validate("1234"))
    await asyncio.sleep(0)
    controlled_validator.reject("1234", RuntimeError("boom"))
    await task
    assert remote_field.cache_size == 0

    task = asyncio.create_task(remote_field.validate("1234"))
    await asyncio.sleep(0)
    controlled_validator.resolve("1234", True)
    await task
    assert controlled_validator.call_count == 2
    assert remote_field.status is FieldStatus.VALID
    assert remote_field.last_error is None


# -----------------------------------------------------------------------------
# STALENESS
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_older_attempt_resolving_last_is_ignored(remote_field, controlled_validator, callbacks) -> None:
    first = asyncio.create_task(remote_field.validate("111"))
    await asyncio.sleep(0)
    second = asyncio.create_task(remote_field.validate("222"))
    await asyncio.sleep(0)

    controlled_validator.resolve("222", True)
    newer = await second
    controlled_validator.resolve("111", False)
    older = await first

    assert not older.is_valid
    assert remote_field.status is FieldStatus.VALID
    assert remote_field.state.result is newer
    assert callbacks.on_validation_completed.call_count == 1
    callbacks.on_error.assert_not_called()


@pytest.mark.asyncio
async def test_older_attempt_resolving_first_is_ignored(remote_field, controlled_validator) -> None:
    first = asyncio.create_task(remote_field.validate("111"))
    await asyncio.sleep(0)
    second = asyncio.create_task(remote_field.validate("222"))
    await asyncio.sleep(0)

    controlled_validator.resolve("111", False)
    await first
    assert remote_field.status is FieldStatus.VALIDATING
    assert remote_field.state.result is None

    controlled_validator.resolve("222", True)
    await second
    assert remote_field.status is FieldStatus.VALID


@pytest.mark.asyncio
async def test_stale_rejection_is_silent(remote_field, controlled_validator, callbacks) -> None:
    first = asyncio.create_task(remote_field.validate("111"))
    await asyncio.sleep(0)
    second = asyncio.create_task(remote_field.validate("222"))
    await asyncio.sleep(0)
    controlled_validator.resolve("222", False)
    await second
    controlled_validator.reject("111", RuntimeError("late failure"))
    await first

    assert remote_field.status is FieldStatus.INVALID
    callbacks.on_error.assert_not_called()
    assert remote_field.last_error is None


# -----------------------------------------------------------------------------
# CACHE
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_cache_hit_skips_validator(remote_field, controlled_validator) -> None:
    task = asyncio.create_task(remote_field.validate("ABC123"))
    await asyncio.sleep(0)
    controlled_validator.resolve("ABC123", True)
    first = await task

    second = await remote_field.validate("ABC123")
    assert controlled_validator.call_count == 1
    assert second is first
    assert second.timestamp == first.timestamp
    assert remote_field.status is FieldStatus.VALID


@pytest.mark.asyncio
async def test_memoization_can_be_disabled() -> None:
    validator = MagicMock(return_value=True)
    config = ValidationConfig(enable_memoization=False, announcement_clear_ms=0)
    field = AsyncFieldValidator(validator=validator, config=config)
    await field.validate("ABC123")
    await field.validate("ABC123")
    assert validator.call_count == 2
    assert field.cache_size == 0


@pytest.mark.asyncio
async def test_cache_hit_reports_metric(callbacks) -> None:
    config = ValidationConfig(enable_performance_tracking=True, announcement_clear_ms=0)
    field = AsyncFieldValidator(validator=lambda v: True, config=config, callbacks=callbacks)
    await field.validate("x")
    await field.validate("x")
    metrics = [c[0][0] for c in callbacks.on_performance_metric.call_args_list]
    assert metrics == ["validation-complete", "validation-cache-hit"]


# -----------------------------------------------------------------------------
# CLEAR / RESET / DISPOSE
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_clear_is_idempotent(rules_field) -> None:
    await rules_field.validate("ab")
    await rules_field.validate("12")
    assert rules_field.cache_size == 2

    for _ in range(2):
        rules_field.clear()
        assert rules_field.status is FieldStatus.IDLE
        assert rules_field.state.result is None
        assert rules_field.cache_size == 0
        assert rules_field.state.retry_count == 0
        assert rules_field.announcement == ""


@pytest.mark.asyncio
async def test_clear_during_flight_stays_idle(remote_field, controlled_validator) -> None:
    task = asyncio.create_task(remote_field.validate("1234"))
    await asyncio.sleep(0)
    remote_field.clear()
    controlled_validator.resolve("1234", True)
    await task
    assert remote_field.status is FieldStatus.IDLE
    assert remote_field.cache_size == 0


@pytest.mark.asyncio
async def test_reset_forgets_value_and_history(rules_field) -> None:
    rules_field.on_input("12")
    await rules_field.validate()
    assert len(rules_field.history) == 1
    rules_field.reset()
    assert rules_field.value == ""
    assert len(rules_field.history) == 0
    assert rules_field.get_validation_stats().total == 0


@pytest.mark.asyncio
async def test_dispose_strands_in_flight_and_blocks_use(remote_field, controlled_validator) -> None:
    task = asyncio.create_task(remote_field.validate("1234"))
    await asyncio.sleep(0)
    remote_field.dispose()
    remote_field.dispose()
    controlled_validator.resolve("1234", True)
    await task
    assert remote_field.status is FieldStatus.VALIDATING
    assert not remote_field.pending
    with pytest.raises(FieldDisposedError):
        remote_field.on_input("1")
    with pytest.raises(FieldDisposedError):
        await remote_field.validate("1")
    with pytest.raises(FieldDisposedError):
        remote_field.clear()


# -----------------------------------------------------------------------------
# RETRIES
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_retry_budget(callbacks) -> None:
    validator = MagicMock(return_value=False)
    config = ValidationConfig(max_retry_attempts=2, announcement_clear_ms=0)
    field = AsyncFieldValidator(validator=validator, config=config, callbacks=callbacks)
    await field.validate("1234")

    assert (await field.retry_validation()) is not None
    assert (await field.retry_validation()) is not None
    assert (await field.retry_validation()) is None

    assert validator.call_count == 3
    assert field.state.retry_count == 2
    assert [c[0][0] for c in callbacks.on_retry.call_args_list] == [1, 2]
    assert callbacks.on_error.call_args[0][0] == "Maximum retry attempts exceeded"

    field.clear()
    assert field.state.retry_count == 0


@pytest.mark.asyncio
async def test_retry_disabled_or_empty() -> None:
    config = ValidationConfig(enable_retry=False, announcement_clear_ms=0)
    field = AsyncFieldValidator(validator=lambda v: True, config=config)
    await field.validate("x")
    assert (await field.retry_validation()) is None

    field = AsyncFieldValidator(validator=lambda v: True, config=QUIET)
    assert (await field.retry_validation()) is None


# -----------------------------------------------------------------------------
# DEBOUNCED INPUT
# -----------------------------------------------------------------------------
@pytest.mark.timing
@pytest.mark.asyncio
async def test_keystroke_burst_validates_once(fast_config, controlled_validator) -> None:
    field = AsyncFieldValidator(validator=controlled_validator, config=fast_config)
    for value in ["1", "12", "123", "1234"]:
        field.on_input(value)
    assert field.status is FieldStatus.IDLE
    assert field.pending

    await asyncio.sleep(0.05)
    assert controlled_validator.calls == ["1234"]
    assert field.status is FieldStatus.VALIDATING

    controlled_validator.resolve("1234", True)
    await field.join()
    assert field.status is FieldStatus.VALID
    assert not field.pending


@pytest.mark.timing
@pytest.mark.asyncio
async def test_empty_input_returns_to_idle(fast_config, controlled_validator) -> None:
    field = AsyncFieldValidator(validator=controlled_validator, config=fast_config)
    field.on_input("12")
    field.on_input("")
    await asyncio.sleep(0.05)
    assert controlled_validator.calls == []
    assert field.status is FieldStatus.IDLE


@pytest.mark.timing
@pytest.mark.asyncio
async def test_auto_validate_off(controlled_validator) -> None:
    config = ValidationConfig(debounce_ms=5, auto_validate=False, announcement_clear_ms=0)
    field = AsyncFieldValidator(validator=controlled_validator, config=config)
    field.on_input("1234")
    await asyncio.sleep(0.03)
    assert controlled_validator.calls == []
    assert field.value == "1234"


# -----------------------------------------------------------------------------
# TELEMETRY ISOLATION
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_faulty_callbacks_do_not_change_outcome(basic_rules) -> None:
    def explode(*args):
        raise RuntimeError("monitoring down")

    faulty = MonitoringCallbacks(
        on_validation_started=explode,
        on_validation_completed=explode,
        on_success=explode,
        on_error=explode,
        on_clear=explode,
    )
    noisy = AsyncFieldValidator(rules=basic_rules, config=QUIET, callbacks=faulty)
    silent = AsyncFieldValidator(rules=basic_rules, config=QUIET, telemetry_enabled=False)

    for value in ["ab", "1234", "123456"]:
        a = await noisy.validate(value)
        b = await silent.validate(value)
        assert (a.is_valid, a.errors, a.warnings, a.score) == (b.is_valid, b.errors, b.warnings, b.score)
        assert noisy.status is silent.status
    noisy.clear()
    assert noisy.status is FieldStatus.IDLE


@pytest.mark.asyncio
async def test_lifecycle_callbacks(callbacks) -> None:
    field = AsyncFieldValidator(rules=[], config=QUIET, callbacks=callbacks)
    await field.validate("ok")
    callbacks.on_validation_started.assert_called_once()
    callbacks.on_validation_completed.assert_called_once()
    callbacks.on_success.assert_called_once()
    field.clear()
    callbacks.on_clear.assert_called_once()


# -----------------------------------------------------------------------------
# HOOKS / STATS
# -----------------------------------------------------------------------------
@pytest.mark.asyncio
async def test_external_hooks_observe_transitions(basic_rules) -> None:
    hook = MagicMock()
    field = AsyncFieldValidator(rules=basic_rules, config=QUIET, hooks=[hook])
    await field.validate("12")
    statuses = [c[0][1].status for c in hook.on_transition.call_args_list]
    assert statuses == [FieldStatus.VALIDATING, FieldStatus.VALID]


@pytest.mark.asyncio
async def test_validation_stats(rules_field) -> None:
    await rules_field.validate("ab")
    await rules_field.validate("12")
    stats = rules_field.get_validation_stats()
    assert stats.total == 2
    assert stats.successful == 1
    assert stats.cache_size == 2
    assert stats.success_rate == 50.0


def test_collaborators_satisfy_protocols(controlled_validator) -> None:
    assert isinstance(controlled_validator, AsyncValidator)
    assert isinstance(default_translator, Translator)
    assert isinstance(MagicMock(spec=["on_transition"]), TransitionHook)
