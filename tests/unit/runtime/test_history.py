# tests/unit/runtime/test_history.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from unittest.mock import MagicMock

from fieldguard.core.results import ValidationResult
from fieldguard.interfaces.protocols import HistoryStore
from fieldguard.runtime.history import HistoryEntry, InMemoryHistoryStore, ValidationHistory


def test_in_memory_store_satisfies_protocol() -> None:
    assert isinstance(InMemoryHistoryStore(), HistoryStore)


def test_record_and_limit() -> None:
    history = ValidationHistory(limit=3)
    for i in range(5):
        history.record(str(i), ValidationResult(is_valid=True))
    assert [entry.value for entry in history.entries] == ["2", "3", "4"]


def test_zero_limit_disables_recording() -> None:
    history = ValidationHistory(limit=0)
    history.record("x", ValidationResult(is_valid=True))
    assert len(history) == 0


def test_loads_and_saves_through_store() -> None:
    store = InMemoryHistoryStore()
    store.save([HistoryEntry("old", ValidationResult(is_valid=False))])
    history = ValidationHistory(limit=10, store=store)
    assert [entry.value for entry in history.entries] == ["old"]
    history.record("new", ValidationResult(is_valid=True))
    assert [entry.value for entry in store.load()] == ["old", "new"]
    history.clear()
    assert store.load() == []


def test_failing_store_save_is_contained() -> None:
    store = MagicMock()
    store.load.return_value = []
    store.save.side_effect = OSError("disk full")
    history = ValidationHistory(limit=5, store=store)
    history.record("x", ValidationResult(is_valid=True))
    assert len(history) == 1


def test_failing_store_load_starts_empty() -> None:
    store = MagicMock()
    store.load.side_effect = OSError("corrupt history")
    history = ValidationHistory(limit=5, store=store)
    assert len(history) == 0
    history.record("x", ValidationResult(is_valid=True))
    store.save.assert_called_once()


def test_stats() -> None:
    history = ValidationHistory()
    history.record("a", ValidationResult(is_valid=True, score=100))
    history.record("b", ValidationResult(is_valid=False, score=95))
    history.record("c", ValidationResult(is_valid=False, score=90))
    stats = history.stats(retry_count=1, cache_size=3)
    assert stats.total == 3
    assert stats.successful == 1
    assert stats.failed == 2
    assert round(stats.success_rate, 2) == 33.33
    assert stats.average_score == 95
    assert stats.retry_count == 1
    assert stats.cache_size == 3


def test_empty_stats() -> None:
    stats = ValidationHistory().stats()
    assert stats.total == 0
    assert stats.success_rate == 0.0
    assert stats.average_score == 0
