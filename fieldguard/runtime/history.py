# fieldguard/runtime/history.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, List, Optional

from fieldguard.core.results import ValidationResult
from fieldguard.interfaces.protocols import HistoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HistoryEntry:
    value: str
    result: ValidationResult
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ValidationStats:
    """Aggregate view of a field's validation history."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    success_rate: float = 0.0
    average_score: int = 0
    retry_count: int = 0
    cache_size: int = 0


class InMemoryHistoryStore:
    """History store that lives and dies with its field."""

    def __init__(self) -> None:
        self._entries: List[HistoryEntry] = []

    def load(self) -> List[HistoryEntry]:
        return list(self._entries)

    def save(self, entries: List[HistoryEntry]) -> None:
        self._entries = list(entries)


class ValidationHistory:
    """
    Most recent applied results for one field, persisted through a
    ``HistoryStore``.
    """

    def __init__(self, limit: int = 50, store: Optional[HistoryStore] = None) -> None:
        """
        :param limit: Number of entries kept; 0 disables recording.
        :param store: Persistence port; defaults to ``InMemoryHistoryStore``.
        """
        self._store = store if store is not None else InMemoryHistoryStore()
        self._entries: Deque[HistoryEntry] = deque(maxlen=limit)
        self._limit = limit
        if limit:
            self._entries.extend(self._load()[-limit:])

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, value: str, result: ValidationResult) -> None:
        if not self._limit:
            return
        self._entries.append(HistoryEntry(value=value, result=result))
        self._save()

    def clear(self) -> None:
        self._entries.clear()
        self._save()

    def stats(self, retry_count: int = 0, cache_size: int = 0) -> ValidationStats:
        total = len(self._entries)
        successful = sum(1 for entry in self._entries if entry.result.is_valid)
        average: Optional[float] = None
        if total:
            average = sum(entry.result.score for entry in self._entries) / total
        return ValidationStats(
            total=total,
            successful=successful,
            failed=total - successful,
            success_rate=(successful / total) * 100 if total else 0.0,
            average_score=round(average) if average is not None else 0,
            retry_count=retry_count,
            cache_size=cache_size,
        )

    def _load(self) -> List[HistoryEntry]:
        try:
            return list(self._store.load())
        except Exception:
            logger.exception("Loading validation history failed")
            return []

    def _save(self) -> None:
        try:
            self._store.save(list(self._entries))
        except Exception:
            logger.exception("Saving validation history failed")
