# fieldguard/runtime/cache.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Optional

from fieldguard.core.errors import ConfigurationError
from fieldguard.core.results import ValidationResult

logger = logging.getLogger(__name__)


class ResultCache:
    """
    Bounded memo of ``value -> ValidationResult`` for a single field.

    Eviction is FIFO by first insertion: a lookup does not refresh an entry,
    and neither does replacing the result of an existing key.
    """

    def __init__(self, max_entries: int = 100) -> None:
        """
        :param max_entries: Entry bound; 0 disables storage.
        """
        if max_entries < 0:
            raise ConfigurationError("Cache bound must not be negative", {"max_entries": max_entries})
        self._max_entries = max_entries
        self._entries: "OrderedDict[str, ValidationResult]" = OrderedDict()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, value: str) -> Optional[ValidationResult]:
        return self._entries.get(value)

    def put(self, value: str, result: ValidationResult) -> None:
        if self._max_entries == 0:
            return
        if value in self._entries:
            self._entries[value] = result
            return
        while len(self._entries) >= self._max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cached result for %r", evicted)
        self._entries[value] = result

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, value: object) -> bool:
        return value in self._entries
