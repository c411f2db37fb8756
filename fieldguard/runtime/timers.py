# fieldguard/runtime/timers.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from fieldguard.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class DebounceScheduler:
    """
    Coalesces a burst of ``schedule`` calls into a single callback that fires
    once the burst has been quiet for the requested delay. Only one timer is
    ever pending; scheduling again replaces it without firing the old one.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        :param loop: Event loop to schedule on. Defaults to the running loop at
                     the time ``schedule`` is called.
        """
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        """True while a timer is armed and has not fired."""
        return self._handle is not None

    def schedule(self, value: Any, delay_ms: int, on_fire: Callable[[Any], None]) -> None:
        """
        Arm the timer for ``value``, replacing any pending one.

        :param value: Passed to ``on_fire`` when the timer fires.
        :param delay_ms: Quiet period in milliseconds.
        :param on_fire: Callback invoked with ``value``.
        :raises ConfigurationError: If ``delay_ms`` is negative.
        """
        if delay_ms < 0:
            raise ConfigurationError("Debounce delay must not be negative", {"delay_ms": delay_ms})
        self.cancel()
        loop = self._loop or asyncio.get_running_loop()
        self._handle = loop.call_later(delay_ms / 1000.0, self._fire, value, on_fire)

    def cancel(self) -> None:
        """Drop the pending timer, if any. Safe to call repeatedly."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug("Debounce timer cancelled")

    def _fire(self, value: Any, on_fire: Callable[[Any], None]) -> None:
        self._handle = None
        on_fire(value)
