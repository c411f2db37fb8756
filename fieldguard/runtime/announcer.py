# fieldguard/runtime/announcer.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from fieldguard.runtime.timers import DebounceScheduler

logger = logging.getLogger(__name__)

DEFAULT_MESSAGES: Dict[str, str] = {
    "validating": "Validating...",
    "valid": "Valid",
    "invalid": "Invalid: {message}",
    "error": "Validation failed",
    "rules": "Rules: {rules}",
    "rule_met": "{label}: met",
    "rule_missing": "{label}: missing",
    "otp_complete": "Code complete",
    "otp_progress": "{length} of {total} characters entered",
    "password_strength": "Password strength: {strength}",
    "strength_very_weak": "Very weak",
    "strength_weak": "Weak",
    "strength_fair": "Fair",
    "strength_strong": "Strong",
    "strength_very_strong": "Very strong",
    "text_error": "Error: {message}",
    "text_success": "Success: {message}",
}


def default_translator(key: str, params: Mapping[str, Any]) -> str:
    """
    Look ``key`` up in ``DEFAULT_MESSAGES`` and interpolate ``params``. Unknown
    keys come back unchanged.
    """
    template = DEFAULT_MESSAGES.get(key)
    if template is None:
        return key
    try:
        return template.format(**params)
    except (KeyError, IndexError):
        return template


def compose(parts: Iterable[Optional[str]]) -> str:
    """Join the non-empty parts into one sentence."""
    return ". ".join(part for part in parts if part)


class LiveRegionAnnouncer:
    """
    Publishes one message at a time to a polite live region. New messages
    replace the current one instead of queueing behind it, and published
    messages are cleared after a delay so that the same text can be announced
    again later.
    """

    def __init__(
        self,
        translate: Optional[Callable[[str, Mapping[str, Any]], str]] = None,
        clear_after_ms: int = 1000,
        settle_ms: int = 0,
        on_publish: Optional[Callable[[str], None]] = None,
    ) -> None:
        """
        :param translate: String lookup; defaults to ``default_translator``.
        :param clear_after_ms: Delay before a published message is cleared; 0 keeps it.
        :param settle_ms: Quiet period before publishing; 0 publishes at once.
        :param on_publish: Called with every new region text, including "".
        """
        self._translate = translate or default_translator
        self._clear_after_ms = clear_after_ms
        self._settle_ms = settle_ms
        self._on_publish = on_publish
        self._message = ""
        self._settle = DebounceScheduler()
        self._clear_handle: Optional[asyncio.TimerHandle] = None

    @property
    def message(self) -> str:
        """Text currently in the live region."""
        return self._message

    def translate(self, key: str, **params: Any) -> str:
        try:
            return self._translate(key, params)
        except Exception:
            logger.exception("Translation of %s failed", key)
            return default_translator(key, params)

    def announce(self, text: str) -> None:
        """
        Replace the pending or current announcement with ``text``.
        """
        if not text:
            return
        if self._settle_ms > 0:
            self._settle.schedule(text, self._settle_ms, self._publish)
        else:
            self._publish(text)

    def clear(self) -> None:
        """Drop any pending announcement and empty the region."""
        self._settle.cancel()
        self._cancel_clear()
        self._set("")

    def dispose(self) -> None:
        self._settle.cancel()
        self._cancel_clear()

    def _publish(self, text: str) -> None:
        self._cancel_clear()
        if text == self._message:
            # Screen readers only speak changes; blank the region first.
            self._set("")
        self._set(text)
        if self._clear_after_ms > 0:
            loop = asyncio.get_running_loop()
            self._clear_handle = loop.call_later(self._clear_after_ms / 1000.0, self._expire)

    def _expire(self) -> None:
        self._clear_handle = None
        self._set("")

    def _cancel_clear(self) -> None:
        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None

    def _set(self, text: str) -> None:
        self._message = text
        if self._on_publish is None:
            return
        try:
            self._on_publish(text)
        except Exception:
            logger.exception("Live region publish callback failed")
