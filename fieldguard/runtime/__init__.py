"""
Runtime package: everything that touches the event loop or outlives a
single call.

- timers: debounce scheduling
- sequencer: attempt ids and staleness checks
- cache: bounded FIFO result memo
- telemetry: monitoring callback fan-out
- announcer: live-region messages
- history: applied results and their persistence port
- async_field: the per-field controller tying the above together
"""

from .announcer import DEFAULT_MESSAGES, LiveRegionAnnouncer, compose, default_translator
from .async_field import AsyncFieldValidator, FieldSnapshot
from .cache import ResultCache
from .history import HistoryEntry, InMemoryHistoryStore, ValidationHistory, ValidationStats
from .sequencer import Sequencer
from .telemetry import MonitoringCallbacks, TelemetryEmitter
from .timers import DebounceScheduler

__all__ = [
    "DEFAULT_MESSAGES",
    "LiveRegionAnnouncer",
    "compose",
    "default_translator",
    "AsyncFieldValidator",
    "FieldSnapshot",
    "ResultCache",
    "HistoryEntry",
    "InMemoryHistoryStore",
    "ValidationHistory",
    "ValidationStats",
    "Sequencer",
    "MonitoringCallbacks",
    "TelemetryEmitter",
    "DebounceScheduler",
]
