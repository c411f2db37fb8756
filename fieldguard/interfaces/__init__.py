"""Runtime-checkable protocols for the collaborators a field consumes."""

from .protocols import AsyncValidator, HistoryStore, TransitionHook, Translator

__all__ = ["AsyncValidator", "HistoryStore", "TransitionHook", "Translator"]
