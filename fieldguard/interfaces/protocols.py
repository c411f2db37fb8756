# fieldguard/interfaces/protocols.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import TYPE_CHECKING, Any, Awaitable, List, Mapping, Protocol, Union, runtime_checkable

from fieldguard.core.results import ValidatorResponse

if TYPE_CHECKING:
    from fieldguard.core.state_machine import FieldValidationState
    from fieldguard.runtime.history import HistoryEntry

Verdict = Union[bool, str, ValidatorResponse, Mapping[str, Any]]


@runtime_checkable
class AsyncValidator(Protocol):
    """
    Externally supplied validator.

    Methods:
        __call__(value): Returns a verdict, or an awaitable resolving to one.

    Accepted verdicts:
    - ``bool``
    - ``str``: a failure message (the literal ``"true"`` is a pass)
    - ``ValidatorResponse``
    - a mapping with ``is_valid`` (or ``isValid``) and optional ``message``

    Error Handling:
    - Raising is allowed and is reported as the ERROR status. Timeouts are the
      validator's own responsibility.
    """

    def __call__(self, value: str) -> Union[Verdict, Awaitable[Verdict]]:
        ...


@runtime_checkable
class Translator(Protocol):
    """
    String lookup used for announcements.

    Methods:
        __call__(key, params): Returns the localized string for ``key`` with
        ``params`` interpolated.
    """

    def __call__(self, key: str, params: Mapping[str, Any]) -> str:
        ...


@runtime_checkable
class HistoryStore(Protocol):
    """
    Persistence port for validation history. Lifetime is the owning field.

    Methods:
        load(): Returns previously saved entries, oldest first.
        save(entries): Replaces the stored entries.
    """

    def load(self) -> List["HistoryEntry"]:
        ...

    def save(self, entries: List["HistoryEntry"]) -> None:
        ...


@runtime_checkable
class TransitionHook(Protocol):
    """
    Observer notified after every validation state transition.
    """

    def on_transition(self, previous: "FieldValidationState", current: "FieldValidationState") -> None:
        ...
