# fieldguard/runtime/sequencer.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details


class Sequencer:
    """
    Issues monotonically increasing attempt ids for one field and answers
    whether a finished attempt is still the latest one. Superseded attempts are
    allowed to finish; their results are simply not applied.
    """

    def __init__(self) -> None:
        self._latest = 0

    @property
    def latest(self) -> int:
        """Highest id issued so far (0 before the first attempt)."""
        return self._latest

    def next_attempt_id(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, attempt_id: int) -> bool:
        return attempt_id == self._latest

    def supersede(self) -> None:
        """Make every outstanding attempt stale without starting a new one."""
        self._latest += 1
