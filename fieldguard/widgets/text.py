# fieldguard/widgets/text.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import List, Optional

from fieldguard.core.state_machine import FieldStatus, FieldValidationState
from fieldguard.runtime.async_field import INVALID_VALUE, AsyncFieldValidator


class TextFieldValidator(AsyncFieldValidator):
    """
    Generic text field validation, usually backed by an external validator.
    Whitespace-only input counts as empty, and only settled results that carry
    a message are announced.
    """

    def _is_empty(self, value: str) -> bool:
        return not value.strip()

    def _describe(self, state: FieldValidationState) -> List[Optional[str]]:
        t = self._announcer.translate
        result = state.result
        if state.status is FieldStatus.VALID and result and result.message:
            return [t("text_success", message=result.message)]
        if state.status is FieldStatus.INVALID:
            return [t("text_error", message=(result.message if result else None) or INVALID_VALUE)]
        if state.status is FieldStatus.ERROR:
            return [t("error")]
        return []
