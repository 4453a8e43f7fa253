"""Two-way sync between per-field inputs and the canonical expression.

An editing form owns one CronEditor. In structured mode the five field
inputs drive the canonical string; in raw mode the user types the string
directly and inbound changes never overwrite the field inputs, so switching
modes back and forth does not lose what was typed.
"""

import logging
from enum import Enum
from typing import Any, Callable

from cron.describe import describe
from cron.fields import FIELD_NAMES
from cron.locales import Locale
from cron.validation import ValidationResult, validate_expression

logger = logging.getLogger(__name__)

EMPTY_FIELD_DEFAULT = "*"


class EditorMode(str, Enum):
    STRUCTURED = "structured"
    RAW = "raw"


class EditorModeError(RuntimeError):
    """An edit was issued in the mode that does not accept it."""


class CronEditor:
    """Editing state for one cron expression input."""

    def __init__(
        self,
        canonical: str = "",
        on_change: Callable[[str], None] | None = None,
    ) -> None:
        self._mode = EditorMode.STRUCTURED
        self._fields: list[str] = [""] * len(FIELD_NAMES)
        self._canonical = canonical
        self._on_change = on_change
        self.on_external_canonical_change(canonical)

    @property
    def mode(self) -> EditorMode:
        return self._mode

    @property
    def fields(self) -> list[str]:
        return list(self._fields)

    @property
    def canonical(self) -> str:
        return self._canonical

    def toggle_mode(self) -> EditorMode:
        """Switch between structured and raw editing. Data is left untouched."""
        if self._mode is EditorMode.STRUCTURED:
            self._mode = EditorMode.RAW
        else:
            self._mode = EditorMode.STRUCTURED
        logger.debug("Editor mode is now %s", self._mode.value)
        return self._mode

    def edit_field(self, index: int, value: str) -> str:
        """Set one field and rebuild the canonical string from all five.

        Empty fields are written as '*'.
        """
        if self._mode is not EditorMode.STRUCTURED:
            raise EditorModeError("edit_field is only allowed in structured mode")
        if not 0 <= index < len(self._fields):
            raise IndexError(f"field index {index} out of range 0..{len(self._fields) - 1}")

        self._fields[index] = value
        return self._emit(" ".join(f or EMPTY_FIELD_DEFAULT for f in self._fields))

    def edit_raw(self, text: str) -> str:
        """Replace the canonical string directly. Fields are not touched."""
        if self._mode is not EditorMode.RAW:
            raise EditorModeError("edit_raw is only allowed in raw mode")
        return self._emit(text)

    def on_external_canonical_change(self, canonical: str) -> bool:
        """Accept a canonical value pushed in from outside the editor.

        Fields are refreshed only in structured mode and only when the value
        splits into exactly five fields.

        Returns:
            True if the field inputs were overwritten.
        """
        self._canonical = canonical
        if self._mode is not EditorMode.STRUCTURED:
            return False
        parts = canonical.split(" ")
        if len(parts) != len(self._fields):
            return False
        self._fields = parts
        return True

    def describe(self, locale: Locale | str | None = None) -> str:
        return describe(self._canonical, locale)

    def validate(self) -> ValidationResult:
        return validate_expression(self._canonical)

    def snapshot(self, locale: Locale | str | None = None) -> dict[str, Any]:
        """Return the full editor state as a JSON-friendly dict."""
        return {
            "mode": self._mode.value,
            "fields": self.fields,
            "canonical": self._canonical,
            "description": self.describe(locale),
            "validation": self.validate().to_dict(),
        }

    def _emit(self, canonical: str) -> str:
        self._canonical = canonical
        if self._on_change is not None:
            self._on_change(canonical)
        return canonical
