"""Re-entrancy fence for programmatic field writes.

Widgets report programmatic value changes the same way they report user
edits. While the engine (or the notifier) writes a field, that field's change
notifications must be ignored, otherwise the write would re-enter the engine.
The guard keeps one suppression flag per independently editable field plus
a single "in flight" marker for the trigger currently being processed.
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import FrozenSet, Iterator


class GuardedField(Enum):
    MIN_EDIT = "min_edit"
    MAX_EDIT = "max_edit"
    LOG_TOGGLE = "log_toggle"
    CHOOSER_EVENT = "chooser_event"
    SCHEME_SELECTOR = "scheme_selector"


ALL_FIELDS = frozenset(GuardedField)


class ReentrancyGuard:
    """Per-field suppression set with scoped acquisition.

    Example:
        >>> guard = ReentrancyGuard()
        >>> with guard.suppress(GuardedField.MIN_EDIT):
        ...     guard.is_suppressed(GuardedField.MIN_EDIT)
        True
        >>> guard.is_suppressed(GuardedField.MIN_EDIT)
        False
    """

    def __init__(self):
        self._suppressed: FrozenSet[GuardedField] = frozenset()
        self._in_flight = False

    @property
    def suppressed(self) -> FrozenSet[GuardedField]:
        return self._suppressed

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def is_suppressed(self, field: GuardedField) -> bool:
        return field in self._suppressed

    @property
    def min_edit_suppressed(self) -> bool:
        return self.is_suppressed(GuardedField.MIN_EDIT)

    @property
    def max_edit_suppressed(self) -> bool:
        return self.is_suppressed(GuardedField.MAX_EDIT)

    @property
    def log_toggle_suppressed(self) -> bool:
        return self.is_suppressed(GuardedField.LOG_TOGGLE)

    @property
    def chooser_event_suppressed(self) -> bool:
        return self.is_suppressed(GuardedField.CHOOSER_EVENT)

    @contextmanager
    def suppress(self, *fields: GuardedField) -> Iterator["ReentrancyGuard"]:
        """Suppress change notifications of ``fields`` for the block.

        With no arguments every field is suppressed. The previous set is
        restored on exit, so nested scopes release only what they acquired.
        """
        previous = self._suppressed
        self._suppressed = previous | (frozenset(fields) if fields else ALL_FIELDS)
        try:
            yield self
        finally:
            self._suppressed = previous

    @contextmanager
    def flight(self) -> Iterator["ReentrancyGuard"]:
        """Mark a top-level trigger as being processed."""
        if self._in_flight:
            raise RuntimeError("A trigger is already in flight")
        self._in_flight = True
        try:
            yield self
        finally:
            self._in_flight = False
