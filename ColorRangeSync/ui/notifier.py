"""Fan-out of committed range state to UI fields and listeners.

RangeNotifier is the only path from the transition engine to the outside
world. It writes field sinks under ReentrancyGuard suppression and mirrors
every notification as a Qt signal so widgets can connect to it directly.
It never calls back into the engine.
"""

from __future__ import annotations

import logging
from typing import FrozenSet, List, Optional

from PySide6.QtCore import QObject, Signal

from ..core.errors import FIELD_LOG, FIELD_MAX, FIELD_MIN, FIELD_PALETTE, FIELD_SCHEME, RangeValidationError
from ..core.guard import GuardedField, ReentrancyGuard
from ..core.model import NONE_SCHEME, RangeModel
from ..core.providers import FieldSink, PaletteProvider

logger = logging.getLogger(__name__)

_FIELD_GUARDS = {
    FIELD_MIN: GuardedField.MIN_EDIT,
    FIELD_MAX: GuardedField.MAX_EDIT,
    FIELD_LOG: GuardedField.LOG_TOGGLE,
    FIELD_PALETTE: GuardedField.CHOOSER_EVENT,
    FIELD_SCHEME: GuardedField.SCHEME_SELECTOR,
}

_COMMIT_FIELDS = frozenset({FIELD_MIN, FIELD_MAX, FIELD_LOG, FIELD_PALETTE})


class RangeNotifier(QObject):
    """Pushes committed RangeModel snapshots to sinks and signal listeners.

    Emits:
        committed(object): New RangeModel after every commit
        fields_written(float, float, bool): (min, max, log) written to the sinks
        chooser_mode_changed(bool, bool): (log display, discrete display)
        scheme_reset(object): NONE_SCHEME after manual edits broke a scheme
        scheme_indicator_changed(bool): "Modified scheme" indicator visibility
        message(str, str): (message code, user-facing text)
    """

    committed = Signal(object)
    fields_written = Signal(float, float, bool)
    chooser_mode_changed = Signal(bool, bool)
    scheme_reset = Signal(object)
    scheme_indicator_changed = Signal(bool)
    message = Signal(str, str)

    def __init__(
        self,
        guard: ReentrancyGuard,
        palette_provider: Optional[PaletteProvider] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.guard = guard
        self.palette_provider = palette_provider
        self._sinks: List[FieldSink] = []
        self._indicator_visible = False
        self.last_message: Optional[str] = None

    # ------------------------ Sinks ------------------------
    def add_sink(self, sink: FieldSink) -> None:
        if sink not in self._sinks:
            self._sinks.append(sink)

    def remove_sink(self, sink: FieldSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    @property
    def sinks(self) -> List[FieldSink]:
        return list(self._sinks)

    @property
    def scheme_indicator_visible(self) -> bool:
        return self._indicator_visible

    # ------------------------ Engine-facing API ------------------------
    def publish(self, model: RangeModel, previous: RangeModel, scheme_cleared: bool) -> None:
        """Fan out a committed state."""
        fields = _COMMIT_FIELDS
        if scheme_cleared or model.scheme is not previous.scheme:
            fields = fields | {FIELD_SCHEME}
        self.write_fields(model, fields)
        self.chooser_mode_changed.emit(model.log_scaled, model.palette.discrete)
        if scheme_cleared:
            logger.debug("Scheme broken by manual change, resetting selector")
            self.scheme_reset.emit(NONE_SCHEME)
        self._update_indicator(model)
        self.committed.emit(model)

    def restore_fields(self, model: RangeModel, fields: FrozenSet[str]) -> None:
        """Write committed values back to the given fields."""
        if not fields:
            return
        self.write_fields(model, fields)
        if FIELD_SCHEME in fields:
            self._update_indicator(model)

    def report(self, error: RangeValidationError) -> None:
        """Send a validation message to listeners."""
        self.last_message = error.message
        self.message.emit(error.message_code, error.message)

    # ------------------------ Field writes ------------------------
    def write_fields(self, model: RangeModel, fields: FrozenSet[str]) -> None:
        """Write ``fields`` of ``model`` to every sink with their guards held."""
        guarded = [_FIELD_GUARDS[f] for f in fields if f in _FIELD_GUARDS]
        if not guarded:
            return
        with self.guard.suppress(*guarded):
            for sink in list(self._sinks):
                if FIELD_MIN in fields:
                    sink.write_min(model.min)
                if FIELD_MAX in fields:
                    sink.write_max(model.max)
                if FIELD_LOG in fields:
                    sink.write_log(model.log_scaled)
                if FIELD_PALETTE in fields:
                    sink.write_palette(model.palette, model.log_scaled)
                if FIELD_SCHEME in fields:
                    sink.write_scheme(model.scheme or NONE_SCHEME)
        self.fields_written.emit(model.min, model.max, model.log_scaled)

    def _update_indicator(self, model: RangeModel) -> None:
        visible = self.scheme_modified(model)
        if visible != self._indicator_visible:
            self._indicator_visible = visible
            for sink in list(self._sinks):
                sink.set_scheme_indicator_visible(visible)
            self.scheme_indicator_changed.emit(visible)

    def scheme_modified(self, model: RangeModel) -> bool:
        """True if a scheme is selected but the state no longer matches its declaration."""
        scheme = model.scheme
        if scheme is None:
            return False
        palette = None
        if self.palette_provider is not None and scheme.palette_id is not None:
            palette = self.palette_provider.get_palette(scheme.palette_id)
        return not model.matches_scheme(scheme, palette)
