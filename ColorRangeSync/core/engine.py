"""Single-flight transition engine for display range state.

Every trigger runs a complete ``IDLE -> VALIDATING -> (COMMITTING ->) IDLE``
cycle:

1. A candidate RangeModel is computed from the trigger payload and the last
   committed state.
2. The candidate is validated. A failure restores the committed values to
   the originating field(s) and reports a message; nothing is committed.
3. The candidate is committed only if it differs from the committed state.
   Commits from any trigger other than ApplyScheme drop the active scheme.

Triggers submitted while another one is being processed (typically from an
observer callback) are queued and run once the current one has finished.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, FrozenSet, List, Optional, Protocol, Tuple

from .constants import DEFAULT_MAX, DEFAULT_MIN, SCHEME_PALETTE_FROM_SCHEME, SCHEME_RANGE_FROM_DATA
from .errors import (
    FIELD_LOG,
    FIELD_MAX,
    FIELD_MIN,
    FIELD_PALETTE,
    FIELD_SCHEME,
    RangeValidationError,
    SchemeDisabledError,
    StatisticsUnavailableError,
)
from .events import (
    Accepted,
    ApplyScheme,
    EditMax,
    EditMin,
    InvertPalette,
    LoadFromDataStatistics,
    LoadFromPaletteFile,
    Rejected,
    SelectFromChooser,
    ToggleDiscrete,
    ToggleLog,
    TriggerEvent,
    ValidationOutcome,
)
from .guard import ReentrancyGuard
from .model import RangeModel
from .preferences import RangePreferences
from .providers import PaletteProvider, Statistics, StatisticsProvider
from .validation import (
    check_bounds_ordered,
    check_log_compatible,
    parse_numeric,
    validate_range,
)

logger = logging.getLogger(__name__)

RANGE_FIELDS = frozenset({FIELD_MIN, FIELD_MAX})
ALL_FIELDS = frozenset({FIELD_MIN, FIELD_MAX, FIELD_LOG, FIELD_PALETTE, FIELD_SCHEME})


class EngineState(Enum):
    IDLE = "Idle"
    VALIDATING = "Validating"
    COMMITTING = "Committing"


class TransitionObserver(Protocol):
    """What the engine needs from its notifier."""

    def publish(self, model: RangeModel, previous: RangeModel, scheme_cleared: bool) -> None: ...

    def restore_fields(self, model: RangeModel, fields: FrozenSet[str]) -> None: ...

    def report(self, error: RangeValidationError) -> None: ...


@dataclass
class _Candidate:
    """A proposed state plus bookkeeping for the commit step.

    Attributes:
        model: Proposed state
        touched: Fields whose user text fed the candidate; rewritten even on no-op
        recovered: Errors recovered by falling back to committed values
        clears_scheme: Commit drops the active scheme
    """

    model: RangeModel
    touched: FrozenSet[str] = frozenset()
    recovered: List[RangeValidationError] = field(default_factory=list)
    clears_scheme: bool = True


# Fields restored when a trigger of the given type is rejected
_RESTORE_ON_REJECT = {
    LoadFromPaletteFile: RANGE_FIELDS,
    LoadFromDataStatistics: RANGE_FIELDS,
    EditMin: frozenset({FIELD_MIN}),
    EditMax: frozenset({FIELD_MAX}),
    ToggleLog: frozenset({FIELD_LOG}),
    ToggleDiscrete: frozenset({FIELD_PALETTE}),
    InvertPalette: RANGE_FIELDS | {FIELD_PALETTE},
    SelectFromChooser: ALL_FIELDS - {FIELD_SCHEME},
    ApplyScheme: frozenset({FIELD_SCHEME}),
}


class TransitionEngine:
    """Validates triggers against the committed RangeModel and commits them.

    Args:
        model: Initial committed state
        notifier: Receives commits, field restores and error reports
        guard: Re-entrancy guard shared with the notifier and UI bindings
        statistics_provider: Source of observed min/max for the bound data
        raster: Data source handed to ``statistics_provider``
        palette_provider: Palette lookup used when applying schemes
        preferences: Scheme preferences
    """

    def __init__(
        self,
        model: RangeModel,
        notifier: TransitionObserver,
        guard: Optional[ReentrancyGuard] = None,
        statistics_provider: Optional[StatisticsProvider] = None,
        raster: Any = None,
        palette_provider: Optional[PaletteProvider] = None,
        preferences: Optional[RangePreferences] = None,
    ):
        self._model = model
        self._notifier = notifier
        self._guard = guard if guard is not None else ReentrancyGuard()
        self.statistics_provider = statistics_provider
        self.raster = raster
        self.palette_provider = palette_provider
        self.preferences = preferences if preferences is not None else RangePreferences()
        self._state = EngineState.IDLE
        self._queue: Deque[TriggerEvent] = deque()
        self.commit_count = 0

        self._handlers = {
            LoadFromPaletteFile: self._from_palette_file,
            LoadFromDataStatistics: self._from_data_statistics,
            EditMin: self._from_min_field,
            EditMax: self._from_max_field,
            ToggleLog: self._from_log_toggle,
            ToggleDiscrete: self._from_discrete_toggle,
            InvertPalette: self._from_invert_palette,
            SelectFromChooser: self._from_palette_chooser,
            ApplyScheme: self._from_scheme,
        }

    # ------------------------ Properties ------------------------
    @property
    def current(self) -> RangeModel:
        """The last committed state."""
        return self._model

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def guard(self) -> ReentrancyGuard:
        return self._guard

    @property
    def pending(self) -> int:
        """Number of triggers waiting behind the one in flight."""
        return len(self._queue)

    # ------------------------ Public API ------------------------
    def submit(self, event: TriggerEvent) -> Optional[ValidationOutcome]:
        """Process a trigger, or queue it if another one is in flight.

        Returns:
            The outcome of ``event``, or None if it was queued. Queued
            triggers run before the call that is currently draining returns.
        """
        if type(event) not in self._handlers:
            raise TypeError(f"Unsupported trigger: {event!r}")

        self._queue.append(event)
        if self._guard.in_flight:
            logger.debug("Queued %s behind in-flight trigger", event.kind.value)
            return None

        outcome = None
        first = True
        try:
            while self._queue:
                queued = self._queue.popleft()
                with self._guard.flight():
                    result = self._process(queued)
                if first:
                    outcome = result
                    first = False
        except Exception:
            self._queue.clear()
            raise
        return outcome

    def reset(self, model: RangeModel, sync_fields: bool = True) -> None:
        """Replace the committed state without a commit notification.

        Used when the widget is rebound to another data source.
        """
        if self._guard.in_flight:
            raise RuntimeError("Cannot reset while a trigger is in flight")
        self._model = model
        self._queue.clear()
        if sync_fields:
            self._notifier.restore_fields(model, ALL_FIELDS)

    # ------------------------ Processing ------------------------
    def _process(self, event: TriggerEvent) -> ValidationOutcome:
        current = self._model
        logger.debug("%s: start (min=%s max=%s log=%s)", event.kind.value, current.min, current.max, current.log_scaled)
        self._state = EngineState.VALIDATING
        try:
            try:
                candidate = self._handlers[type(event)](event, current)
            except RangeValidationError as e:
                return self._reject(event, e, current)

            for error in candidate.recovered:
                logger.warning("%s: recovered from %s: %s", event.kind.value, error.kind.value, error.message)
                self._notifier.report(error)

            if self._is_noop(candidate, current):
                logger.debug("%s: no value change", event.kind.value)
                fields = candidate.touched | self._restored_fields(candidate)
                if fields:
                    self._notifier.restore_fields(current, frozenset(fields))
                return Accepted(current, committed=False)

            return self._commit(event, candidate, current)
        finally:
            self._state = EngineState.IDLE

    def _commit(self, event: TriggerEvent, candidate: _Candidate, current: RangeModel) -> Accepted:
        self._state = EngineState.COMMITTING
        new = candidate.model
        if candidate.clears_scheme and new.scheme is not None:
            new = new.with_changes(scheme=None)
        scheme_cleared = candidate.clears_scheme and current.scheme is not None

        self._model = new
        self.commit_count += 1
        logger.info(
            "%s: committed min=%s max=%s log=%s%s",
            event.kind.value,
            new.min,
            new.max,
            new.log_scaled,
            " (scheme cleared)" if scheme_cleared else "",
        )
        self._notifier.publish(new, current, scheme_cleared)
        return Accepted(new)

    def _reject(self, event: TriggerEvent, error: RangeValidationError, current: RangeModel) -> Rejected:
        logger.warning("%s: rejected (%s): %s", event.kind.value, error.kind.value, error.message)
        self._notifier.restore_fields(current, _RESTORE_ON_REJECT[type(event)])
        self._notifier.report(error)
        return Rejected(error, current)

    @staticmethod
    def _is_noop(candidate: _Candidate, current: RangeModel) -> bool:
        if candidate.clears_scheme:
            # Scheme identity is not a value of its own for non-scheme triggers
            return candidate.model == current
        return candidate.model.value_equals(current)

    @staticmethod
    def _restored_fields(candidate: _Candidate) -> FrozenSet[str]:
        return frozenset(e.field for e in candidate.recovered if e.field)

    # ------------------------ Candidate helpers ------------------------
    @staticmethod
    def _with_range(current: RangeModel, min_value: float, max_value: float, log_scaled: bool) -> RangeModel:
        """Candidate with new bounds/scaling and the current palette spread over them."""
        if (min_value, max_value, log_scaled) == (current.min, current.max, current.log_scaled):
            return current
        palette = current.palette.distributed(min_value, max_value, current.log_scaled, log_scaled)
        return current.with_changes(
            min=float(min_value),
            max=float(max_value),
            log_scaled=bool(log_scaled),
            palette=palette,
            auto_distribute=True,
            scheme=None,
        )

    def _statistics(self) -> Statistics:
        if self.statistics_provider is None:
            raise StatisticsUnavailableError("No statistics provider is available")
        try:
            stats = self.statistics_provider.get_statistics(self.raster)
        except Exception as e:
            logger.exception("Statistics provider failed")
            raise StatisticsUnavailableError(f"Statistics could not be computed: {e}") from e
        if stats is None:
            raise StatisticsUnavailableError("Statistics are not available for this data")
        return stats

    def _general_range(self, current: RangeModel) -> Tuple[float, float]:
        """Linear bounds of the general (scheme-less) display.

        Data statistics first, then the palette file bounds, then the defaults.
        """
        candidates = []
        try:
            stats = self._statistics()
        except StatisticsUnavailableError as e:
            logger.debug("General display without statistics: %s", e.message)
        else:
            candidates.append((stats.min, stats.max))
        candidates.append(current.palette.file_bounds())
        for min_value, max_value in candidates:
            try:
                validate_range(min_value, max_value, False)
            except RangeValidationError:
                continue
            return float(min_value), float(max_value)
        return DEFAULT_MIN, DEFAULT_MAX

    @staticmethod
    def _pending_value(text: Optional[str], committed: float, field_name: str, other: float, log_scaled: bool):
        """Parse a pending field edit, falling back to the committed value.

        Returns:
            (value, error) where error is None when the text was usable.
        """
        if text is None:
            return committed, None
        try:
            value = parse_numeric(text, field_name)
            if field_name == FIELD_MIN:
                check_bounds_ordered(value, other, FIELD_MIN)
                check_log_compatible(value, other, log_scaled, FIELD_MIN)
            else:
                check_bounds_ordered(other, value, FIELD_MAX)
                check_log_compatible(other, value, log_scaled, FIELD_MAX)
        except RangeValidationError as e:
            return committed, e
        return value, None

    def _pending_range(
        self, event, current: RangeModel, log_scaled: bool
    ) -> Tuple[float, float, List[RangeValidationError]]:
        """Resolve pending min/max edits carried by an event."""
        recovered = []
        min_value, error = self._pending_value(event.min_text, current.min, FIELD_MIN, current.max, log_scaled)
        if error is not None:
            recovered.append(error)
        max_value, error = self._pending_value(event.max_text, current.max, FIELD_MAX, current.min, log_scaled)
        if error is not None:
            recovered.append(error)
        if min_value >= max_value:
            # Each edit was fine against the committed bounds but not together
            try:
                check_bounds_ordered(min_value, max_value)
            except RangeValidationError as e:
                recovered.append(e.with_field(FIELD_MIN))
                recovered.append(e.with_field(FIELD_MAX))
            min_value, max_value = current.min, current.max
        return min_value, max_value, recovered

    @staticmethod
    def _text_fields(event) -> FrozenSet[str]:
        fields = set()
        if event.min_text is not None:
            fields.add(FIELD_MIN)
        if event.max_text is not None:
            fields.add(FIELD_MAX)
        return frozenset(fields)

    # ------------------------ Trigger handlers ------------------------
    def _from_palette_file(self, event: LoadFromPaletteFile, current: RangeModel) -> _Candidate:
        min_value, max_value = current.palette.file_bounds()
        validate_range(min_value, max_value, current.log_scaled)
        return _Candidate(self._with_range(current, min_value, max_value, current.log_scaled))

    def _from_data_statistics(self, event: LoadFromDataStatistics, current: RangeModel) -> _Candidate:
        stats = self._statistics()
        validate_range(stats.min, stats.max, current.log_scaled)
        return _Candidate(self._with_range(current, stats.min, stats.max, current.log_scaled))

    def _from_min_field(self, event: EditMin, current: RangeModel) -> _Candidate:
        value = parse_numeric(event.text, FIELD_MIN)
        check_bounds_ordered(value, current.max, FIELD_MIN)
        check_log_compatible(value, current.max, current.log_scaled, FIELD_MIN)
        model = self._with_range(current, value, current.max, current.log_scaled)
        return _Candidate(model, touched=frozenset({FIELD_MIN}))

    def _from_max_field(self, event: EditMax, current: RangeModel) -> _Candidate:
        value = parse_numeric(event.text, FIELD_MAX)
        check_bounds_ordered(current.min, value, FIELD_MAX)
        check_log_compatible(current.min, value, current.log_scaled, FIELD_MAX)
        model = self._with_range(current, current.min, value, current.log_scaled)
        return _Candidate(model, touched=frozenset({FIELD_MAX}))

    def _from_log_toggle(self, event: ToggleLog, current: RangeModel) -> _Candidate:
        requested = bool(event.requested)
        check_log_compatible(current.min, current.max, requested, FIELD_LOG)
        model = self._with_range(current, current.min, current.max, requested)
        return _Candidate(model, touched=frozenset({FIELD_LOG}))

    def _from_discrete_toggle(self, event: ToggleDiscrete, current: RangeModel) -> _Candidate:
        validate_range(current.min, current.max, current.log_scaled)
        model = current.with_changes(palette=current.palette.with_discrete(bool(event.requested)), scheme=None)
        return _Candidate(model, touched=frozenset({FIELD_PALETTE}))

    def _from_invert_palette(self, event: InvertPalette, current: RangeModel) -> _Candidate:
        min_value, max_value, recovered = self._pending_range(event, current, current.log_scaled)
        palette = current.palette.inverted(min_value, max_value, current.log_scaled)
        model = current.with_changes(min=min_value, max=max_value, palette=palette, auto_distribute=True, scheme=None)
        return _Candidate(model, touched=self._text_fields(event), recovered=recovered)

    def _from_palette_chooser(self, event: SelectFromChooser, current: RangeModel) -> _Candidate:
        # The chooser only changes colours; the discrete mode belongs to the display
        candidate = event.candidate.with_discrete(current.palette.discrete)
        touched = self._text_fields(event) | {FIELD_PALETTE}

        if event.load_exact_values:
            min_value, max_value = candidate.file_bounds()
            log_scaled = candidate.log_scaled
            validate_range(min_value, max_value, log_scaled)
            model = current.with_changes(
                min=min_value,
                max=max_value,
                log_scaled=log_scaled,
                palette=candidate,
                auto_distribute=False,
                scheme=None,
            )
            return _Candidate(model, touched=touched | {FIELD_LOG})

        min_value, max_value, recovered = self._pending_range(event, current, current.log_scaled)
        palette = candidate.distributed(min_value, max_value, candidate.log_scaled, current.log_scaled)
        model = current.with_changes(min=min_value, max=max_value, palette=palette, auto_distribute=True, scheme=None)
        return _Candidate(model, touched=touched, recovered=recovered)

    def _from_scheme(self, event: ApplyScheme, current: RangeModel) -> _Candidate:
        scheme = event.scheme
        if scheme.is_none:
            # Back to the general display of the bound data
            min_value, max_value = self._general_range(current)
            palette = current.palette.distributed(min_value, max_value, current.log_scaled, False)
            model = current.with_changes(
                min=min_value,
                max=max_value,
                log_scaled=False,
                palette=palette,
                auto_distribute=True,
                scheme=None,
            )
            return _Candidate(model, touched=ALL_FIELDS, clears_scheme=False)

        if not scheme.selectable:
            if scheme.divider:
                raise SchemeDisabledError("Dividers cannot be selected", FIELD_SCHEME)
            raise SchemeDisabledError(f"Scheme '{scheme.name}' is disabled", FIELD_SCHEME)

        prefs = self.preferences
        palette_id = scheme.palette_id if prefs.scheme_palette == SCHEME_PALETTE_FROM_SCHEME else prefs.scheme_palette
        palette = None
        if palette_id is not None and self.palette_provider is not None:
            palette = self.palette_provider.get_palette(palette_id)
        if palette is None:
            raise SchemeDisabledError(
                f"Scheme '{scheme.name}' is disabled: palette '{palette_id}' is not available", FIELD_SCHEME
            )

        log_scaled = prefs.resolve_scheme_log(scheme.log_scaled)
        if scheme.auto_apply_enabled and prefs.scheme_auto_apply:
            min_value, max_value = scheme.min, scheme.max
            if prefs.scheme_range == SCHEME_RANGE_FROM_DATA or min_value is None or max_value is None:
                stats = self._statistics()
                if prefs.scheme_range == SCHEME_RANGE_FROM_DATA:
                    min_value, max_value = stats.min, stats.max
                else:
                    min_value = stats.min if min_value is None else min_value
                    max_value = stats.max if max_value is None else max_value
        else:
            min_value, max_value = current.min, current.max

        validate_range(min_value, max_value, log_scaled, FIELD_SCHEME)
        palette = palette.distributed(min_value, max_value, palette.log_scaled, log_scaled)
        model = current.with_changes(
            min=float(min_value),
            max=float(max_value),
            log_scaled=log_scaled,
            palette=palette,
            auto_distribute=True,
            scheme=scheme,
        )
        return _Candidate(model, touched=ALL_FIELDS, clears_scheme=False)
