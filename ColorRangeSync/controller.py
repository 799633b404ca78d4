"""Facade wiring the engine, the notifier and the registries together.

Hosts create one RangeController per display, bind it to a data source and
either embed the reference RangeForm or connect their own widgets to the
notifier signals.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from .core.constants import DEFAULT_MAX, DEFAULT_MIN, DEFAULT_PALETTE_ID
from .core.engine import TransitionEngine
from .core.errors import RangeValidationError
from .core.events import (
    ApplyScheme,
    EditMax,
    EditMin,
    InvertPalette,
    LoadFromDataStatistics,
    LoadFromPaletteFile,
    SelectFromChooser,
    ToggleDiscrete,
    ToggleLog,
    TriggerEvent,
    ValidationOutcome,
)
from .core.guard import ReentrancyGuard
from .core.model import RangeModel, SchemeRef
from .core.palette import PaletteDef
from .core.preferences import RangePreferences
from .core.providers import ArrayStatisticsProvider, PaletteRegistry, SchemeRegistry, StatisticsProvider
from .core.validation import validate_range
from .ui.notifier import RangeNotifier

logger = logging.getLogger(__name__)


class RangeController:
    """Owns the range state of one display.

    Args:
        palette_registry: Palettes for the chooser and schemes (singleton by default)
        scheme_registry: Available schemes
        statistics_provider: Observed min/max source (numpy arrays by default)
        preferences: Scheme and field preferences
    """

    def __init__(
        self,
        palette_registry: Optional[PaletteRegistry] = None,
        scheme_registry: Optional[SchemeRegistry] = None,
        statistics_provider: Optional[StatisticsProvider] = None,
        preferences: Optional[RangePreferences] = None,
    ):
        self.palette_registry = palette_registry if palette_registry is not None else PaletteRegistry.get_instance()
        self.scheme_registry = (
            scheme_registry if scheme_registry is not None else SchemeRegistry(self.palette_registry)
        )
        self.statistics_provider = (
            statistics_provider if statistics_provider is not None else ArrayStatisticsProvider()
        )
        self.preferences = preferences if preferences is not None else RangePreferences()

        self.guard = ReentrancyGuard()
        self.notifier = RangeNotifier(self.guard, self.palette_registry)
        self.engine = TransitionEngine(
            self.default_model(),
            self.notifier,
            guard=self.guard,
            statistics_provider=self.statistics_provider,
            palette_provider=self.palette_registry,
            preferences=self.preferences,
        )

    # ------------------------ State ------------------------
    @property
    def model(self) -> RangeModel:
        return self.engine.current

    @property
    def raster(self) -> Any:
        return self.engine.raster

    def default_model(self) -> RangeModel:
        palette = self.palette_registry.get_palette(DEFAULT_PALETTE_ID)
        if palette is None:
            raise KeyError(f"Default palette {DEFAULT_PALETTE_ID!r} is not registered")
        return RangeModel.create(DEFAULT_MIN, DEFAULT_MAX, palette)

    # ------------------------ Binding ------------------------
    def bind(
        self,
        raster: Any = None,
        palette: Optional[PaletteDef] = None,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        log_scaled: bool = False,
    ) -> RangeModel:
        """Bind to a data source and reset the range state for it.

        Bounds are taken from ``min_value``/``max_value`` if both are given,
        otherwise from the data statistics, otherwise from the palette's
        declared bounds, otherwise the defaults. Log scaling is dropped when
        the chosen bounds cannot be displayed logarithmically.
        """
        if palette is None:
            palette = self.model.palette
        self.engine.raster = raster

        min_value, max_value = self._initial_bounds(raster, palette, min_value, max_value)
        if log_scaled:
            try:
                validate_range(min_value, max_value, True)
            except RangeValidationError as e:
                logger.warning("Binding without log scaling: %s", e.message)
                log_scaled = False

        model = RangeModel.create(min_value, max_value, palette, log_scaled=log_scaled)
        self.engine.reset(model)
        logger.info("Bound range min=%s max=%s log=%s", model.min, model.max, model.log_scaled)
        return model

    def unbind(self) -> RangeModel:
        """Detach from the data source and return to the default state."""
        self.engine.raster = None
        model = self.default_model()
        self.engine.reset(model)
        return model

    def _initial_bounds(
        self, raster: Any, palette: PaletteDef, min_value: Optional[float], max_value: Optional[float]
    ) -> Tuple[float, float]:
        candidates = []
        if min_value is not None and max_value is not None:
            candidates.append(("given", (float(min_value), float(max_value))))
        if raster is not None:
            try:
                stats = self.statistics_provider.get_statistics(raster)
            except Exception:
                logger.exception("Statistics provider failed while binding")
                stats = None
            if stats is not None:
                candidates.append(("data", (stats.min, stats.max)))
        candidates.append(("palette", palette.file_bounds()))

        for source, (lo, hi) in candidates:
            try:
                validate_range(lo, hi, False)
            except RangeValidationError as e:
                logger.debug("Skipping %s bounds (%s, %s): %s", source, lo, hi, e.message)
                continue
            return lo, hi
        return DEFAULT_MIN, DEFAULT_MAX

    # ------------------------ Triggers ------------------------
    def submit(self, event: TriggerEvent) -> Optional[ValidationOutcome]:
        return self.engine.submit(event)

    def edit_min(self, text: str) -> Optional[ValidationOutcome]:
        return self.submit(EditMin(text))

    def edit_max(self, text: str) -> Optional[ValidationOutcome]:
        return self.submit(EditMax(text))

    def toggle_log(self, requested: bool) -> Optional[ValidationOutcome]:
        return self.submit(ToggleLog(requested))

    def toggle_discrete(self, requested: bool) -> Optional[ValidationOutcome]:
        return self.submit(ToggleDiscrete(requested))

    def invert_palette(self, min_text: Optional[str] = None, max_text: Optional[str] = None):
        return self.submit(InvertPalette(min_text, max_text))

    def select_palette(
        self,
        palette_or_id,
        load_exact_values: bool = False,
        min_text: Optional[str] = None,
        max_text: Optional[str] = None,
    ) -> Optional[ValidationOutcome]:
        """Select a palette by definition or registered id."""
        palette = palette_or_id
        if isinstance(palette_or_id, str):
            palette = self.palette_registry.get_palette(palette_or_id)
            if palette is None:
                raise KeyError(f"Unknown palette: {palette_or_id}")
        return self.submit(SelectFromChooser(palette, load_exact_values, min_text, max_text))

    def apply_scheme(self, scheme_or_name) -> Optional[ValidationOutcome]:
        """Apply a scheme by reference or registered name."""
        scheme = scheme_or_name
        if not isinstance(scheme_or_name, SchemeRef):
            scheme = self.scheme_registry.get(scheme_or_name)
            if scheme is None:
                raise KeyError(f"Unknown scheme: {scheme_or_name}")
        return self.submit(ApplyScheme(scheme))

    def load_from_palette_file(self) -> Optional[ValidationOutcome]:
        return self.submit(LoadFromPaletteFile())

    def load_from_data(self) -> Optional[ValidationOutcome]:
        return self.submit(LoadFromDataStatistics())
