"""Collaborator interfaces and reference providers.

The engine talks to the outside world only through the protocols defined
here:

- StatisticsProvider: observed min/max of the bound data source
- PaletteProvider: palette definitions by id
- SchemeRegistry: named presets (palette + range + log scaling)
- FieldSink: receives programmatic writes of the bound UI fields

Reference implementations are numpy based (statistics) and OpenCV based
(built-in palettes), so the core stays free of any UI toolkit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import cv2
import numpy as np

from .constants import BUILTIN_PALETTE_STOPS
from .model import NONE_SCHEME, SchemeRef
from .palette import PaletteDef

logger = logging.getLogger(__name__)


# --- Statistics ---


@dataclass(frozen=True)
class Statistics:
    min: float
    max: float


@runtime_checkable
class StatisticsProvider(Protocol):
    def get_statistics(self, raster: Any) -> Optional[Statistics]:
        """Return observed statistics, or None if unavailable."""


class ArrayStatisticsProvider:
    """Statistics over numpy arrays, ignoring NaN and infinite samples.

    Args:
        positive_only: Only consider samples > 0 (useful for log displays)
    """

    def __init__(self, positive_only: bool = False):
        self.positive_only = positive_only

    def get_statistics(self, raster: Any) -> Optional[Statistics]:
        if raster is None:
            return None
        a = np.asarray(raster)
        if a.size == 0 or not (np.issubdtype(a.dtype, np.number) or a.dtype == np.bool_):
            return None
        data = a.astype(np.float64, copy=False).ravel()
        mask = np.isfinite(data)
        if self.positive_only:
            mask &= data > 0
        data = data[mask]
        if data.size == 0:
            return None
        return Statistics(float(data.min()), float(data.max()))


# --- Palettes ---


@runtime_checkable
class PaletteProvider(Protocol):
    def get_palette(self, palette_id: str) -> Optional[PaletteDef]:
        """Return the palette registered under ``palette_id``, or None."""


_OPENCV_COLORMAPS = {
    "jet": cv2.COLORMAP_JET,
    "viridis": cv2.COLORMAP_VIRIDIS,
    "inferno": cv2.COLORMAP_INFERNO,
    "hot": cv2.COLORMAP_HOT,
    "rainbow": cv2.COLORMAP_RAINBOW,
    "ocean": cv2.COLORMAP_OCEAN,
    "cool": cv2.COLORMAP_COOL,
    "turbo": cv2.COLORMAP_TURBO,
}


def opencv_palette(name: str, n_stops: int = BUILTIN_PALETTE_STOPS) -> PaletteDef:
    """Build a palette by sampling an OpenCV colormap (or a gray ramp).

    The stops are evenly spaced over [0, 1]; the range is applied later by
    distributing the palette over the display bounds.
    """
    ramp = np.linspace(0, 255, n_stops).astype(np.uint8)
    if name == "gray":
        rgb = np.stack([ramp, ramp, ramp], axis=1)
    else:
        if name not in _OPENCV_COLORMAPS:
            raise KeyError(f"Unknown built-in palette: {name}")
        # OpenCV colormap produces BGR
        bgr = cv2.applyColorMap(ramp.reshape(-1, 1), _OPENCV_COLORMAPS[name])
        rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB).reshape(-1, 3)
    return PaletteDef.from_colors([tuple(c) for c in rgb], 0.0, 1.0, name=name)


class PaletteRegistry:
    """Registry of palettes available to the palette chooser.

    Built-in palettes are generated on first use of the singleton. Palette
    files parsed by the host application are added with ``register``.

    Example:
        >>> registry = PaletteRegistry.get_instance()
        >>> registry.get_palette("jet").name
        'jet'
    """

    _instance = None

    @classmethod
    def get_instance(cls) -> "PaletteRegistry":
        """Get the singleton instance, populated with built-in palettes."""
        if cls._instance is None:
            cls._instance = cls(with_builtins=True)
        return cls._instance

    def __init__(self, with_builtins: bool = False):
        self._palettes: Dict[str, PaletteDef] = {}
        if with_builtins:
            for name in ["gray", *_OPENCV_COLORMAPS]:
                self.register(opencv_palette(name))

    def register(self, palette: PaletteDef, palette_id: Optional[str] = None) -> str:
        """Register (or replace) a palette and return its id."""
        key = palette_id or palette.name
        if not key:
            raise ValueError("A palette id is required for unnamed palettes")
        if key in self._palettes:
            logger.debug("Replacing palette %r", key)
        self._palettes[key] = palette
        return key

    def get_palette(self, palette_id: str) -> Optional[PaletteDef]:
        return self._palettes.get(palette_id)

    def names(self) -> List[str]:
        return list(self._palettes)

    def find_id(self, palette: PaletteDef) -> Optional[str]:
        """Return the id of a registered palette with the same colours."""
        colors = [s.color for s in palette.stops]
        for key, candidate in self._palettes.items():
            if candidate.name == palette.name and [s.color for s in candidate.stops] == colors:
                return key
        for key, candidate in self._palettes.items():
            if [s.color for s in candidate.stops] == colors:
                return key
        return None

    def __contains__(self, palette_id) -> bool:
        return palette_id in self._palettes

    def __len__(self) -> int:
        return len(self._palettes)


# --- Schemes ---


class SchemeRegistry:
    """Ordered collection of schemes, dividers included.

    The none-scheme sentinel is always the first entry. The registry keeps
    the only strong references to its schemes; range models hold weak ones.
    """

    def __init__(self, palette_provider: Optional[PaletteProvider] = None):
        self.palette_provider = palette_provider
        self._entries: List[SchemeRef] = [NONE_SCHEME]

    def add(self, scheme: SchemeRef) -> SchemeRef:
        if scheme.is_none:
            return scheme
        if not scheme.divider and self.get(scheme.name) is not None:
            raise ValueError(f"Duplicate scheme name: {scheme.name}")
        self._entries.append(scheme)
        return scheme

    def add_divider(self, title: str = "") -> SchemeRef:
        return self.add(SchemeRef(name=title, divider=True, enabled=False))

    def schemes(self) -> List[SchemeRef]:
        return list(self._entries)

    def get(self, name: str) -> Optional[SchemeRef]:
        for scheme in self._entries:
            if not scheme.divider and scheme.name == name:
                return scheme
        return None

    def palette_for(self, scheme: SchemeRef) -> Optional[PaletteDef]:
        if scheme.palette_id is None or self.palette_provider is None:
            return None
        return self.palette_provider.get_palette(scheme.palette_id)

    def check_scheme(self, scheme: SchemeRef) -> str:
        """Return a message explaining why a scheme cannot be applied ("" if it can)."""
        if scheme.divider:
            return ""
        if not scheme.enabled:
            return f"Scheme '{scheme.name}' is disabled"
        if scheme.is_none:
            return ""
        if self.palette_provider is not None and self.palette_for(scheme) is None:
            return f"Scheme '{scheme.name}' is disabled: palette '{scheme.palette_id}' is not available"
        return ""

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)


# --- UI field sink ---


@runtime_checkable
class FieldSink(Protocol):
    """Receiver of programmatic field writes.

    Writes arrive while the corresponding guard fields are suppressed, so a
    sink whose widgets emit change notifications must consult the guard (or
    block its widgets' signals) before forwarding them as triggers.
    """

    def write_min(self, value: float) -> None: ...

    def write_max(self, value: float) -> None: ...

    def write_log(self, log_scaled: bool) -> None: ...

    def write_palette(self, palette: PaletteDef, log_scaled: bool) -> None: ...

    def write_scheme(self, scheme: SchemeRef) -> None: ...

    def set_scheme_indicator_visible(self, visible: bool) -> None: ...
