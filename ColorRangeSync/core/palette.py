"""Colour palette definitions (Qt-independent).

A palette is an ordered sequence of colour stops. Each stop maps a sample
value to an RGB colour. The stop samples are spread across the display
range whenever the range or the scaling changes; the colours themselves are
only reordered by inversion.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

import numpy as np

RGB = Tuple[int, int, int]


@dataclass(frozen=True)
class ColorStop:
    """A single palette stop: sample value and RGB colour (0-255)."""

    sample: float
    color: RGB


@dataclass(frozen=True)
class PaletteDef:
    """Immutable colour palette definition.

    Attributes:
        stops: Ordered colour stops (at least two, samples non-decreasing)
        discrete: Stops map to distinct bins instead of a gradient
        log_scaled: Scaling declared by the palette file
        source_file_min: Lower bound declared by the palette file, if any
        source_file_max: Upper bound declared by the palette file, if any
        name: Identifier shown in the palette chooser
    """

    stops: Tuple[ColorStop, ...]
    discrete: bool = False
    log_scaled: bool = False
    source_file_min: Optional[float] = None
    source_file_max: Optional[float] = None
    name: str = ""

    def __post_init__(self):
        stops = tuple(self.stops)
        if len(stops) < 2:
            raise ValueError("A palette needs at least two colour stops")
        samples = [s.sample for s in stops]
        if any(b < a for a, b in zip(samples, samples[1:])):
            raise ValueError("Palette stop samples must be non-decreasing")
        object.__setattr__(self, "stops", stops)

    # ---- Construction helpers ----
    @classmethod
    def from_colors(
        cls,
        colors: Sequence[RGB],
        min_value: float = 0.0,
        max_value: float = 1.0,
        *,
        name: str = "",
        discrete: bool = False,
        log_scaled: bool = False,
        file_bounds: bool = True,
    ) -> "PaletteDef":
        """Build a palette with stops evenly spaced between min and max.

        When ``file_bounds`` is True the bounds are also recorded as the
        palette's declared source-file bounds.
        """
        samples = _spread(np.linspace(0.0, 1.0, len(colors)), min_value, max_value, log_scaled)
        stops = tuple(ColorStop(float(s), _as_rgb(c)) for s, c in zip(samples, colors))
        return cls(
            stops=stops,
            discrete=discrete,
            log_scaled=log_scaled,
            source_file_min=float(min_value) if file_bounds else None,
            source_file_max=float(max_value) if file_bounds else None,
            name=name,
        )

    # ---- Accessors ----
    @property
    def samples(self) -> np.ndarray:
        return np.array([s.sample for s in self.stops], dtype=np.float64)

    @property
    def colors(self) -> np.ndarray:
        return np.array([s.color for s in self.stops], dtype=np.uint8)

    @property
    def first_sample(self) -> float:
        return self.stops[0].sample

    @property
    def last_sample(self) -> float:
        return self.stops[-1].sample

    def file_bounds(self) -> Tuple[float, float]:
        """Return the declared source-file bounds, falling back to the stop ends."""
        lo = self.source_file_min if self.source_file_min is not None else self.first_sample
        hi = self.source_file_max if self.source_file_max is not None else self.last_sample
        return float(lo), float(hi)

    # ---- Derived palettes ----
    def with_discrete(self, discrete: bool) -> "PaletteDef":
        if discrete == self.discrete:
            return self
        return replace(self, discrete=discrete)

    def relative_positions(self, log_scaled: bool) -> np.ndarray:
        """Stop positions normalised to [0, 1] in linear or log10 space."""
        samples = self.samples
        if log_scaled and np.all(samples > 0):
            samples = np.log10(samples)
        span = samples[-1] - samples[0]
        if span <= 0:
            return np.linspace(0.0, 1.0, len(samples))
        return (samples - samples[0]) / span

    def distributed(
        self, min_value: float, max_value: float, source_log: bool = False, target_log: bool = False
    ) -> "PaletteDef":
        """Spread the stops across [min_value, max_value].

        Each stop keeps its relative position, measured in log10 space when
        ``source_log`` is set and re-applied in log10 space when
        ``target_log`` is set.
        """
        positions = self.relative_positions(source_log)
        samples = _spread(positions, min_value, max_value, target_log)
        return self._with_samples(samples, self.colors)

    def inverted(self, min_value: float, max_value: float, log_scaled: bool = False) -> "PaletteDef":
        """Reverse the colour order, reflecting stop positions within the range."""
        positions = 1.0 - self.relative_positions(log_scaled)[::-1]
        samples = _spread(positions, min_value, max_value, log_scaled)
        return self._with_samples(samples, self.colors[::-1])

    def sample_colors(self, n: int = 256, log_scaled: bool = False) -> np.ndarray:
        """Return an (n, 3) uint8 colour ramp over the palette.

        Continuous palettes interpolate between stops; discrete palettes
        hold each stop's colour until the next stop. With ``log_scaled`` the
        ramp is laid out on a log10 axis.
        """
        if n <= 0:
            return np.zeros((0, 3), dtype=np.uint8)
        positions = self.relative_positions(log_scaled)
        colors = self.colors.astype(np.float32)
        xs = np.linspace(0.0, 1.0, n)
        if self.discrete:
            idx = np.clip(np.searchsorted(positions, xs, side="right") - 1, 0, len(self.stops) - 1)
            return colors[idx].astype(np.uint8)
        ramp = np.stack([np.interp(xs, positions, colors[:, c]) for c in range(3)], axis=1)
        return np.clip(np.rint(ramp), 0, 255).astype(np.uint8)

    def _with_samples(self, samples: np.ndarray, colors: np.ndarray) -> "PaletteDef":
        stops = tuple(ColorStop(float(s), _as_rgb(c)) for s, c in zip(samples, colors))
        return replace(self, stops=stops)


def _spread(positions: np.ndarray, min_value: float, max_value: float, log_scaled: bool) -> np.ndarray:
    """Map [0, 1] positions onto the range, pinning both ends exactly."""
    positions = np.asarray(positions, dtype=np.float64)
    if log_scaled and min_value > 0 and max_value > 0:
        lo, hi = np.log10(min_value), np.log10(max_value)
        samples = np.power(10.0, lo + positions * (hi - lo))
    else:
        samples = min_value + positions * (max_value - min_value)
    samples = np.clip(np.maximum.accumulate(samples), min_value, max_value)
    samples[0] = min_value
    samples[-1] = max_value
    return samples


def _as_rgb(color) -> RGB:
    r, g, b = (int(v) for v in color[:3])
    return (r, g, b)
