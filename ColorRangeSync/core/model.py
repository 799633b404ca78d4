"""Committed display-range state.

RangeModel is an immutable snapshot. The transition engine replaces it as a
whole on every commit, so observers never see a half-applied change.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field, replace
from typing import Optional

from .constants import NONE_SCHEME_NAME
from .palette import PaletteDef
from .validation import validate_range


@dataclass(frozen=True, eq=False)
class SchemeRef:
    """A named preset bundling palette, range and log scaling.

    ``min``/``max`` left as None mean "take the bound from data statistics".
    Schemes compare by identity; the registry owns them.
    """

    name: str
    palette_id: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    log_scaled: bool = False
    auto_apply_enabled: bool = True
    enabled: bool = True
    divider: bool = False
    description: str = ""

    @property
    def is_none(self) -> bool:
        return self is NONE_SCHEME

    @property
    def selectable(self) -> bool:
        return self.enabled and not self.divider


# Sentinel selected when no scheme applies
NONE_SCHEME = SchemeRef(name=NONE_SCHEME_NAME, description="No color scheme")


@dataclass(frozen=True)
class RangeModel:
    """Display bounds, scaling, palette and the scheme they came from.

    Invariants: ``min < max``; ``min > 0 and max > 0`` when ``log_scaled``.
    """

    min: float
    max: float
    log_scaled: bool
    palette: PaletteDef
    auto_distribute: bool = True
    scheme_ref: Optional[weakref.ref] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        self.check_invariants()

    @classmethod
    def create(
        cls,
        min_value: float,
        max_value: float,
        palette: PaletteDef,
        log_scaled: bool = False,
        scheme: Optional[SchemeRef] = None,
        auto_distribute: bool = True,
    ) -> "RangeModel":
        """Create a model with the palette spread over the given bounds."""
        if auto_distribute:
            palette = palette.distributed(min_value, max_value, palette.log_scaled, log_scaled)
        return cls(
            min=float(min_value),
            max=float(max_value),
            log_scaled=bool(log_scaled),
            palette=palette,
            auto_distribute=auto_distribute,
            scheme_ref=_ref(scheme),
        )

    def check_invariants(self) -> None:
        """Raise a RangeValidationError if the bounds are inconsistent."""
        validate_range(self.min, self.max, self.log_scaled)

    @property
    def scheme(self) -> Optional[SchemeRef]:
        """The scheme this state was derived from, if it is still alive."""
        if self.scheme_ref is None:
            return None
        return self.scheme_ref()

    def with_changes(self, **changes) -> "RangeModel":
        """Return a copy with fields replaced; ``scheme=`` is accepted too."""
        if "scheme" in changes:
            changes["scheme_ref"] = _ref(changes.pop("scheme"))
        return replace(self, **changes)

    def value_equals(self, other: "RangeModel") -> bool:
        """Compare every committed field, including the scheme identity."""
        return self == other and self.scheme is other.scheme

    def matches_scheme(self, scheme: SchemeRef, palette: Optional[PaletteDef] = None) -> bool:
        """Return True if this state still reflects the scheme's declared settings.

        Bounds the scheme leaves empty are not compared. When ``palette`` is
        given (the scheme's palette as provided), its colours are compared
        against the committed palette as well.
        """
        if self.log_scaled != scheme.log_scaled:
            return False
        if scheme.min is not None and self.min != scheme.min:
            return False
        if scheme.max is not None and self.max != scheme.max:
            return False
        if palette is not None:
            if [s.color for s in palette.stops] != [s.color for s in self.palette.stops]:
                return False
        return True


def _ref(scheme: Optional[SchemeRef]) -> Optional[weakref.ref]:
    if scheme is None or scheme.is_none:
        return None
    return weakref.ref(scheme)
