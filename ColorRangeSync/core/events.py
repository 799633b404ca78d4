"""Trigger events delivered to the transition engine, and their outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .errors import RangeValidationError
from .model import RangeModel, SchemeRef
from .palette import PaletteDef


class TriggerKind(Enum):
    LOAD_FROM_PALETTE_FILE = "LoadFromPaletteFile"
    LOAD_FROM_DATA_STATISTICS = "LoadFromDataStatistics"
    EDIT_MIN = "EditMin"
    EDIT_MAX = "EditMax"
    TOGGLE_LOG = "ToggleLog"
    TOGGLE_DISCRETE = "ToggleDiscrete"
    INVERT_PALETTE = "InvertPalette"
    SELECT_FROM_CHOOSER = "SelectFromChooser"
    APPLY_SCHEME = "ApplyScheme"


@dataclass(frozen=True)
class LoadFromPaletteFile:
    """Reset the range to the bounds declared by the current palette file."""

    kind = TriggerKind.LOAD_FROM_PALETTE_FILE


@dataclass(frozen=True)
class LoadFromDataStatistics:
    """Reset the range to the observed min/max of the bound data source."""

    kind = TriggerKind.LOAD_FROM_DATA_STATISTICS


@dataclass(frozen=True)
class EditMin:
    text: str
    kind = TriggerKind.EDIT_MIN


@dataclass(frozen=True)
class EditMax:
    text: str
    kind = TriggerKind.EDIT_MAX


@dataclass(frozen=True)
class ToggleLog:
    requested: bool
    kind = TriggerKind.TOGGLE_LOG


@dataclass(frozen=True)
class ToggleDiscrete:
    """Switch the palette between stepped bins and a continuous gradient."""

    requested: bool
    kind = TriggerKind.TOGGLE_DISCRETE


@dataclass(frozen=True)
class InvertPalette:
    """Reverse the palette.

    ``min_text``/``max_text`` carry pending, not yet committed edits of the
    range fields; None means the field already shows the committed value.
    """

    min_text: Optional[str] = None
    max_text: Optional[str] = None
    kind = TriggerKind.INVERT_PALETTE


@dataclass(frozen=True)
class SelectFromChooser:
    """Switch to another palette.

    With ``load_exact_values`` the candidate's own bounds and log flag are
    used and its stops are kept as declared. Otherwise the palette is spread
    over the range fields (pending edits in ``min_text``/``max_text``).
    """

    candidate: PaletteDef
    load_exact_values: bool = False
    min_text: Optional[str] = None
    max_text: Optional[str] = None
    kind = TriggerKind.SELECT_FROM_CHOOSER


@dataclass(frozen=True)
class ApplyScheme:
    scheme: SchemeRef
    kind = TriggerKind.APPLY_SCHEME


TriggerEvent = Union[
    LoadFromPaletteFile,
    LoadFromDataStatistics,
    EditMin,
    EditMax,
    ToggleLog,
    ToggleDiscrete,
    InvertPalette,
    SelectFromChooser,
    ApplyScheme,
]


@dataclass(frozen=True)
class Accepted:
    """The candidate passed validation.

    ``committed`` is False when the candidate equalled the current state and
    nothing was written.
    """

    state: RangeModel
    committed: bool = True

    @property
    def accepted(self) -> bool:
        return True


@dataclass(frozen=True)
class Rejected:
    """The candidate failed validation; ``fallback`` is the last committed state."""

    error: RangeValidationError
    fallback: RangeModel

    @property
    def accepted(self) -> bool:
        return False

    @property
    def reason(self) -> str:
        return self.error.message


ValidationOutcome = Union[Accepted, Rejected]
