"""Qt-independent range state, validation and transition engine."""

from .constants import DEFAULT_MAX, DEFAULT_MIN, DEFAULT_PALETTE_ID, NONE_SCHEME_NAME
from .engine import ALL_FIELDS, EngineState, TransitionEngine
from .errors import (
    ErrorKind,
    RangeValidationError,
    NotANumberError,
    BoundsNotOrderedError,
    NonPositiveBoundError,
    StatisticsUnavailableError,
    SchemeDisabledError,
)
from .events import (
    Accepted,
    Rejected,
    TriggerKind,
    LoadFromPaletteFile,
    LoadFromDataStatistics,
    EditMin,
    EditMax,
    ToggleDiscrete,
    ToggleLog,
    InvertPalette,
    SelectFromChooser,
    ApplyScheme,
)
from .guard import GuardedField, ReentrancyGuard
from .model import NONE_SCHEME, RangeModel, SchemeRef
from .palette import ColorStop, PaletteDef
from .preferences import RangePreferences
from .providers import (
    ArrayStatisticsProvider,
    FieldSink,
    PaletteProvider,
    PaletteRegistry,
    SchemeRegistry,
    Statistics,
    StatisticsProvider,
    opencv_palette,
)
from .validation import format_numeric, parse_numeric, validate_range

__all__ = [
    "DEFAULT_MAX",
    "DEFAULT_MIN",
    "DEFAULT_PALETTE_ID",
    "NONE_SCHEME_NAME",
    "ALL_FIELDS",
    "EngineState",
    "TransitionEngine",
    "ErrorKind",
    "RangeValidationError",
    "NotANumberError",
    "BoundsNotOrderedError",
    "NonPositiveBoundError",
    "StatisticsUnavailableError",
    "SchemeDisabledError",
    "Accepted",
    "Rejected",
    "TriggerKind",
    "LoadFromPaletteFile",
    "LoadFromDataStatistics",
    "EditMin",
    "EditMax",
    "ToggleDiscrete",
    "ToggleLog",
    "InvertPalette",
    "SelectFromChooser",
    "ApplyScheme",
    "GuardedField",
    "ReentrancyGuard",
    "NONE_SCHEME",
    "RangeModel",
    "SchemeRef",
    "ColorStop",
    "PaletteDef",
    "RangePreferences",
    "ArrayStatisticsProvider",
    "FieldSink",
    "PaletteProvider",
    "PaletteRegistry",
    "SchemeRegistry",
    "Statistics",
    "StatisticsProvider",
    "opencv_palette",
    "format_numeric",
    "parse_numeric",
    "validate_range",
]
