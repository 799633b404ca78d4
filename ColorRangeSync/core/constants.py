"""Shared constants for ColorRangeSync.

This module contains defaults and user-facing texts used across the
controller, the engine and the Qt binding.
"""

TOOLNAME = "Colour Manipulation"

# Initial field values before a data source is bound
DEFAULT_MIN = 0.0
DEFAULT_MAX = 1.0

# Number of significant fraction digits shown in the min/max fields
FIELD_PRECISION = 13

# Built-in palette used when nothing else is selected
DEFAULT_PALETTE_ID = "gray"

# Stops generated for built-in (OpenCV colormap) palettes
BUILTIN_PALETTE_STOPS = 9

# Scheme preference values
SCHEME_RANGE_FROM_SCHEME = "scheme"
SCHEME_RANGE_FROM_DATA = "data"
SCHEME_LOG_FROM_SCHEME = "scheme"
SCHEME_LOG_LINEAR = "linear"
SCHEME_LOG_LOG = "log"
SCHEME_PALETTE_FROM_SCHEME = "scheme"

PREFERENCE_DEFAULTS = {
    "scheme_auto_apply": True,
    "scheme_range": SCHEME_RANGE_FROM_SCHEME,
    "scheme_log": SCHEME_LOG_FROM_SCHEME,
    "scheme_palette": SCHEME_PALETTE_FROM_SCHEME,
    "field_precision": FIELD_PRECISION,
    "ignore_incomplete_edits": True,
}

NONE_SCHEME_NAME = "-- none --"
MODIFIED_SCHEME_TEXT = "*Modified scheme"
MODIFIED_SCHEME_TOOLTIP = "Not using exact scheme default: see preferences"

# Message codes reported through the notifier
MSG_MIN_FIELD_INVALID = "MinFieldInvalid"
MSG_MAX_FIELD_INVALID = "MaxFieldInvalid"
MSG_LOG_TOGGLE_INVALID = "LogToggleInvalid"
MSG_RANGE_INVALID = "RangeInvalid"
MSG_STATISTICS_UNAVAILABLE = "StatisticsUnavailable"
MSG_SCHEME_DISABLED = "SchemeDisabled"
