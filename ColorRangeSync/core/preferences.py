"""User preferences that influence how schemes are applied.

Persistence is left to the host application; preferences travel as plain
mappings (for example a JSON file or a settings store).
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Mapping

from .constants import (
    PREFERENCE_DEFAULTS,
    SCHEME_LOG_FROM_SCHEME,
    SCHEME_LOG_LINEAR,
    SCHEME_LOG_LOG,
    SCHEME_RANGE_FROM_DATA,
    SCHEME_RANGE_FROM_SCHEME,
)

logger = logging.getLogger(__name__)

_SCHEME_RANGE_VALUES = (SCHEME_RANGE_FROM_SCHEME, SCHEME_RANGE_FROM_DATA)
_SCHEME_LOG_VALUES = (SCHEME_LOG_FROM_SCHEME, SCHEME_LOG_LINEAR, SCHEME_LOG_LOG)


@dataclass
class RangePreferences:
    """Scheme and field preferences.

    Attributes:
        scheme_auto_apply: Global switch; when off, schemes keep the current bounds
        scheme_range: "scheme" to use scheme bounds, "data" to use statistics
        scheme_log: "scheme", "linear" or "log"
        scheme_palette: Palette id overriding the scheme's palette, or "scheme"
        field_precision: Fraction digits shown in the min/max fields
        ignore_incomplete_edits: Ignore field edits such as "" or "-" while typing
    """

    scheme_auto_apply: bool = PREFERENCE_DEFAULTS["scheme_auto_apply"]
    scheme_range: str = PREFERENCE_DEFAULTS["scheme_range"]
    scheme_log: str = PREFERENCE_DEFAULTS["scheme_log"]
    scheme_palette: str = PREFERENCE_DEFAULTS["scheme_palette"]
    field_precision: int = PREFERENCE_DEFAULTS["field_precision"]
    ignore_incomplete_edits: bool = PREFERENCE_DEFAULTS["ignore_incomplete_edits"]

    def __post_init__(self):
        if self.scheme_range not in _SCHEME_RANGE_VALUES:
            raise ValueError(f"scheme_range must be one of {_SCHEME_RANGE_VALUES}, got {self.scheme_range!r}")
        if self.scheme_log not in _SCHEME_LOG_VALUES:
            raise ValueError(f"scheme_log must be one of {_SCHEME_LOG_VALUES}, got {self.scheme_log!r}")
        if self.field_precision < 1:
            raise ValueError("field_precision must be positive")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "RangePreferences":
        """Build preferences from a mapping, ignoring unknown keys.

        Values are cast to the type of the corresponding default.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in values.items():
            if key not in known:
                logger.debug("Ignoring unknown preference %r", key)
                continue
            kwargs[key] = _cast(PREFERENCE_DEFAULTS[key], value)
        return cls(**kwargs)

    def to_dict(self) -> dict:
        return asdict(self)

    def is_default(self) -> bool:
        """Return True if the scheme-related settings are all defaults."""
        return (
            self.scheme_range == PREFERENCE_DEFAULTS["scheme_range"]
            and self.scheme_log == PREFERENCE_DEFAULTS["scheme_log"]
            and self.scheme_palette == PREFERENCE_DEFAULTS["scheme_palette"]
        )

    def resolve_scheme_log(self, declared: bool) -> bool:
        """Log flag a scheme should apply given its declared flag."""
        if self.scheme_log == SCHEME_LOG_LINEAR:
            return False
        if self.scheme_log == SCHEME_LOG_LOG:
            return True
        return declared


def _cast(default, value):
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    return type(default)(value)
