"""Validation error kinds raised by the range rules and handled by the engine.

Every error here is recoverable: the engine catches it, restores the last
committed values to the affected fields and reports ``message`` to the user.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from .constants import (
    MSG_LOG_TOGGLE_INVALID,
    MSG_MAX_FIELD_INVALID,
    MSG_MIN_FIELD_INVALID,
    MSG_RANGE_INVALID,
    MSG_SCHEME_DISABLED,
    MSG_STATISTICS_UNAVAILABLE,
)


class ErrorKind(Enum):
    NOT_A_NUMBER = "NotANumber"
    BOUNDS_NOT_ORDERED = "BoundsNotOrdered"
    NON_POSITIVE_BOUND = "NonPositiveBound"
    STATISTICS_UNAVAILABLE = "StatisticsUnavailable"
    SCHEME_DISABLED = "SchemeDisabled"


# Field names used to tag which input an error originated from
FIELD_MIN = "min"
FIELD_MAX = "max"
FIELD_LOG = "log"
FIELD_SCHEME = "scheme"
FIELD_PALETTE = "palette"

_FIELD_MESSAGE_CODES = {
    FIELD_MIN: MSG_MIN_FIELD_INVALID,
    FIELD_MAX: MSG_MAX_FIELD_INVALID,
    FIELD_LOG: MSG_LOG_TOGGLE_INVALID,
}


class RangeValidationError(ValueError):
    """Base class for all recoverable range errors.

    Attributes:
        kind: ErrorKind of the failure
        field: Originating field name ("min", "max", "log", "scheme") or None
        message: User-facing description
    """

    kind: ErrorKind = ErrorKind.BOUNDS_NOT_ORDERED

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    @property
    def message_code(self) -> str:
        """Message code for the notifier channel."""
        return _FIELD_MESSAGE_CODES.get(self.field, MSG_RANGE_INVALID)

    def with_field(self, field: Optional[str]) -> "RangeValidationError":
        """Return a copy of this error attributed to another field."""
        return type(self)(self.message, field)


class NotANumberError(RangeValidationError):
    kind = ErrorKind.NOT_A_NUMBER


class BoundsNotOrderedError(RangeValidationError):
    kind = ErrorKind.BOUNDS_NOT_ORDERED


class NonPositiveBoundError(RangeValidationError):
    kind = ErrorKind.NON_POSITIVE_BOUND


class StatisticsUnavailableError(RangeValidationError):
    kind = ErrorKind.STATISTICS_UNAVAILABLE

    @property
    def message_code(self) -> str:
        return MSG_STATISTICS_UNAVAILABLE


class SchemeDisabledError(RangeValidationError):
    kind = ErrorKind.SCHEME_DISABLED

    @property
    def message_code(self) -> str:
        return MSG_SCHEME_DISABLED
