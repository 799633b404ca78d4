"""Pure validation rules for display range parameters.

None of these functions mutate state or touch the UI. Predicates return
bools; ``check_*`` and ``parse_numeric`` raise a RangeValidationError
subclass describing the first rule that failed.
"""

import math
from typing import Optional

import numpy as np

from .constants import FIELD_PRECISION
from .errors import (
    FIELD_MAX,
    FIELD_MIN,
    BoundsNotOrderedError,
    NonPositiveBoundError,
    NotANumberError,
)


def bounds_ordered(min_value: float, max_value: float) -> bool:
    """Return True iff ``min_value < max_value``."""
    return min_value < max_value


def log_compatible(min_value: float, max_value: float, log_scaled: bool) -> bool:
    """Return True if the bounds can be displayed with the given scaling."""
    if not log_scaled:
        return True
    return min_value > 0 and max_value > 0


def check_bounds_ordered(min_value: float, max_value: float, field: Optional[str] = None) -> None:
    """Raise BoundsNotOrderedError unless ``min_value < max_value``.

    Args:
        min_value: Candidate minimum
        max_value: Candidate maximum
        field: Field being edited; selects the wording of the message
    """
    if bounds_ordered(min_value, max_value):
        return
    if field == FIELD_MIN:
        message = "Min field must be less than Max field"
    elif field == FIELD_MAX:
        message = "Max field must be greater than Min field"
    elif min_value == max_value:
        message = "Min cannot equal Max"
    else:
        message = "Min cannot be greater than Max"
    raise BoundsNotOrderedError(message, field)


def check_log_compatible(min_value: float, max_value: float, log_scaled: bool, field: Optional[str] = None) -> None:
    """Raise NonPositiveBoundError if log scaling is requested with a bound <= 0.

    The min bound is checked first, matching the order users read the fields.
    """
    if not log_scaled:
        return
    if min_value <= 0:
        relation = "equal to" if min_value == 0 else "less than"
        raise NonPositiveBoundError(f"Log scaling cannot be applied with min {relation} zero", field or FIELD_MIN)
    if max_value <= 0:
        relation = "equal to" if max_value == 0 else "less than"
        raise NonPositiveBoundError(f"Log scaling cannot be applied with max {relation} zero", field or FIELD_MAX)


def validate_range(min_value: float, max_value: float, log_scaled: bool, field: Optional[str] = None) -> None:
    """Check ordering, then log compatibility."""
    check_bounds_ordered(min_value, max_value, field)
    check_log_compatible(min_value, max_value, log_scaled, field)


def parse_numeric(text, field: Optional[str] = None) -> float:
    """Parse a field's text into a finite float.

    Raises:
        NotANumberError: For None, empty, non-numeric or non-finite text.
    """
    label = (field or "value").capitalize()
    if text is None or not str(text).strip():
        raise NotANumberError(f"{label} field is empty", field)
    try:
        value = float(str(text).strip())
    except ValueError:
        raise NotANumberError(f"{label} field is not a number: {str(text).strip()!r}", field) from None
    if not math.isfinite(value):
        raise NotANumberError(f"{label} field must be a finite number", field)
    return value


def is_incomplete_number(text) -> bool:
    """Return True if ``text`` could still become a number as the user types."""
    if text is None:
        return True
    stripped = str(text).strip()
    return stripped in ("", "-", "+", ".", "-.", "+.")


def format_numeric(value: float, precision: int = FIELD_PRECISION) -> str:
    """Format a bound for display in a range field.

    Always shows at least one fraction digit and at most ``precision``:

        >>> format_numeric(50)
        '50.0'
        >>> format_numeric(1e-7)
        '0.0000001'
    """
    return np.format_float_positional(float(value), precision=precision, unique=True, trim="0")
