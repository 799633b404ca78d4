"""UI components package."""

from .notifier import RangeNotifier
from .palette_image import palette_icon, palette_ramp, palette_to_qimage
from .range_form import RangeForm

__all__ = [
    "RangeNotifier",
    "RangeForm",
    "palette_icon",
    "palette_ramp",
    "palette_to_qimage",
]
