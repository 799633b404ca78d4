"""ColorRangeSync - Display range consistency controller for colour-mapped data.

This package keeps the display parameters of a colour-mapped view
consistent with each other while the user edits them:

Range State:
    - Minimum/maximum display value (min < max at all times)
    - Linear or logarithmic scaling (log requires positive bounds)
    - Colour palette spread over the range
    - Optional named scheme (palette + range + scaling preset)

Triggers:
    - Min/Max field edits, log toggle
    - Palette chooser (optionally with the palette's exact values)
    - Palette inversion
    - Range from palette file bounds or data statistics
    - Scheme selection

Every trigger is validated against the last committed state; invalid input
rolls the edited field back and reports a message instead of raising.

Package Structure:
    - core/: UI-independent state, validation, engine and providers
    - ui/: Qt notifier, palette previews and the reference range form
    - controller.py: Facade wiring everything together

Quick Start:
    from ColorRangeSync import RangeController
    controller = RangeController()
    controller.bind(raster)
    controller.edit_min("10")

Dependencies:
    - PySide6: Qt for Python
    - numpy: Array operations
    - opencv-python-headless: Built-in palettes from OpenCV colormaps
"""

from .app import main
from .controller import RangeController
from .core import (
    NONE_SCHEME,
    PaletteDef,
    PaletteRegistry,
    RangeModel,
    RangePreferences,
    RangeValidationError,
    SchemeRef,
    SchemeRegistry,
    TransitionEngine,
)
from .ui import RangeForm, RangeNotifier

__version__ = "0.1.0"
__all__ = [
    "main",
    "RangeController",
    "RangeForm",
    "RangeNotifier",
    "TransitionEngine",
    "RangeModel",
    "PaletteDef",
    "SchemeRef",
    "NONE_SCHEME",
    "PaletteRegistry",
    "SchemeRegistry",
    "RangePreferences",
    "RangeValidationError",
]
