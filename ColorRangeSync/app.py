"""Demo entry point.

Shows the colour range form bound to a synthetic raster.

Usage:
    python -m ColorRangeSync.app

    # Or from Python:
    from ColorRangeSync import main
    main()
"""

import logging
import sys

import numpy as np
from PySide6.QtWidgets import QApplication

from .controller import RangeController
from .core.model import SchemeRef
from .ui.range_form import RangeForm


def demo_raster(width: int = 256, height: int = 256) -> np.ndarray:
    """Smooth positive test data spanning a few decades."""
    y, x = np.mgrid[0:height, 0:width]
    return np.power(10.0, 3.0 * x / max(width - 1, 1)) * (1.0 + 0.1 * np.sin(y / 8.0))


def main(argv=None):
    """Run the demo application.

    Args:
        argv: Command-line arguments (defaults to sys.argv)

    Returns:
        Exit code from QApplication.exec()
    """
    if argv is None:
        argv = sys.argv
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    app = QApplication(argv)

    controller = RangeController()
    registry = controller.scheme_registry
    registry.add(SchemeRef("Elevation", "jet", 0.0, 1000.0, description="Terrain height in metres"))
    registry.add(SchemeRef("Intensity (log)", "inferno", 1.0, 1000.0, log_scaled=True))
    registry.add_divider()
    registry.add(SchemeRef("Data range", "viridis", description="Bounds from data statistics"))
    controller.bind(demo_raster())

    w = RangeForm(controller)
    w.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
