"""Palette ramp rendering for the palette chooser and previews."""

from __future__ import annotations

import numpy as np
from PySide6.QtGui import QIcon, QImage, QPixmap

from ..core.palette import PaletteDef


def palette_ramp(palette: PaletteDef, width: int = 128, height: int = 12, log_scaled: bool = False) -> np.ndarray:
    """Return an (height, width, 3) uint8 RGB image of the palette, left to right."""
    row = palette.sample_colors(max(int(width), 1), log_scaled=log_scaled)
    return np.ascontiguousarray(np.tile(row[np.newaxis, :, :], (max(int(height), 1), 1, 1)))


def ramp_to_qimage(arr: np.ndarray) -> QImage:
    """Convert an (H, W, 3) uint8 RGB array to a detached QImage.

    Raises:
        ValueError: If ``arr`` is not an RGB image.
    """
    if arr is None:
        return QImage()
    a = np.asarray(arr)
    if a.ndim != 3 or a.shape[2] != 3:
        raise ValueError("Unsupported array shape")
    disp = np.ascontiguousarray(np.clip(a, 0, 255).astype(np.uint8))
    h, w, _ = disp.shape
    # copy() so the image does not reference the numpy buffer
    return QImage(disp.data, w, h, 3 * w, QImage.Format_RGB888).copy()


def palette_to_qimage(palette: PaletteDef, width: int = 128, height: int = 12, log_scaled: bool = False) -> QImage:
    return ramp_to_qimage(palette_ramp(palette, width, height, log_scaled))


def palette_icon(palette: PaletteDef, width: int = 64, height: int = 12) -> QIcon:
    """Icon for a palette chooser entry."""
    return QIcon(QPixmap.fromImage(palette_to_qimage(palette, width, height)))
