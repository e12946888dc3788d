"""Visual QC output: the detected grid drawn over the source image."""

import logging
from typing import Tuple

import cv2
import numpy as np

from .edges import ensure_pixels
from .slicer import GridResult

logger = logging.getLogger(__name__)

# Grid line colour (red)
GRID_COLOR = (255, 0, 0)


def render_grid_overlay(
    pixels: np.ndarray,
    grid: GridResult,
    grid_color: Tuple[int, int, int] = GRID_COLOR,
    thickness: int = 2,
    label: bool = True,
) -> np.ndarray:
    """Draw each cell rectangle (and its row-major index) on an RGB copy.

    Args:
        pixels: Source image (H x W x 3 or 4).
        grid: Detected or manual grid for that image.
        grid_color: RGB colour for the cell borders.
        thickness: Line width in pixels.
        label: Write the cell index in each cell's top-left corner.

    Returns:
        RGB uint8 numpy array the size of the source.
    """
    arr = ensure_pixels(pixels)
    if arr.shape[2] == 4:
        # composite on mid grey so transparent areas stay visible
        alpha = arr[:, :, 3:4].astype(np.float32) / 255.0
        rgb = arr[:, :, :3].astype(np.float32)
        overlay = (rgb * alpha + 128.0 * (1 - alpha)).astype(np.uint8)
    else:
        overlay = np.ascontiguousarray(arr[:, :, :3]).astype(np.uint8)

    h, w = overlay.shape[:2]
    font_scale = max(0.4, min(w, h) / 1000.0)
    for idx, cell in enumerate(grid.cells):
        x1 = min(cell.x + cell.width, w) - 1
        y1 = min(cell.y + cell.height, h) - 1
        cv2.rectangle(overlay, (cell.x, cell.y), (x1, y1), grid_color, thickness)
        if label:
            cv2.putText(overlay, str(idx), (cell.x + 6, cell.y + int(22 * font_scale) + 4),
                        cv2.FONT_HERSHEY_SIMPLEX, font_scale, grid_color, 1, cv2.LINE_AA)

    return overlay
