"""One-call flows: detect-then-slice, or slice with caller-supplied rows/cols."""

from typing import List, Optional, Tuple

import numpy as np

from .config import GridConfig
from .edges import ensure_pixels
from .selector import detect_grid
from .slicer import GridResult, create_grid_for_dimensions, split_image


def detect_and_split(pixels: np.ndarray,
                     config: Optional[GridConfig] = None) -> Tuple[GridResult, List[np.ndarray]]:
    grid = detect_grid(pixels, config)
    return grid, split_image(pixels, grid)


def split_with_dimensions(pixels: np.ndarray, rows: int, cols: int,
                          config: Optional[GridConfig] = None) -> Tuple[GridResult, List[np.ndarray]]:
    """Skip detection entirely and slice on the given layout (confidence 1)."""
    height, width = ensure_pixels(pixels).shape[:2]
    grid = create_grid_for_dimensions(width, height, rows, cols, config)
    return grid, split_image(pixels, grid)
