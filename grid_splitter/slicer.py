"""Cell rectangles for a rows x cols grid and the crops they describe."""

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from .config import DEFAULT_CONFIG, GridConfig, TilingPolicy
from .edges import ensure_pixels
from .errors import DegenerateGridError, InvalidInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cell:
    """One rectangular sub-region of the source image."""
    x: int
    y: int
    width: int
    height: int

    def as_box(self) -> Tuple[int, int, int, int]:
        """(left, upper, right, lower), the box convention PIL's crop uses."""
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class GridResult:
    """Selected (or caller-specified) partition of an image."""
    rows: int
    cols: int
    cells: Tuple[Cell, ...] = field(default_factory=tuple)
    confidence: float = 1.0

    def to_dict(self) -> dict:
        return {
            "rows": self.rows,
            "cols": self.cols,
            "confidence": self.confidence,
            "cells": [c.to_dict() for c in self.cells],
        }


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _check_fits(width: int, height: int, rows: int, cols: int) -> None:
    if width <= 0 or height <= 0:
        raise InvalidInputError(f"Image dimensions must be positive, got {width}x{height}")
    if rows < 1 or cols < 1:
        raise InvalidInputError(f"rows and cols must be at least 1, got {rows}x{cols}")
    if rows > height or cols > width:
        raise DegenerateGridError(rows, cols, width, height)


def _round_spans(length: int, count: int) -> List[Tuple[int, int]]:
    nominal = length / count
    size = round_half_up(nominal)
    return [(round_half_up(i * nominal), size) for i in range(count)]


def _absorb_spans(length: int, count: int) -> List[Tuple[int, int]]:
    size = length // count
    spans = [(i * size, size) for i in range(count - 1)]
    last = (count - 1) * size
    spans.append((last, length - last))
    return spans


def compute_cells(width: int, height: int, rows: int, cols: int,
                  tiling: TilingPolicy = TilingPolicy.ROUND) -> List[Cell]:
    """Row-major cell rectangles for a rows x cols grid.

    With ``TilingPolicy.ROUND`` every origin and size is rounded on its own,
    so the last column/row may overshoot or fall short of the image edge by
    a pixel. ``TilingPolicy.ABSORB`` makes the last column/row take up the
    remainder and the cells tile the image exactly.
    """
    _check_fits(width, height, rows, cols)

    tiling = TilingPolicy(tiling)
    spans = _absorb_spans if tiling is TilingPolicy.ABSORB else _round_spans
    x_spans = spans(width, cols)
    y_spans = spans(height, rows)

    return [
        Cell(x=x, y=y, width=w, height=h)
        for (y, h) in y_spans
        for (x, w) in x_spans
    ]


def build_grid_result(width: int, height: int, rows: int, cols: int,
                      confidence: float = 1.0,
                      config: Optional[GridConfig] = None) -> GridResult:
    if config is None:
        config = DEFAULT_CONFIG
    cells = compute_cells(width, height, rows, cols, config.tiling)
    return GridResult(
        rows=rows,
        cols=cols,
        cells=tuple(cells),
        confidence=min(max(float(confidence), 0.0), 1.0),
    )


def create_grid_for_dimensions(width: int, height: int, rows: int, cols: int,
                               config: Optional[GridConfig] = None) -> GridResult:
    """Manual override: use the caller's rows/cols as-is, confidence 1."""
    if config is None:
        config = DEFAULT_CONFIG
    if isinstance(rows, bool) or isinstance(cols, bool) \
            or not isinstance(rows, (int, np.integer)) or not isinstance(cols, (int, np.integer)):
        raise InvalidInputError(f"rows and cols must be integers, got {rows!r}x{cols!r}")
    rows, cols = int(rows), int(cols)
    if not (1 <= rows <= config.max_rows and 1 <= cols <= config.max_cols):
        raise InvalidInputError(
            f"rows/cols must be within 1..{config.max_rows} x 1..{config.max_cols}, "
            f"got {rows}x{cols}"
        )
    if rows == 1 and cols == 1:
        raise InvalidInputError("A 1x1 grid is not a split")

    return build_grid_result(width, height, rows, cols, confidence=1.0, config=config)


def _source_array(pixels: np.ndarray) -> np.ndarray:
    # validate, but crop the caller's array so the pixel format is preserved
    ensure_pixels(pixels)
    return np.asarray(pixels)


def crop_cell(pixels: np.ndarray, cell: Cell) -> np.ndarray:
    """Copy one cell out of the image.

    The output always has the cell's exact width/height and the source's
    dtype and channel count. Any part of the cell lying outside the source
    (rounding drift) is left as zeros, i.e. transparent for RGBA.
    """
    arr = _source_array(pixels)
    if cell.width <= 0 or cell.height <= 0:
        raise InvalidInputError(f"Cannot crop an empty cell: {cell}")

    h, w = arr.shape[:2]
    out = np.zeros((cell.height, cell.width) + arr.shape[2:], dtype=arr.dtype)

    x0, y0 = max(cell.x, 0), max(cell.y, 0)
    x1, y1 = min(cell.x + cell.width, w), min(cell.y + cell.height, h)
    if x1 > x0 and y1 > y0:
        out[y0 - cell.y:y1 - cell.y, x0 - cell.x:x1 - cell.x] = arr[y0:y1, x0:x1]
    return out


def split_image(pixels: np.ndarray, grid: GridResult) -> List[np.ndarray]:
    """Crop every cell of ``grid`` from ``pixels``, in the grid's row-major order."""
    arr = _source_array(pixels)
    if len(grid.cells) != grid.rows * grid.cols:
        raise InvalidInputError(
            f"Grid lists {len(grid.cells)} cells for a {grid.rows}x{grid.cols} layout"
        )
    crops = [crop_cell(arr, cell) for cell in grid.cells]
    logger.debug("Split %dx%d image into %d cells", arr.shape[1], arr.shape[0], len(crops))
    return crops
