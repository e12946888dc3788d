"""Rank plausible rows x cols layouts from image dimensions alone.

No pixels are read here. Each layout is scored on how photographic its
cells look, how well the grid shape matches the image shape, how many
cells it has and how square the grid is.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .config import DEFAULT_CONFIG, GridConfig
from .errors import InvalidInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridCandidate:
    """One rows x cols hypothesis with its geometry-only score."""
    rows: int
    cols: int
    cell_width: float
    cell_height: float
    cell_aspect_ratio: float
    geometric_score: float

    @property
    def cell_count(self) -> int:
        return self.rows * self.cols


def _relative_distance(a: float, b: float) -> float:
    """Symmetric ratio-of-ratios distance, 0 when a == b."""
    return max(a, b) / min(a, b) - 1.0


def aspect_ratio_score(
    aspect_ratio: float,
    reference_ratios: Optional[Iterable[float]] = None,
    decay: Optional[float] = None,
) -> float:
    """Score in (0, 1] for how close a cell shape is to a common frame shape.

    Exactly 1.0 when ``aspect_ratio`` equals one of the reference ratios.
    """
    if reference_ratios is None:
        reference_ratios = DEFAULT_CONFIG.reference_aspect_ratios
    if decay is None:
        decay = DEFAULT_CONFIG.aspect_decay
    best = min(_relative_distance(aspect_ratio, r) for r in reference_ratios)
    return math.exp(-decay * best)


def layout_score(image_aspect_ratio: float, rows: int, cols: int,
                 decay: Optional[float] = None) -> float:
    """Prefer grids whose cols/rows shape follows the image's own shape."""
    if decay is None:
        decay = DEFAULT_CONFIG.layout_decay
    return math.exp(-decay * _relative_distance(image_aspect_ratio, cols / rows))


def cell_count_score(rows: int, cols: int, cap: int = 6) -> float:
    return min(rows * cols / cap, 1.0)


def symmetry_score(rows: int, cols: int) -> float:
    return 1.0 - abs(rows - cols) / max(rows, cols)


def score_candidate(width: int, height: int, rows: int, cols: int,
                    config: GridConfig = DEFAULT_CONFIG) -> GridCandidate:
    cell_width = width / cols
    cell_height = height / rows
    cell_ar = cell_width / cell_height

    score = (
        config.aspect_weight * aspect_ratio_score(
            cell_ar, config.reference_aspect_ratios, config.aspect_decay)
        + config.layout_weight * layout_score(
            width / height, rows, cols, config.layout_decay)
        + config.cell_count_weight * cell_count_score(rows, cols, config.cell_count_cap)
        + config.symmetry_weight * symmetry_score(rows, cols)
    )
    # float summation can land a hair above 1.0 when every term is perfect
    score = min(max(score, 0.0), 1.0)

    return GridCandidate(
        rows=rows,
        cols=cols,
        cell_width=cell_width,
        cell_height=cell_height,
        cell_aspect_ratio=cell_ar,
        geometric_score=score,
    )


def _ranking_key(candidate: GridCandidate):
    # higher score first, then fewer cells, then fewer rows
    return (-candidate.geometric_score, candidate.cell_count, candidate.rows)


def get_grid_candidates(width: int, height: int,
                        config: Optional[GridConfig] = None) -> List[GridCandidate]:
    """Enumerate every rows x cols layout except 1x1, best first.

    Args:
        width: Image width in pixels (> 0).
        height: Image height in pixels (> 0).
        config: Scoring constants; ``DEFAULT_CONFIG`` when omitted.

    Returns:
        Candidates sorted by descending geometric score. Ties go to the
        layout with fewer cells, then fewer rows, so the order is stable
        for identical inputs.
    """
    if config is None:
        config = DEFAULT_CONFIG
    if width <= 0 or height <= 0:
        raise InvalidInputError(f"Image dimensions must be positive, got {width}x{height}")

    candidates = []
    for rows in range(1, config.max_rows + 1):
        for cols in range(1, config.max_cols + 1):
            if rows == 1 and cols == 1:
                continue
            candidates.append(score_candidate(width, height, rows, cols, config))

    candidates.sort(key=_ranking_key)
    logger.debug("Ranked %d grid candidates for %dx%d", len(candidates), width, height)
    return candidates
