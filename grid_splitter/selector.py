"""Pick the best grid by blending geometric plausibility with seam evidence.

Only the top few geometric candidates are checked against the edge
profiles. For each interior division line the strongest profile value near
the expected position is compared to the profile mean; lines well above
the mean are taken as visible seams.
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .candidates import GridCandidate, get_grid_candidates
from .config import DEFAULT_CONFIG, GridConfig
from .edges import EdgeProfiles, compute_edge_profiles, ensure_pixels
from .errors import NoCandidateFoundError
from .slicer import GridResult, build_grid_result

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateEvaluation:
    """Geometric candidate plus the edge evidence gathered for it."""
    candidate: GridCandidate
    edge_score: float
    combined_score: float

    def to_dict(self) -> dict:
        return {
            "rows": self.candidate.rows,
            "cols": self.candidate.cols,
            "geometric_score": round(self.candidate.geometric_score, 6),
            "edge_score": round(self.edge_score, 6),
            "combined_score": round(self.combined_score, 6),
        }


def search_window(width: int, height: int, rows: int, cols: int,
                  config: GridConfig = DEFAULT_CONFIG) -> int:
    """Tolerance (in px) around each expected division line."""
    cell_size = min(width / cols, height / rows)
    return max(config.min_search_window,
               int(math.floor(config.search_window_fraction * cell_size)))


def _line_ratios(profile: np.ndarray, length: int, divisions: int,
                 window: int, ratio_cap: float) -> List[float]:
    """Peak-to-baseline ratio at each interior division line of one axis."""
    if divisions <= 1:
        return []

    baseline = float(np.mean(profile))
    cell = length / divisions
    ratios = []
    for i in range(1, divisions):
        expected = int(math.floor(cell * i + 0.5))
        # interior positions only: 1 .. length - 2
        lo = max(expected - window, 1)
        hi = min(expected + window, length - 2)
        peak = float(profile[lo:hi + 1].max()) if hi >= lo else 0.0

        ratio = peak / baseline if baseline > 0 else 1.0
        ratios.append(min(ratio, ratio_cap))
    return ratios


def edge_score(rows: int, cols: int, width: int, height: int,
               profiles: EdgeProfiles,
               config: GridConfig = DEFAULT_CONFIG) -> float:
    """Seam evidence for a rows x cols grid, 0 (none) .. 1 (ratio_cap x baseline).

    Only vertical lines are checked when ``rows == 1`` and only horizontal
    lines when ``cols == 1``.
    """
    window = search_window(width, height, rows, cols, config)
    ratios = (
        _line_ratios(profiles.vertical, width, cols, window, config.ratio_cap)
        + _line_ratios(profiles.horizontal, height, rows, window, config.ratio_cap)
    )
    if not ratios:
        return 0.0

    avg_ratio = sum(ratios) / len(ratios)
    span = config.ratio_cap - 1.0
    if span <= 0:
        return 0.0
    return min(max((avg_ratio - 1.0) / span, 0.0), 1.0)


def evaluate_candidates(candidates: Sequence[GridCandidate],
                        profiles: EdgeProfiles,
                        width: int, height: int,
                        config: Optional[GridConfig] = None) -> List[CandidateEvaluation]:
    """Score the leading candidates against the edge profiles, in ranking order."""
    if config is None:
        config = DEFAULT_CONFIG

    limit = config.edge_candidate_limit
    window = candidates if limit is None else candidates[:limit]

    evaluations = []
    for candidate in window:
        e_score = edge_score(candidate.rows, candidate.cols, width, height, profiles, config)
        combined = (candidate.geometric_score * config.geometric_blend
                    + e_score * config.edge_blend)
        evaluations.append(CandidateEvaluation(candidate, e_score, combined))
        logger.debug(
            "  %dx%d: geometric=%.4f edge=%.4f combined=%.4f",
            candidate.rows, candidate.cols, candidate.geometric_score, e_score, combined,
        )
    return evaluations


def select_best(evaluations: Sequence[CandidateEvaluation]) -> CandidateEvaluation:
    """Highest combined score; earlier (better geometric rank) wins ties."""
    best = None
    for evaluation in evaluations:
        if best is None or evaluation.combined_score > best.combined_score:
            best = evaluation
    if best is None:
        raise NoCandidateFoundError("No grid candidates were available for selection")
    return best


def detect_grid(pixels: np.ndarray, config: Optional[GridConfig] = None) -> GridResult:
    """Infer the rows x cols layout of a contact sheet and build its cells.

    Args:
        pixels: (H, W, C) image array, RGB or RGBA.
        config: Tuning constants; ``DEFAULT_CONFIG`` when omitted.

    Returns:
        GridResult whose confidence is the winning combined score.

    Raises:
        InvalidInputError: the array is empty or has an unsupported shape.
        NoCandidateFoundError: the configuration leaves no layout to try.
        DegenerateGridError: the winning layout has more rows/cols than pixels.
    """
    if config is None:
        config = DEFAULT_CONFIG
    arr = ensure_pixels(pixels)
    height, width = arr.shape[:2]

    candidates = get_grid_candidates(width, height, config)
    if not candidates:
        raise NoCandidateFoundError(
            f"No grid candidates for max_rows={config.max_rows}, max_cols={config.max_cols}"
        )

    profiles = compute_edge_profiles(arr)
    evaluations = evaluate_candidates(candidates, profiles, width, height, config)
    best = select_best(evaluations)

    logger.debug(
        "Selected %dx%d grid (confidence %.4f) for %dx%d image",
        best.candidate.rows, best.candidate.cols, best.combined_score, width, height,
    )
    return build_grid_result(
        width, height, best.candidate.rows, best.candidate.cols,
        confidence=best.combined_score, config=config,
    )
