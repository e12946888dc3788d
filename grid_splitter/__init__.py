"""Public interface for contact-sheet grid detection and splitting."""

from __future__ import annotations

from .candidates import GridCandidate, aspect_ratio_score, get_grid_candidates
from .config import DEFAULT_CONFIG, GridConfig, TilingPolicy, load_config
from .edges import EdgeProfiles, as_pixel_array, compute_edge_profiles
from .errors import (
    DegenerateGridError,
    GridSplitError,
    InvalidInputError,
    NoCandidateFoundError,
)
from .selector import CandidateEvaluation, detect_grid, edge_score, evaluate_candidates
from .slicer import (
    Cell,
    GridResult,
    compute_cells,
    create_grid_for_dimensions,
    crop_cell,
    split_image,
)
from .splitter import detect_and_split, split_with_dimensions

__all__ = [
    "CandidateEvaluation",
    "Cell",
    "DEFAULT_CONFIG",
    "DegenerateGridError",
    "EdgeProfiles",
    "GridCandidate",
    "GridConfig",
    "GridResult",
    "GridSplitError",
    "InvalidInputError",
    "NoCandidateFoundError",
    "TilingPolicy",
    "as_pixel_array",
    "aspect_ratio_score",
    "compute_cells",
    "compute_edge_profiles",
    "create_grid_for_dimensions",
    "crop_cell",
    "detect_and_split",
    "detect_grid",
    "edge_score",
    "evaluate_candidates",
    "get_grid_candidates",
    "load_config",
    "split_image",
    "split_with_dimensions",
]
