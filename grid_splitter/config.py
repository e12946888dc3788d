"""Grid detection configuration: reference ratios, scoring weights, tiling policy."""

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union


# ---------------------------------------------------------------------------
# Common photo/video cell shapes (width / height)
# ---------------------------------------------------------------------------
REFERENCE_ASPECT_RATIOS: Tuple[float, ...] = (
    16 / 9,    # widescreen video, very common for storyboards
    4 / 3,     # standard photo/video
    3 / 2,     # DSLR
    1.85,      # cinema flat
    2.39,      # cinema scope
    1.0,       # square
    9 / 16,    # portrait video
    3 / 4,     # portrait photo
    2 / 3,     # portrait DSLR
)

# Largest grid dimension enumerated by the candidate generator
MAX_GRID_DIMENSION = 6


class TilingPolicy(str, Enum):
    ROUND = "round"      # independent half-up rounding, up to 1px drift at the far edge
    ABSORB = "absorb"    # floor-sized cells, last row/column takes the remainder


@dataclass(frozen=True)
class GridConfig:
    """Tuning constants for candidate scoring, edge evidence and slicing.

    The defaults were picked by eye on generated contact sheets rather than
    fitted against a labelled set, which is why they are all exposed here.
    """

    # --- Candidate enumeration ---
    max_rows: int = MAX_GRID_DIMENSION
    max_cols: int = MAX_GRID_DIMENSION

    # --- Geometric scoring ---
    reference_aspect_ratios: Tuple[float, ...] = REFERENCE_ASPECT_RATIOS
    aspect_decay: float = 3.0
    layout_decay: float = 2.0
    cell_count_cap: int = 6
    aspect_weight: float = 0.45
    layout_weight: float = 0.25
    cell_count_weight: float = 0.15
    symmetry_weight: float = 0.15

    # --- Edge evidence ---
    edge_candidate_limit: Optional[int] = 8   # None evaluates every candidate
    ratio_cap: float = 3.0
    search_window_fraction: float = 0.03
    min_search_window: int = 3

    # --- Final blend ---
    geometric_blend: float = 0.7
    edge_blend: float = 0.3

    # --- Slicing ---
    tiling: TilingPolicy = TilingPolicy.ROUND

    def __post_init__(self):
        if isinstance(self.tiling, str) and not isinstance(self.tiling, TilingPolicy):
            object.__setattr__(self, "tiling", TilingPolicy(self.tiling))
        object.__setattr__(
            self, "reference_aspect_ratios",
            tuple(float(r) for r in self.reference_aspect_ratios),
        )

        if self.max_rows < 1 or self.max_cols < 1:
            raise ValueError("max_rows and max_cols must be at least 1")
        if not self.reference_aspect_ratios:
            raise ValueError("reference_aspect_ratios must not be empty")
        if any(r <= 0 for r in self.reference_aspect_ratios):
            raise ValueError("reference aspect ratios must be positive")
        if self.cell_count_cap < 1:
            raise ValueError("cell_count_cap must be at least 1")
        if self.edge_candidate_limit is not None and self.edge_candidate_limit < 1:
            raise ValueError("edge_candidate_limit must be at least 1 (or None)")
        if self.ratio_cap < 1.0:
            raise ValueError("ratio_cap must be >= 1")
        if self.min_search_window < 0 or self.search_window_fraction < 0:
            raise ValueError("search window settings must be non-negative")

        weights = (
            self.aspect_weight, self.layout_weight, self.cell_count_weight,
            self.symmetry_weight, self.geometric_blend, self.edge_blend,
        )
        if any(w < 0 for w in weights):
            raise ValueError("scoring weights must be non-negative")

    def to_dict(self) -> dict:
        d = {}
        for k in self.__dataclass_fields__:
            v = getattr(self, k)
            if isinstance(v, Enum):
                d[k] = v.value
            elif isinstance(v, tuple):
                d[k] = list(v)
            else:
                d[k] = v
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "GridConfig":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})


DEFAULT_CONFIG = GridConfig()


def load_config(path: Union[str, Path]) -> GridConfig:
    """Read a JSON object of ``GridConfig`` overrides."""
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    return GridConfig.from_dict(data)
