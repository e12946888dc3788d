"""Failure types for grid detection and slicing.

All of them derive from ``ValueError`` so callers that already guard image
processing with ``except ValueError`` keep working.
"""


class GridSplitError(ValueError):
    """Base class for every failure raised by the detection/slicing core."""


class InvalidInputError(GridSplitError):
    """Dimensions, pixel buffer, or requested rows/cols are unusable."""


class NoCandidateFoundError(GridSplitError):
    """The candidate generator produced nothing to choose from."""


class DegenerateGridError(GridSplitError):
    """The grid would contain cells with zero width or height."""

    def __init__(self, rows: int, cols: int, width: int, height: int):
        self.rows = rows
        self.cols = cols
        self.width = width
        self.height = height
        super().__init__(
            f"{rows}x{cols} grid does not fit a {width}x{height} image "
            f"(cells would be empty)"
        )
