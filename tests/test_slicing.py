"""Tests for cell computation, manual override and cropping."""

from __future__ import annotations

import numpy as np
import pytest

from grid_splitter.config import GridConfig, TilingPolicy
from grid_splitter.errors import DegenerateGridError, InvalidInputError
from grid_splitter.selector import detect_grid
from grid_splitter.slicer import (
    Cell,
    GridResult,
    compute_cells,
    create_grid_for_dimensions,
    crop_cell,
    round_half_up,
    split_image,
)
from grid_splitter.splitter import detect_and_split, split_with_dimensions


ALL_LAYOUTS = [(r, c) for r in range(1, 7) for c in range(1, 7) if (r, c) != (1, 1)]


def _make_gradient(width: int, height: int) -> np.ndarray:
    """RGBA image whose pixels encode their own coordinates."""
    img = np.zeros((height, width, 4), dtype=np.uint8)
    xs = np.arange(width, dtype=np.uint32)
    ys = np.arange(height, dtype=np.uint32)
    img[:, :, 0] = (xs[np.newaxis, :] % 256).astype(np.uint8)
    img[:, :, 1] = (ys[:, np.newaxis] % 256).astype(np.uint8)
    img[:, :, 2] = ((xs[np.newaxis, :] + ys[:, np.newaxis]) % 251).astype(np.uint8)
    img[:, :, 3] = 255
    return img


# ---------------------------------------------------------------------------
# Tests: manual override
# ---------------------------------------------------------------------------


class TestManualOverride:
    def test_900x600_into_3x4(self):
        grid = create_grid_for_dimensions(900, 600, rows=3, cols=4)
        assert grid.rows == 3 and grid.cols == 4
        assert grid.confidence == 1
        assert len(grid.cells) == 12
        assert all((c.width, c.height) == (225, 200) for c in grid.cells)
        # row-major: index 5 is row 1, col 1
        assert grid.cells[5] == Cell(x=225, y=200, width=225, height=200)
        assert grid.cells[-1] == Cell(x=675, y=400, width=225, height=200)

    @pytest.mark.parametrize("size", [(1000, 1000), (777, 513), (1920, 1080), (37, 6)])
    @pytest.mark.parametrize("layout", ALL_LAYOUTS)
    def test_cells_cover_image_within_rounding(self, size, layout):
        width, height = size
        rows, cols = layout
        if rows > height or cols > width:
            with pytest.raises(DegenerateGridError):
                create_grid_for_dimensions(width, height, rows, cols)
            return

        grid = create_grid_for_dimensions(width, height, rows, cols)
        assert len(grid.cells) == rows * cols
        first_row = grid.cells[:cols]
        first_col = grid.cells[::cols]
        assert abs(sum(c.width for c in first_row) - width) <= cols
        assert abs(sum(c.height for c in first_col) - height) <= rows
        assert all(c.width > 0 and c.height > 0 for c in grid.cells)

    @pytest.mark.parametrize("rows, cols", [(1, 1), (0, 2), (2, 0), (7, 2), (2, 7), (-1, 3)])
    def test_out_of_range_layouts_rejected(self, rows, cols):
        with pytest.raises(InvalidInputError):
            create_grid_for_dimensions(600, 600, rows, cols)

    def test_non_integer_layout_rejected(self):
        with pytest.raises(InvalidInputError):
            create_grid_for_dimensions(600, 600, 2.5, 2)

    def test_larger_layouts_allowed_by_config(self):
        grid = create_grid_for_dimensions(800, 800, 8, 8, GridConfig(max_rows=8, max_cols=8))
        assert len(grid.cells) == 64

    def test_single_pixel_wide_image(self):
        grid = create_grid_for_dimensions(1, 100, rows=3, cols=1)
        assert [(c.x, c.width) for c in grid.cells] == [(0, 1)] * 3
        assert [c.y for c in grid.cells] == [0, 33, 67]

    def test_single_pixel_tall_image(self):
        grid = create_grid_for_dimensions(100, 1, rows=1, cols=4)
        assert all(c.height == 1 and c.width == 25 for c in grid.cells)

    def test_more_cols_than_pixels_is_degenerate(self):
        with pytest.raises(DegenerateGridError):
            create_grid_for_dimensions(1, 100, rows=2, cols=2)
        with pytest.raises(DegenerateGridError):
            create_grid_for_dimensions(100, 3, rows=4, cols=1)

    def test_non_positive_dimensions_rejected(self):
        with pytest.raises(InvalidInputError):
            create_grid_for_dimensions(0, 100, 2, 2)


# ---------------------------------------------------------------------------
# Tests: tiling policies
# ---------------------------------------------------------------------------


class TestTiling:
    def test_rounding_is_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(2.4999) == 2
        cells = compute_cells(5, 4, rows=1, cols=2)
        assert [(c.x, c.width) for c in cells] == [(0, 3), (3, 3)]

    def test_round_policy_can_overshoot_by_a_pixel(self):
        cells = compute_cells(1001, 10, rows=1, cols=2)
        assert cells[1].x + cells[1].width == 1002

    def test_absorb_policy_tiles_exactly(self):
        cells = compute_cells(1001, 601, rows=3, cols=2, tiling=TilingPolicy.ABSORB)
        assert [(c.x, c.width) for c in cells[:2]] == [(0, 500), (500, 501)]
        assert [(c.y, c.height) for c in cells[::2]] == [(0, 200), (200, 200), (400, 201)]

    @pytest.mark.parametrize("layout", ALL_LAYOUTS)
    def test_absorb_policy_sums_match(self, layout):
        rows, cols = layout
        cells = compute_cells(997, 641, rows, cols, tiling="absorb")
        assert sum(c.width for c in cells[:cols]) == 997
        assert sum(c.height for c in cells[::cols]) == 641
        assert cells[-1].x + cells[-1].width == 997
        assert cells[-1].y + cells[-1].height == 641

    def test_config_tiling_used_by_manual_override(self):
        grid = create_grid_for_dimensions(1001, 100, 1, 2, GridConfig(tiling="absorb"))
        assert [c.width for c in grid.cells] == [500, 501]


# ---------------------------------------------------------------------------
# Tests: cropping
# ---------------------------------------------------------------------------


class TestCropping:
    def test_crop_matches_source_region(self):
        img = _make_gradient(90, 60)
        cell = Cell(x=30, y=20, width=30, height=20)
        np.testing.assert_array_equal(crop_cell(img, cell), img[20:40, 30:60])

    def test_crop_is_a_copy(self):
        img = _make_gradient(20, 20)
        crop = crop_cell(img, Cell(0, 0, 10, 10))
        crop[:] = 0
        assert img[5, 5, 3] == 255

    def test_overshoot_is_transparent(self):
        img = _make_gradient(1001, 8)
        grid = create_grid_for_dimensions(1001, 8, rows=1, cols=2)
        right = split_image(img, grid)[1]
        assert right.shape == (8, 501, 4)
        np.testing.assert_array_equal(right[:, :500], img[:, 501:])
        assert not right[:, 500].any()

    def test_preserves_pixel_format(self):
        rgb = _make_gradient(40, 30)[:, :, :3].copy()
        crops = split_image(rgb, create_grid_for_dimensions(40, 30, 2, 2))
        assert all(c.shape == (15, 20, 3) and c.dtype == np.uint8 for c in crops)

        gray = rgb[:, :, 0].astype(np.float32)
        crops = split_image(gray, create_grid_for_dimensions(40, 30, 2, 2))
        assert all(c.shape == (15, 20) and c.dtype == np.float32 for c in crops)

    def test_split_returns_one_buffer_per_cell(self):
        img = _make_gradient(640, 480)
        grid = detect_grid(img)
        crops = split_image(img, grid)
        assert len(crops) == len(grid.cells) == grid.rows * grid.cols
        for crop, cell in zip(crops, grid.cells):
            assert crop.shape[:2] == (cell.height, cell.width)

    def test_split_rejects_inconsistent_grid(self):
        grid = GridResult(rows=2, cols=2, cells=(Cell(0, 0, 10, 10),), confidence=1.0)
        with pytest.raises(InvalidInputError):
            split_image(_make_gradient(20, 20), grid)

    def test_empty_cell_rejected(self):
        with pytest.raises(InvalidInputError):
            crop_cell(_make_gradient(10, 10), Cell(0, 0, 0, 5))


# ---------------------------------------------------------------------------
# Tests: one-call flows
# ---------------------------------------------------------------------------


class TestSplitFlows:
    def test_split_with_dimensions(self):
        img = _make_gradient(900, 600)
        grid, crops = split_with_dimensions(img, 3, 4)
        assert grid.confidence == 1
        assert len(crops) == 12
        np.testing.assert_array_equal(crops[5], img[200:400, 225:450])

    def test_detect_and_split(self):
        img = _make_gradient(300, 200)
        grid, crops = detect_and_split(img)
        assert len(crops) == grid.rows * grid.cols
        assert 0.0 <= grid.confidence <= 1.0

    def test_result_serialises(self):
        grid = create_grid_for_dimensions(200, 100, 1, 2)
        d = grid.to_dict()
        assert d["rows"] == 1 and d["cols"] == 2 and d["confidence"] == 1.0
        assert d["cells"][1] == {"x": 100, "y": 0, "width": 100, "height": 100}
        assert grid.cells[1].as_box() == (100, 0, 200, 100)
