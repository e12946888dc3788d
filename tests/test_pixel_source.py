"""Tests for image decoding/encoding helpers and the QC overlay."""

from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from grid_splitter.pixel_source import (
    ImageDecodeError,
    decode_data_url,
    decode_image_bytes,
    encode_png,
    load_image,
    save_cells,
    to_data_url,
)
from grid_splitter.qc_visual import GRID_COLOR, render_grid_overlay
from grid_splitter.slicer import create_grid_for_dimensions


def _make_test_image(width: int = 24, height: int = 16) -> np.ndarray:
    rng = np.random.RandomState(42)
    img = rng.randint(0, 256, (height, width, 4), dtype=np.uint8)
    img[:, :, 3] = 255
    return img


class TestDecoding:
    def test_load_rgb_file_as_rgba(self, tmp_path):
        rgb = _make_test_image()[:, :, :3]
        path = tmp_path / "sheet.png"
        Image.fromarray(rgb).save(path)

        loaded = load_image(path)
        assert loaded.shape == (16, 24, 4)
        assert loaded.dtype == np.uint8
        np.testing.assert_array_equal(loaded[:, :, :3], rgb)
        assert (loaded[:, :, 3] == 255).all()

    def test_load_palette_file(self, tmp_path):
        path = tmp_path / "palette.gif"
        Image.fromarray(_make_test_image()[:, :, :3]).convert("P").save(path)
        assert load_image(path).shape == (16, 24, 4)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ImageDecodeError):
            load_image(tmp_path / "nope.png")

    def test_garbage_bytes(self):
        with pytest.raises(ImageDecodeError):
            decode_image_bytes(b"definitely not an image")

    def test_png_bytes(self):
        img = _make_test_image()
        np.testing.assert_array_equal(decode_image_bytes(encode_png(img)), img)

    def test_data_url_round_trip(self):
        img = _make_test_image()
        url = to_data_url(img)
        assert url.startswith("data:image/png;base64,")
        np.testing.assert_array_equal(decode_data_url(url), img)

    @pytest.mark.parametrize("url", [
        "not a data url",
        "data:text/plain;base64,aGVsbG8=",
        "data:image/png,rawbytes",
        "data:image/png;base64,@@@@",
    ])
    def test_bad_data_urls(self, url):
        with pytest.raises(ImageDecodeError):
            decode_data_url(url)


class TestSaveCells:
    def test_saves_numbered_pngs(self, tmp_path):
        img = _make_test_image()
        cells = [img[:8, :12], img[:8, 12:], img[8:, :12], img[8:, 12:]]
        saved = save_cells(cells, tmp_path / "out", prefix="sheet")
        assert [p.name for p in saved] == [f"sheet_{i:02d}.png" for i in range(4)]
        with Image.open(saved[3]) as reloaded:
            assert reloaded.size == (12, 8)
            assert reloaded.mode == "RGBA"
            np.testing.assert_array_equal(np.array(reloaded), cells[3])


class TestGridOverlay:
    def test_overlay_marks_cell_borders(self):
        img = np.zeros((200, 200, 4), dtype=np.uint8)
        img[:, :, 3] = 255
        grid = create_grid_for_dimensions(200, 200, 2, 2)
        overlay = render_grid_overlay(img, grid)

        assert overlay.shape == (200, 200, 3)
        assert overlay.dtype == np.uint8
        assert tuple(overlay[0, 0]) == GRID_COLOR
        assert tuple(overlay[100, 150]) == GRID_COLOR   # top edge of cell 3
        assert tuple(overlay[50, 50]) == (0, 0, 0)

    def test_source_untouched(self):
        img = _make_test_image(60, 40)
        before = img.copy()
        render_grid_overlay(img, create_grid_for_dimensions(60, 40, 2, 3))
        np.testing.assert_array_equal(img, before)
