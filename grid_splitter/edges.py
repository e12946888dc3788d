"""Column and row gradient profiles used as evidence of seams between cells."""

import logging
from dataclasses import dataclass
from typing import Union

import numpy as np

from .errors import InvalidInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EdgeProfiles:
    """Mean RGB gradient per column (vertical) and per row (horizontal)."""
    vertical: np.ndarray     # length == width, detects vertical seams
    horizontal: np.ndarray   # length == height, detects horizontal seams

    @property
    def vertical_baseline(self) -> float:
        return float(np.mean(self.vertical))

    @property
    def horizontal_baseline(self) -> float:
        return float(np.mean(self.horizontal))


def as_pixel_array(data: Union[bytes, bytearray, memoryview, np.ndarray],
                   width: int, height: int, channels: int = 4) -> np.ndarray:
    """Reshape a flat row-major buffer (RGBA by default) into (H, W, C)."""
    if width <= 0 or height <= 0:
        raise InvalidInputError(f"Image dimensions must be positive, got {width}x{height}")
    if channels not in (3, 4):
        raise InvalidInputError(f"Unsupported channel count: {channels}")

    if isinstance(data, np.ndarray):
        flat = data.reshape(-1)
    else:
        flat = np.frombuffer(data, dtype=np.uint8)

    expected = width * height * channels
    if flat.size != expected:
        raise InvalidInputError(
            f"Buffer holds {flat.size} values, expected {expected} "
            f"for {width}x{height}x{channels}"
        )
    return flat.reshape(height, width, channels)


def ensure_pixels(pixels: np.ndarray) -> np.ndarray:
    """Validate an image array and return it as (H, W, C) with C in {3, 4}."""
    arr = np.asarray(pixels)
    if arr.ndim == 2:
        arr = arr[:, :, np.newaxis]
    if arr.ndim != 3:
        raise InvalidInputError(f"Unsupported image shape: {arr.shape}")

    h, w, c = arr.shape
    if h <= 0 or w <= 0:
        raise InvalidInputError(f"Image dimensions must be positive, got {w}x{h}")
    if c == 1:
        arr = np.repeat(arr, 3, axis=2)
    elif c not in (3, 4):
        raise InvalidInputError(f"Unsupported channel count: {c}")
    return arr


def _axis_profile(rgb: np.ndarray, axis: int) -> np.ndarray:
    """Mean |p[i+1] - p[i-1]| over RGB along ``axis``, averaged across the other axis.

    axis=1 walks columns (vertical seams), axis=0 walks rows.
    """
    length = rgb.shape[axis]
    across = rgb.shape[1 - axis]
    profile = np.zeros(length, dtype=np.float64)
    if length < 3:
        return profile

    if axis == 1:
        diff = np.abs(rgb[:, 2:] - rgb[:, :-2])
        summed = diff.sum(axis=(0, 2))
    else:
        diff = np.abs(rgb[2:, :] - rgb[:-2, :])
        summed = diff.sum(axis=(1, 2))

    # per-pixel value is the channel mean, then averaged over the other axis
    profile[1:-1] = summed / (3.0 * across)
    return profile


def compute_vertical_profile(pixels: np.ndarray) -> np.ndarray:
    rgb = ensure_pixels(pixels)[:, :, :3].astype(np.float64)
    return _axis_profile(rgb, axis=1)


def compute_horizontal_profile(pixels: np.ndarray) -> np.ndarray:
    rgb = ensure_pixels(pixels)[:, :, :3].astype(np.float64)
    return _axis_profile(rgb, axis=0)


def compute_edge_profiles(pixels: np.ndarray) -> EdgeProfiles:
    """Compute both profiles in a single pass over the image.

    Boundary positions (first/last column and row) are always 0.
    """
    rgb = ensure_pixels(pixels)[:, :, :3].astype(np.float64)
    profiles = EdgeProfiles(
        vertical=_axis_profile(rgb, axis=1),
        horizontal=_axis_profile(rgb, axis=0),
    )
    logger.debug(
        "Edge baselines: vertical=%.3f horizontal=%.3f",
        profiles.vertical_baseline, profiles.horizontal_baseline,
    )
    return profiles
