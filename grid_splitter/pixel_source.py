"""Decode images into pixel arrays and encode cell arrays back to PNG.

This is the file-format side of the package. The detection and slicing
modules only ever see numpy arrays produced here (or by the caller).
"""

import base64
import binascii
import logging
from io import BytesIO
from pathlib import Path
from typing import List, Sequence, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp", ".tif", ".tiff"}


class ImageDecodeError(ValueError):
    """An image file, byte string or data URL could not be decoded."""


def _to_rgba_array(pil_img: Image.Image) -> np.ndarray:
    if pil_img.mode != "RGBA":
        pil_img = pil_img.convert("RGBA")
    return np.array(pil_img)


def load_image(path: Union[str, Path]) -> np.ndarray:
    """Open an image file as an (H, W, 4) uint8 RGBA array."""
    try:
        with Image.open(path) as pil_img:
            return _to_rgba_array(pil_img)
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageDecodeError(f"Could not load image: {path} ({exc})") from exc


def decode_image_bytes(data: bytes) -> np.ndarray:
    try:
        with Image.open(BytesIO(data)) as pil_img:
            return _to_rgba_array(pil_img)
    except (UnidentifiedImageError, OSError) as exc:
        raise ImageDecodeError(f"Could not decode image bytes ({exc})") from exc


def decode_data_url(url: str) -> np.ndarray:
    """Decode a ``data:image/...;base64,...`` URL."""
    header, sep, payload = url.partition(",")
    if not sep or not header.startswith("data:image/") or ";base64" not in header:
        raise ImageDecodeError("Expected a base64 image data URL")
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(f"Invalid base64 payload in data URL ({exc})") from exc
    return decode_image_bytes(raw)


def _to_pil(pixels: np.ndarray) -> Image.Image:
    arr = np.asarray(pixels)
    if arr.dtype != np.uint8:
        arr = np.clip(arr, 0, 255).astype(np.uint8)
    if arr.ndim == 3 and arr.shape[2] not in (3, 4):
        arr = arr[:, :, :3]
    # mode follows from the array shape: L, RGB or RGBA
    return Image.fromarray(np.ascontiguousarray(arr))


def encode_png(pixels: np.ndarray) -> bytes:
    buf = BytesIO()
    _to_pil(pixels).save(buf, format="PNG")
    return buf.getvalue()


def to_data_url(pixels: np.ndarray) -> str:
    b64 = base64.b64encode(encode_png(pixels)).decode("utf-8")
    return f"data:image/png;base64,{b64}"


def save_cells(cells: Sequence[np.ndarray], output_dir: Path,
               prefix: str = "cell") -> List[Path]:
    """Save cell arrays as numbered PNGs in row-major order.

    Returns list of saved file paths.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    saved = []
    for idx, cell in enumerate(cells):
        fpath = output_dir / f"{prefix}_{idx:02d}.png"
        _to_pil(cell).save(fpath)
        saved.append(fpath)
    logger.debug("Saved %d cells to %s", len(saved), output_dir)
    return saved
