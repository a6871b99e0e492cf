"""Image acquisition helpers.

Turns an uploaded file or raw camera bytes into a ``CapturedImage``:
decode, fix EXIF orientation, downscale, and re-encode as JPEG the same way
the camera capture path does.
"""

from __future__ import annotations

import io
from pathlib import Path

from PIL import Image, ImageOps

from venus.config import settings
from venus.models.contracts import CapturedImage


def image_to_bytes(image: Image.Image, fmt: str = "JPEG", quality: int | None = None) -> bytes:
    """Encode a PIL Image. ``quality`` only applies to lossy formats."""
    buf = io.BytesIO()
    if quality is not None:
        image.save(buf, format=fmt, quality=quality)
    else:
        image.save(buf, format=fmt)
    return buf.getvalue()


def open_image(data: bytes) -> Image.Image:
    """Decode image bytes, raising ValueError for anything Pillow cannot read."""
    try:
        img = Image.open(io.BytesIO(data))
        img.load()  # Force full decode to catch truncation
    except Exception as exc:
        raise ValueError("Not a readable image") from exc
    return img


def _fit(image: Image.Image, max_dimension: int) -> Image.Image:
    w, h = image.size
    longest = max(w, h)
    if longest <= max_dimension:
        return image
    scale = max_dimension / longest
    size = (max(1, round(w * scale)), max(1, round(h * scale)))
    return image.resize(size, Image.Resampling.LANCZOS)


def normalize_capture(
    image: Image.Image,
    max_dimension: int | None = None,
    quality: int | None = None,
) -> CapturedImage:
    """Orient, downscale and JPEG-encode a decoded image."""
    max_dimension = max_dimension or settings.max_image_dimension
    quality = quality or settings.jpeg_quality
    oriented = ImageOps.exif_transpose(image) or image
    rgb = _fit(oriented.convert("RGB"), max_dimension)
    return CapturedImage.from_bytes(image_to_bytes(rgb, "JPEG", quality), "image/jpeg")


def capture_from_bytes(data: bytes) -> CapturedImage:
    """Build a CapturedImage from raw camera or upload bytes."""
    return normalize_capture(open_image(data))


def load_image_file(path: str | Path) -> CapturedImage:
    """Read an image file from disk (the upload path)."""
    return capture_from_bytes(Path(path).read_bytes())
