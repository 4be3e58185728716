"""Image processing helpers: thumbnails and edited-image writes."""

import base64
import binascii
import io
import logging
import re
from pathlib import Path
from typing import Union

from PIL import Image


logger = logging.getLogger(__name__)

# Thumbnail encoders keyed by lowercase source extension.
THUMBNAIL_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
}

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(;[\w=-]+)*;base64,", re.IGNORECASE)


class UnsupportedImageFormat(ValueError):
    """Raised when an image extension has no thumbnail encoder."""


def output_format_for(path: Union[str, Path]) -> str:
    """Return the Pillow format name for a path, by extension."""
    suffix = Path(path).suffix.lower()
    fmt = THUMBNAIL_FORMATS.get(suffix)
    if fmt is None:
        raise UnsupportedImageFormat(f"unsupported image format for thumbnail: {suffix or '(none)'}")
    return fmt


def _prepare_for_format(image: Image.Image, fmt: str) -> Image.Image:
    if fmt == "JPEG" and image.mode not in ("RGB", "L"):
        return image.convert("RGB")
    return image


class ThumbnailGenerator:
    """Resize originals to a fixed width, keeping aspect ratio."""

    def __init__(self, width: int = 400):
        """Initialize generator."""
        if width < 1:
            raise ValueError("thumbnail width must be positive")
        self.width = width

    def scaled_size(self, size: tuple[int, int]) -> tuple[int, int]:
        """Return (width, height) for a source size at the configured width."""
        src_width, src_height = size
        height = max(1, round(src_height * self.width / src_width))
        return self.width, height

    def generate(self, src_path: Union[str, Path], dest_dir: Union[str, Path], filename: str) -> Path:
        """Write a thumbnail for src_path into dest_dir/filename and return its path."""
        fmt = output_format_for(src_path)
        dest = Path(dest_dir) / filename
        dest.parent.mkdir(parents=True, exist_ok=True)

        with Image.open(src_path) as image:
            image.load()
            thumb = image.resize(self.scaled_size(image.size), Image.Resampling.LANCZOS)
            thumb = _prepare_for_format(thumb, fmt)
            if fmt == "JPEG":
                thumb.save(dest, format=fmt, quality=85, optimize=True)
            else:
                thumb.save(dest, format=fmt)
        return dest


def decode_image_payload(payload: str) -> bytes:
    """Decode a base64 data URI (or bare base64) and check it is an image."""
    text = (payload or "").strip()
    if not text:
        raise ValueError("image data is empty")
    match = _DATA_URI_RE.match(text)
    if match:
        text = text[match.end():]
    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("image data is not valid base64") from exc

    try:
        with Image.open(io.BytesIO(data)) as candidate:
            candidate.verify()
    except Exception as exc:
        raise ValueError("image data is not a valid image") from exc
    return data


def write_edited_image(path: Union[str, Path], data: bytes) -> None:
    """Overwrite an original with edited image bytes.

    Re-encodes to the file's own format when it has a known encoder so the
    extension stays truthful; otherwise writes the bytes as given.
    """
    target = Path(path)
    try:
        fmt = output_format_for(target)
    except UnsupportedImageFormat:
        target.write_bytes(data)
        return

    with Image.open(io.BytesIO(data)) as image:
        image.load()
        prepared = _prepare_for_format(image, fmt)
        if fmt == "JPEG":
            prepared.save(target, format=fmt, quality=90)
        else:
            prepared.save(target, format=fmt)
