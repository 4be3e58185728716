"""EXIF parsing helpers.

Reads camera, capture time and GPS position from an uploaded image. Every
field is best-effort: a missing or corrupt value leaves that field empty and
never aborts the upload.
"""

import io
import logging
import math
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Optional, Sequence

from PIL import ExifTags, Image


logger = logging.getLogger(__name__)

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


@dataclass
class ExifMetadata:
    """Normalized metadata recovered from an image."""

    camera_make: Optional[str] = None
    camera_model: Optional[str] = None
    taken_at: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def to_dict(self) -> dict:
        return asdict(self)


def clean_exif_string(value: Any) -> Optional[str]:
    """Trim, drop non-printable characters and collapse whitespace.

    Returns None when nothing printable remains.
    """
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    text = str(value).strip()
    text = "".join(ch for ch in text if ch.isprintable() or ch in (" ", "\t"))
    text = " ".join(text.split())
    return text or None


def parse_exif_datetime(value: Any) -> Optional[datetime]:
    """Parse an EXIF 'YYYY:MM:DD HH:MM:SS' timestamp."""
    text = clean_exif_string(value)
    if not text:
        return None
    try:
        return datetime.strptime(text, EXIF_DATETIME_FORMAT)
    except ValueError:
        logger.debug(f"Unparseable EXIF datetime: {text!r}")
        return None


def _rational_to_float(value: Any) -> Optional[float]:
    if isinstance(value, tuple) and len(value) == 2:
        numerator, denominator = value
        if not denominator:
            return None
        return float(numerator) / float(denominator)
    try:
        result = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    return result if math.isfinite(result) else None


def dms_to_decimal(dms: Sequence[Any], ref: Any) -> Optional[float]:
    """Convert degrees/minutes/seconds to signed decimal degrees.

    South and West references produce negative values.
    """
    if not dms or len(dms) < 1:
        return None
    parts = [_rational_to_float(part) for part in list(dms)[:3]]
    if any(part is None for part in parts):
        return None
    while len(parts) < 3:
        parts.append(0.0)
    degrees, minutes, seconds = parts
    decimal = degrees + minutes / 60.0 + seconds / 3600.0

    ref_text = clean_exif_string(ref) or ""
    if ref_text.upper().startswith(("S", "W")):
        decimal = -decimal
    return decimal


def _read_gps(exif: Image.Exif) -> tuple[Optional[float], Optional[float]]:
    try:
        gps = exif.get_ifd(ExifTags.IFD.GPSInfo)
    except Exception as exc:
        logger.debug(f"GPS IFD unreadable: {exc}")
        return None, None
    if not gps:
        return None, None

    latitude = dms_to_decimal(gps.get(ExifTags.GPS.GPSLatitude), gps.get(ExifTags.GPS.GPSLatitudeRef))
    longitude = dms_to_decimal(gps.get(ExifTags.GPS.GPSLongitude), gps.get(ExifTags.GPS.GPSLongitudeRef))
    if latitude is None or longitude is None:
        return None, None
    return latitude, longitude


def extract_metadata(data: bytes) -> ExifMetadata:
    """Extract camera, capture time and GPS position from raw image bytes."""
    metadata = ExifMetadata()
    try:
        with Image.open(io.BytesIO(data)) as image:
            exif = image.getexif()
    except Exception as exc:
        logger.warning(f"Could not read EXIF block: {exc}")
        return metadata

    if not exif:
        return metadata

    try:
        metadata.camera_make = clean_exif_string(exif.get(ExifTags.Base.Make))
        metadata.camera_model = clean_exif_string(exif.get(ExifTags.Base.Model))
    except Exception as exc:
        logger.debug(f"Camera fields unreadable: {exc}")

    try:
        exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
    except Exception as exc:
        logger.debug(f"Exif IFD unreadable: {exc}")
        exif_ifd = {}

    metadata.taken_at = (
        parse_exif_datetime(exif_ifd.get(ExifTags.Base.DateTimeOriginal))
        or parse_exif_datetime(exif.get(ExifTags.Base.DateTime))
    )
    metadata.latitude, metadata.longitude = _read_gps(exif)
    return metadata
