"""Test EXIF metadata extraction."""

from datetime import datetime

import pytest

from photomind.exif import (
    clean_exif_string,
    dms_to_decimal,
    extract_metadata,
    parse_exif_datetime,
)


def test_clean_exif_string_collapses_whitespace_and_drops_control_chars():
    assert clean_exif_string("  Canon\x00 ") == "Canon"
    assert clean_exif_string("NIKON   CORPORATION\n") == "NIKON CORPORATION"
    assert clean_exif_string(b"SONY\x00") == "SONY"


def test_clean_exif_string_empty_is_absent():
    assert clean_exif_string(None) is None
    assert clean_exif_string("   ") is None
    assert clean_exif_string("\x00\x01") is None


def test_parse_exif_datetime():
    assert parse_exif_datetime("2025:10:31 23:59:59") == datetime(2025, 10, 31, 23, 59, 59)
    assert parse_exif_datetime("0000:00:00 00:00:00") is None
    assert parse_exif_datetime("not a date") is None
    assert parse_exif_datetime(None) is None


def test_dms_to_decimal_sign_follows_reference():
    assert dms_to_decimal((40, 26, 46), "N") == pytest.approx(40.446111, rel=1e-6)
    assert dms_to_decimal((40, 26, 46), "S") == pytest.approx(-40.446111, rel=1e-6)
    assert dms_to_decimal(((79, 1), (58, 1), (5640, 100)), "W") == pytest.approx(-79.982333, rel=1e-6)


def test_dms_to_decimal_rejects_bad_values():
    assert dms_to_decimal(None, "N") is None
    assert dms_to_decimal(((1, 0), (2, 1), (3, 1)), "N") is None


def test_extract_metadata_reads_camera_time_and_gps(jpeg_with_exif: bytes, exif_taken_at: datetime):
    metadata = extract_metadata(jpeg_with_exif)

    assert metadata.camera_make == "Canon"
    assert metadata.camera_model == "Canon EOS R5"
    # DateTimeOriginal wins over IFD0 DateTime
    assert metadata.taken_at == exif_taken_at
    assert metadata.latitude == pytest.approx(-(33 + 52 / 60), rel=1e-6)
    assert metadata.longitude == pytest.approx(-(70 + 30 / 60), rel=1e-6)


def test_extract_metadata_without_exif(sample_image_data: bytes):
    metadata = extract_metadata(sample_image_data)
    assert metadata.to_dict() == {
        "camera_make": None,
        "camera_model": None,
        "taken_at": None,
        "latitude": None,
        "longitude": None,
    }


def test_extract_metadata_never_raises_on_garbage():
    metadata = extract_metadata(b"definitely not an image")
    assert metadata.camera_make is None
    assert metadata.taken_at is None
