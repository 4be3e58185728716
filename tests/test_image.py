"""Test thumbnail generation and edited-image helpers."""

import base64
import io

import pytest
from PIL import Image

from photomind.image import (
    ThumbnailGenerator,
    UnsupportedImageFormat,
    decode_image_payload,
    output_format_for,
    write_edited_image,
)


def test_output_format_by_extension():
    assert output_format_for("a.jpg") == "JPEG"
    assert output_format_for("a.JPEG") == "JPEG"
    assert output_format_for("a.png") == "PNG"
    with pytest.raises(UnsupportedImageFormat):
        output_format_for("a.gif")
    with pytest.raises(UnsupportedImageFormat):
        output_format_for("noextension")


def test_scaled_size_keeps_aspect_ratio():
    generator = ThumbnailGenerator(width=400)
    assert generator.scaled_size((800, 600)) == (400, 300)
    assert generator.scaled_size((100, 100)) == (400, 400)
    assert generator.scaled_size((4000, 1)) == (400, 1)


def test_generate_png_thumbnail(tmp_path, sample_png_data: bytes):
    source = tmp_path / "source.png"
    source.write_bytes(sample_png_data)

    dest = ThumbnailGenerator(width=400).generate(source, tmp_path / "thumbs", "source.png")

    assert dest.exists()
    with Image.open(dest) as thumb:
        assert thumb.format == "PNG"
        assert thumb.size == (400, 300)


def test_generate_jpeg_thumbnail(tmp_path, sample_image_data: bytes):
    source = tmp_path / "source.JPG"
    source.write_bytes(sample_image_data)

    dest = ThumbnailGenerator(width=50).generate(source, tmp_path / "thumbs", "source.jpg")

    with Image.open(dest) as thumb:
        assert thumb.format == "JPEG"
        assert thumb.size == (50, 50)


def test_unsupported_format_writes_nothing(tmp_path, sample_image_data: bytes):
    source = tmp_path / "source.gif"
    source.write_bytes(sample_image_data)

    with pytest.raises(UnsupportedImageFormat):
        ThumbnailGenerator().generate(source, tmp_path / "thumbs", "source.gif")
    assert not (tmp_path / "thumbs" / "source.gif").exists()


def test_decode_image_payload_accepts_data_uri_and_bare_base64(sample_image_data: bytes):
    encoded = base64.b64encode(sample_image_data).decode("ascii")

    assert decode_image_payload(f"data:image/jpeg;base64,{encoded}") == sample_image_data
    assert decode_image_payload(encoded) == sample_image_data


def test_decode_image_payload_rejects_non_images():
    with pytest.raises(ValueError):
        decode_image_payload("")
    with pytest.raises(ValueError):
        decode_image_payload("data:image/png;base64,%%%")
    with pytest.raises(ValueError):
        decode_image_payload(base64.b64encode(b"plain text").decode("ascii"))


def test_write_edited_image_reencodes_to_file_format(tmp_path, sample_png_data: bytes):
    target = tmp_path / "photo.jpg"
    target.write_bytes(b"old")

    write_edited_image(target, sample_png_data)

    with Image.open(io.BytesIO(target.read_bytes())) as image:
        assert image.format == "JPEG"
        assert image.size == (800, 600)
