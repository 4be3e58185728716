"""Test configuration and fixtures."""

import io
from datetime import datetime
from pathlib import Path

import pytest
from PIL import ExifTags, Image
from PIL.TiffImagePlugin import IFDRational
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from photomind.auth.models import User
from photomind.metadata import Base, Image as ImageRecord
from photomind.storage import LocalStorage


@pytest.fixture
def test_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(bind=test_engine)


@pytest.fixture
def test_db(session_factory):
    """Create test database."""
    session = session_factory()
    yield session
    session.close()


def make_user(db, username: str = "alice", email: str = "alice@example.com") -> User:
    user = User(username=username, email=email, password_hash="not-a-real-hash")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_image(db, user: User, **fields) -> ImageRecord:
    values = {
        "filename": "photo.jpg",
        "file_path": "uploads/images/missing.jpg",
        "thumbnail_path": "uploads/thumbnails/missing.jpg",
    }
    values.update(fields)
    image = ImageRecord(user_id=user.id, **values)
    db.add(image)
    db.commit()
    db.refresh(image)
    return image


@pytest.fixture
def user(test_db):
    return make_user(test_db)


@pytest.fixture
def other_user(test_db):
    return make_user(test_db, username="bobby", email="bob@example.com")


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorage:
    storage = LocalStorage(tmp_path / "images", tmp_path / "thumbnails")
    storage.ensure_dirs()
    return storage


@pytest.fixture
def sample_image_data():
    """Generate sample image data for testing."""
    img = Image.new("RGB", (100, 100), color="red")
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def sample_png_data():
    img = Image.new("RGBA", (800, 600), color=(0, 128, 255, 255))
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def jpeg_with_exif():
    """JPEG carrying camera, capture time and a south/west GPS position."""
    exif = Image.Exif()
    exif[ExifTags.Base.Make] = "  Canon "
    exif[ExifTags.Base.Model] = "Canon   EOS R5"
    exif[ExifTags.Base.DateTime] = "2020:01:01 00:00:00"
    exif[ExifTags.IFD.Exif] = {
        ExifTags.Base.DateTimeOriginal: "2025:10:31 23:59:59",
    }
    exif[ExifTags.IFD.GPSInfo] = {
        ExifTags.GPS.GPSLatitudeRef: "S",
        ExifTags.GPS.GPSLatitude: (IFDRational(33, 1), IFDRational(52, 1), IFDRational(0, 1)),
        ExifTags.GPS.GPSLongitudeRef: "W",
        ExifTags.GPS.GPSLongitude: (IFDRational(70, 1), IFDRational(30, 1), IFDRational(0, 1)),
    }

    img = Image.new("RGB", (640, 480), color="green")
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG", exif=exif)
    return buffer.getvalue()


@pytest.fixture
def exif_taken_at():
    return datetime(2025, 10, 31, 23, 59, 59)
