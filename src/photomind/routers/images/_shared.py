"""Shared utilities for image router modules."""

from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session, selectinload

from photomind.ai.client import ModelError
from photomind.auth.models import User
from photomind.metadata import Image, Tag


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_tag(tag: Tag) -> dict:
    return {
        "id": tag.id,
        "name": tag.name,
        "source": tag.source,
    }


def serialize_image(image: Image) -> dict:
    """Image JSON shape shared by every image endpoint."""
    return {
        "id": image.id,
        "filename": image.filename,
        "file_path": image.file_path,
        "thumbnail_path": image.thumbnail_path,
        "user_id": image.user_id,
        "camera_make": image.camera_make,
        "camera_model": image.camera_model,
        "taken_at": _isoformat(image.taken_at),
        "latitude": image.latitude,
        "longitude": image.longitude,
        "created_at": _isoformat(image.created_at),
        "tags": [serialize_tag(tag) for tag in image.tags],
    }


def get_owned_image_or_404(db: Session, image_id: int, user: User) -> Image:
    """Load an image owned by the user; someone else's image is reported as missing."""
    image = (
        db.query(Image)
        .options(selectinload(Image.tags))
        .filter(Image.id == image_id, Image.user_id == user.id)
        .first()
    )
    if not image:
        raise HTTPException(status_code=404, detail="Image not found")
    return image


def model_error_detail(error: str, exc: ModelError) -> dict:
    """Error body for upstream model failures."""
    return {
        "error": error,
        "details": exc.details,
        "message": exc.message,
    }
