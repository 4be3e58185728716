"""Core image endpoints: list, get, file, edit, delete."""

import logging
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from photomind.auth.dependencies import get_current_user
from photomind.auth.models import User
from photomind.dependencies import get_db, get_storage, get_thumbnail_generator
from photomind.filtering import ImageFilter, parse_month, query_images
from photomind.image import ThumbnailGenerator, decode_image_payload, write_edited_image
from photomind.metadata import Image
from photomind.routers.images._shared import get_owned_image_or_404, serialize_image
from photomind.storage import LocalStorage

# Sub-router with no prefix/tags (inherits from parent)
router = APIRouter()
logger = logging.getLogger(__name__)

MAX_BATCH_DELETE = 500


class EditImageRequest(BaseModel):
    imageData: str = Field(..., min_length=1)


class BatchDeleteRequest(BaseModel):
    image_ids: List[int] = Field(..., min_length=1, max_length=MAX_BATCH_DELETE)


def delete_image_record(db: Session, storage: LocalStorage, image: Image) -> None:
    """Remove an image's files (best-effort) and then its row."""
    storage.remove_image_files(image.file_path, image.thumbnail_path)
    db.delete(image)


def regenerate_thumbnail(image: Image, storage: LocalStorage, thumbnails: ThumbnailGenerator) -> None:
    filename = Path(image.file_path).name
    try:
        image.thumbnail_path = str(thumbnails.generate(image.file_path, storage.thumbnails_dir, filename))
    except Exception as exc:
        logger.warning(f"Thumbnail regeneration failed for image {image.id}, using original: {exc}")
        image.thumbnail_path = image.file_path


@router.post("/images/batch/delete", response_model=dict, operation_id="batch_delete_images")
async def batch_delete_images(
    body: BatchDeleteRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
):
    """Delete several of the caller's images; ids not owned by the caller are reported as not found."""
    requested = list(dict.fromkeys(body.image_ids))
    images = (
        db.query(Image)
        .filter(Image.id.in_(requested), Image.user_id == user.id)
        .all()
    )
    found = {image.id: image for image in images}

    deleted = []
    for image_id in requested:
        image = found.get(image_id)
        if image is None:
            continue
        delete_image_record(db, storage, image)
        deleted.append(image_id)
    db.commit()

    not_found = [image_id for image_id in requested if image_id not in found]
    logger.info(f"User {user.id}: batch deleted {len(deleted)} images")
    return {"deleted": deleted, "not_found": not_found}


@router.get("/images", response_model=dict, operation_id="list_images")
async def list_images(
    tags: Optional[str] = Query(None, description="Comma-separated tag names; all must match"),
    month: Optional[str] = Query(None, description="Capture month as YYYY-MM"),
    camera: Optional[str] = Query(None, description="Camera make substring"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the caller's images, newest upload first."""
    image_filter = ImageFilter.from_params(tags=tags, month=month, camera=camera)
    if image_filter.month:
        try:
            parse_month(image_filter.month)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    images = query_images(db, user.id, image_filter)
    return {
        "images": [serialize_image(image) for image in images],
        "count": len(images),
    }


@router.get("/images/{image_id}", response_model=dict, operation_id="get_image")
async def get_image(
    image_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    image = get_owned_image_or_404(db, image_id, user)
    return serialize_image(image)


@router.get("/images/{image_id}/file", operation_id="get_image_file")
async def get_image_file(
    image_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Stream the original file."""
    image = get_owned_image_or_404(db, image_id, user)
    path = Path(image.file_path)
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Image file not found")
    return FileResponse(path, filename=image.filename)


@router.put("/images/{image_id}/edit", response_model=dict, operation_id="edit_image")
async def edit_image(
    image_id: int,
    body: EditImageRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    thumbnails: ThumbnailGenerator = Depends(get_thumbnail_generator),
):
    """Replace the original with an edited version sent as a base64 data URI."""
    image = get_owned_image_or_404(db, image_id, user)

    try:
        data = decode_image_payload(body.imageData)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    try:
        write_edited_image(image.file_path, data)
    except OSError as exc:
        logger.error(f"Failed to save edited image {image.id}: {exc}")
        raise HTTPException(status_code=500, detail="Failed to save edited image")

    regenerate_thumbnail(image, storage, thumbnails)
    db.commit()
    db.refresh(image)
    return serialize_image(image)


@router.delete("/images/{image_id}", response_model=dict, operation_id="delete_image")
async def delete_image(
    image_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
):
    """Delete an image; missing files are logged and the row is removed anyway."""
    image = get_owned_image_or_404(db, image_id, user)
    delete_image_record(db, storage, image)
    db.commit()
    return {"message": "Image deleted", "image_id": image_id}
