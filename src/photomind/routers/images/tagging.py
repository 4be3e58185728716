"""Upload, manual tag and AI analysis endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from photomind.ai.analysis import ImageAnalyzer
from photomind.ai.client import ModelError
from photomind.auth.dependencies import get_current_user
from photomind.auth.models import User
from photomind.dependencies import (
    get_db,
    get_image_analyzer,
    get_storage,
    get_task_queue,
    get_thumbnail_generator,
)
from photomind.image import ThumbnailGenerator
from photomind.ingestion import IngestionPipeline, UploadedFile
from photomind.routers.images._shared import (
    get_owned_image_or_404,
    model_error_detail,
    serialize_image,
    serialize_tag,
)
from photomind.settings import settings
from photomind.storage import LocalStorage
from photomind.tagging import MAX_TAG_LENGTH, add_user_tag, detach_tag
from photomind.tasks import ANALYZE_IMAGE_TASK, TaskQueue, analyze_image_task, run_image_analysis

# Sub-router with no prefix/tags (inherits from parent)
router = APIRouter()
logger = logging.getLogger(__name__)


class AddTagRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=MAX_TAG_LENGTH)


@router.post("/images", response_model=dict, operation_id="upload_images")
async def upload_images(
    images: List[UploadFile] = File(...),
    auto_tag: Optional[bool] = Query(None, description="Queue AI tagging for each new image"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: LocalStorage = Depends(get_storage),
    thumbnails: ThumbnailGenerator = Depends(get_thumbnail_generator),
    task_queue: TaskQueue = Depends(get_task_queue),
):
    """Upload one or more images for the caller.

    Files that fail to save or record are skipped; ``processed`` counts the
    images actually stored.
    """
    if not images:
        raise HTTPException(status_code=400, detail="No images uploaded")

    uploads = []
    for upload in images:
        uploads.append(UploadedFile(filename=upload.filename or "", data=await upload.read()))

    pipeline = IngestionPipeline(
        db,
        storage,
        thumbnails,
        task_queue=task_queue,
        auto_tag=settings.auto_tag_on_upload if auto_tag is None else auto_tag,
    )
    result = pipeline.ingest(user.id, uploads)

    response = {"message": result.message, "processed": result.processed}
    if result.task_ids:
        response["task_ids"] = result.task_ids
    return response


@router.post("/images/{image_id}/tags", response_model=dict, operation_id="add_image_tag")
async def add_image_tag(
    image_id: int,
    body: AddTagRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Attach a tag by name, creating it if needed."""
    image = get_owned_image_or_404(db, image_id, user)
    try:
        add_user_tag(db, image, body.name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    db.commit()
    db.refresh(image)
    return serialize_image(image)


@router.delete(
    "/images/{image_id}/tags/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    operation_id="remove_image_tag",
)
async def remove_image_tag(
    image_id: int,
    tag_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    image = get_owned_image_or_404(db, image_id, user)
    detach_tag(db, image, tag_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/images/{image_id}/analyze", operation_id="analyze_image")
def analyze_image(
    image_id: int,
    background: bool = Query(False, description="Queue the analysis and return a task id"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    analyzer: ImageAnalyzer = Depends(get_image_analyzer),
    task_queue: TaskQueue = Depends(get_task_queue),
):
    """Ask the vision model for tags and attach them with 'ai' provenance."""
    image = get_owned_image_or_404(db, image_id, user)

    if background:
        record = task_queue.submit(ANALYZE_IMAGE_TASK, analyze_image_task, image.id, owner_id=user.id)
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={"message": "Analysis queued", "task_id": record.id},
        )

    try:
        added = run_image_analysis(db, image, analyzer)
    except ModelError as exc:
        db.rollback()
        logger.error(f"Analysis failed for image {image_id}: {exc.details}")
        return JSONResponse(status_code=500, content=model_error_detail("Failed to analyze image", exc))
    except OSError as exc:
        db.rollback()
        logger.error(f"Could not read image {image_id} for analysis: {exc}")
        raise HTTPException(status_code=500, detail="Failed to read image file")

    db.refresh(image)
    return {
        "message": f"Added {len(added)} AI tags",
        "tags": [serialize_tag(tag) for tag in added],
        "image": serialize_image(image),
    }
