"""Image ingestion: persist uploads, extract metadata, thumbnail, record."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from photomind.exif import extract_metadata
from photomind.image import ThumbnailGenerator
from photomind.metadata import Image
from photomind.storage import LocalStorage
from photomind.tasks import ANALYZE_IMAGE_TASK, TaskQueue, analyze_image_task


logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    """Raw upload as received from the client."""

    filename: str
    data: bytes


@dataclass
class IngestionResult:
    received: int = 0
    processed: int = 0
    image_ids: List[int] = field(default_factory=list)
    task_ids: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Uploaded {self.processed} of {self.received} images"


class IngestionPipeline:
    """Turn a batch of uploads into Image rows, one file at a time.

    A failure on one file is logged and skipped; the rest of the batch
    continues. ``processed`` counts the rows actually created.
    """

    def __init__(
        self,
        db: Session,
        storage: LocalStorage,
        thumbnails: ThumbnailGenerator,
        task_queue: Optional[TaskQueue] = None,
        auto_tag: bool = False,
        tag_task: Callable[[int], object] = analyze_image_task,
    ):
        self.db = db
        self.storage = storage
        self.thumbnails = thumbnails
        self.task_queue = task_queue
        self.auto_tag = auto_tag
        self.tag_task = tag_task

    def ingest(self, user_id: int, uploads: Iterable[UploadedFile]) -> IngestionResult:
        result = IngestionResult()
        for upload in uploads:
            result.received += 1
            image = self.ingest_one(user_id, upload)
            if image is None:
                continue
            result.processed += 1
            result.image_ids.append(image.id)

            if self.auto_tag and self.task_queue is not None:
                record = self.task_queue.submit(
                    ANALYZE_IMAGE_TASK, self.tag_task, image.id, owner_id=user_id
                )
                result.task_ids.append(record.id)

        logger.info(f"User {user_id}: ingested {result.processed}/{result.received} uploads")
        return result

    def ingest_one(self, user_id: int, upload: UploadedFile) -> Optional[Image]:
        """Ingest one upload; returns the new Image or None when it was skipped."""
        filename = self.storage.build_filename(user_id, upload.filename)
        try:
            saved_path = self.storage.save_original(filename, upload.data)
        except OSError as exc:
            logger.error(f"Failed to save upload {upload.filename!r}: {exc}")
            return None
        file_path = str(saved_path)

        metadata = extract_metadata(upload.data)

        try:
            thumbnail_path = str(self.thumbnails.generate(saved_path, self.storage.thumbnails_dir, filename))
        except Exception as exc:
            logger.warning(f"Thumbnail generation failed for {upload.filename!r}, using original: {exc}")
            thumbnail_path = file_path

        image = Image(
            user_id=user_id,
            filename=upload.filename or filename,
            file_path=file_path,
            thumbnail_path=thumbnail_path,
            camera_make=metadata.camera_make,
            camera_model=metadata.camera_model,
            taken_at=metadata.taken_at,
            latitude=metadata.latitude,
            longitude=metadata.longitude,
        )
        try:
            self.db.add(image)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Failed to record upload {upload.filename!r}: {exc}")
            self.storage.remove_image_files(file_path, thumbnail_path)
            return None

        self.db.refresh(image)
        return image
