"""In-process background task queue with retrievable status."""

from __future__ import annotations

import logging
import queue
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import Lock, Thread
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from photomind.ai.analysis import ImageAnalyzer
from photomind.metadata import Image, Tag
from photomind.tagging import apply_ai_tags


logger = logging.getLogger(__name__)

STATUS_QUEUED = "queued"
STATUS_RUNNING = "running"
STATUS_SUCCEEDED = "succeeded"
STATUS_FAILED = "failed"

ANALYZE_IMAGE_TASK = "analyze-image"

_MAX_HISTORY = 1000
_POLL_SECONDS = 0.5


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TaskRecord:
    id: str
    name: str
    owner_id: Optional[int] = None
    status: str = STATUS_QUEUED
    error: Optional[str] = None
    result: Any = None
    created_at: datetime = field(default_factory=_now_utc)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def done(self) -> bool:
        return self.status in (STATUS_SUCCEEDED, STATUS_FAILED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "error": self.error,
            "result": self.result,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


@dataclass
class _QueuedTask:
    record: TaskRecord
    fn: Callable[..., Any]
    args: tuple
    kwargs: dict


class TaskQueue:
    """One daemon worker thread draining a FIFO of callables.

    Each submitted callable gets a TaskRecord whose status moves
    queued -> running -> succeeded|failed. Records live in memory only.
    """

    def __init__(self, max_history: int = _MAX_HISTORY):
        self._queue: "queue.Queue[Optional[_QueuedTask]]" = queue.Queue()
        self._records: Dict[str, TaskRecord] = {}
        self._order: List[str] = []
        self._lock = Lock()
        self._thread: Optional[Thread] = None
        self.max_history = max_history

    @property
    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def start(self) -> None:
        if self.is_running:
            return
        self._thread = Thread(target=self._run, name="photomind-task-worker", daemon=True)
        self._thread.start()
        logger.info("Started background task worker thread")

    def stop(self, timeout_seconds: float = 10.0) -> None:
        if self._thread and self._thread.is_alive():
            self._queue.put(None)
            self._thread.join(timeout=timeout_seconds)
        self._thread = None
        logger.info("Stopped background task worker thread")

    def submit(self, name: str, fn: Callable[..., Any], *args, owner_id: Optional[int] = None, **kwargs) -> TaskRecord:
        """Queue fn(*args, **kwargs) and return its status record."""
        record = TaskRecord(id=uuid.uuid4().hex, name=name, owner_id=owner_id)
        with self._lock:
            self._records[record.id] = record
            self._order.append(record.id)
            self._prune_locked()
        self._queue.put(_QueuedTask(record=record, fn=fn, args=args, kwargs=kwargs))
        logger.debug(f"Queued task {record.name} ({record.id})")
        return record

    def get(self, task_id: str) -> Optional[TaskRecord]:
        with self._lock:
            return self._records.get(task_id)

    def join(self) -> None:
        """Block until every queued task has been processed."""
        self._queue.join()

    def _prune_locked(self) -> None:
        # Drop the oldest finished records once history is full.
        while len(self._order) > self.max_history:
            for index, task_id in enumerate(self._order):
                if self._records[task_id].done:
                    del self._records[task_id]
                    del self._order[index]
                    break
            else:
                return

    def run_one(self, task: _QueuedTask) -> None:
        record = task.record
        with self._lock:
            record.status = STATUS_RUNNING
            record.started_at = _now_utc()
        try:
            result = task.fn(*task.args, **task.kwargs)
        except Exception as exc:
            logger.exception(f"Task {record.name} ({record.id}) failed")
            with self._lock:
                record.status = STATUS_FAILED
                record.error = str(exc) or exc.__class__.__name__
                record.finished_at = _now_utc()
            return
        with self._lock:
            record.status = STATUS_SUCCEEDED
            record.result = result
            record.finished_at = _now_utc()
        logger.info(f"Task {record.name} ({record.id}) succeeded")

    def _run(self) -> None:
        while True:
            try:
                task = self._queue.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                continue
            try:
                if task is None:
                    return
                self.run_one(task)
            finally:
                self._queue.task_done()


def run_image_analysis(db: Session, image: Image, analyzer: ImageAnalyzer) -> List[Tag]:
    """Analyze one stored image and attach the proposed tags as 'ai' tags.

    Returns the tags newly attached. Commits on success.
    """
    names = analyzer.analyze_path(image.file_path)
    added = apply_ai_tags(db, image, names)
    db.commit()
    logger.info(f"Image {image.id}: {len(added)} new AI tags")
    return added


def analyze_image_task(image_id: int, session_factory=None, analyzer: Optional[ImageAnalyzer] = None) -> List[str]:
    """Background entry point: tag one image in its own session."""
    from photomind.settings import settings

    if session_factory is None:
        from photomind.database import SessionLocal

        session_factory = SessionLocal
    analyzer = analyzer or ImageAnalyzer.from_settings(settings)

    db = session_factory()
    try:
        image = db.query(Image).filter(Image.id == image_id).first()
        if image is None:
            raise LookupError(f"image {image_id} no longer exists")
        added = run_image_analysis(db, image, analyzer)
        return [tag.name for tag in added]
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


task_queue = TaskQueue()
