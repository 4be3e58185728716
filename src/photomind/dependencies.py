"""Shared dependencies for FastAPI endpoints."""

from functools import lru_cache

from photomind.ai.analysis import ImageAnalyzer
from photomind.ai.query import QueryTranslator
from photomind.database import get_db  # noqa: F401  (re-exported for routers)
from photomind.image import ThumbnailGenerator
from photomind.settings import settings
from photomind.storage import LocalStorage
from photomind.tasks import TaskQueue, task_queue


@lru_cache
def get_storage() -> LocalStorage:
    """Upload storage rooted at settings.upload_root."""
    return LocalStorage.from_settings(settings)


def get_thumbnail_generator() -> ThumbnailGenerator:
    return ThumbnailGenerator(width=settings.thumbnail_width)


def get_task_queue() -> TaskQueue:
    return task_queue


def get_image_analyzer() -> ImageAnalyzer:
    """Vision tagger configured from settings."""
    return ImageAnalyzer.from_settings(settings)


def get_query_translator() -> QueryTranslator:
    """Natural-language query translator configured from settings."""
    return QueryTranslator.from_settings(settings)
