"""Aggregated images router combining the core and tagging sub-routers."""

from fastapi import APIRouter
from .core import router as core_router
from .tagging import router as tagging_router

router = APIRouter(
    prefix="/api/v1",
    tags=["images"]
)

# core_router declares /images/batch/delete ahead of its /images/{image_id} routes.
router.include_router(core_router)
router.include_router(tagging_router)
