"""Tag vocabulary endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from photomind.auth.dependencies import get_current_user
from photomind.auth.models import User
from photomind.dependencies import get_db
from photomind.routers.images._shared import serialize_tag
from photomind.tagging import list_user_tags


router = APIRouter(prefix="/api/v1", tags=["tags"])


@router.get("/tags", response_model=dict, operation_id="list_tags")
async def list_tags(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Tags used on at least one of the caller's images, by name."""
    return {"tags": [serialize_tag(tag) for tag in list_user_tags(db, user.id)]}
