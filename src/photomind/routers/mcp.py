"""Natural-language image search: translate a query into filters, then run it."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from photomind.ai.client import ModelError
from photomind.ai.query import QueryTranslator
from photomind.auth.dependencies import get_current_user
from photomind.auth.models import User
from photomind.dependencies import get_db, get_query_translator
from photomind.filtering import ImageFilter, query_images
from photomind.routers.images._shared import model_error_detail, serialize_image
from photomind.tagging import list_user_tag_names


router = APIRouter(prefix="/api/v1/mcp", tags=["search"])
logger = logging.getLogger(__name__)

DEFAULT_MESSAGE = "Found matching images for your query"


class NLQueryRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=500)


@router.post("/query", response_model=dict, operation_id="nl_query_images")
def nl_query_images(
    request: NLQueryRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    translator: QueryTranslator = Depends(get_query_translator),
):
    """Translate a natural-language request against the caller's tags and return matches."""
    vocabulary = list_user_tag_names(db, user.id)

    try:
        condition = translator.translate(request.query, vocabulary)
    except ModelError as exc:
        logger.error(f"Query translation failed for user {user.id}: {exc.details}")
        return JSONResponse(status_code=500, content=model_error_detail("Failed to parse query", exc))

    images = query_images(db, user.id, ImageFilter.from_condition(condition))
    return {
        "images": [serialize_image(image) for image in images],
        "count": len(images),
        "condition": condition.model_dump(),
        "message": condition.reasoning or DEFAULT_MESSAGE,
    }
