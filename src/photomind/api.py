"""FastAPI application entry point."""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from photomind.auth.config import build_auth_settings
from photomind.database import SessionLocal, init_db
from photomind.ratelimit import limiter
from photomind.settings import settings
from photomind.storage import LocalStorage
from photomind.tasks import task_queue

# Import all routers
from photomind.routers import (
    auth,
    images,
    mcp,
    tags,
    tasks,
)

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="photomind",
    description="Personal photo library with EXIF metadata, tags and AI search",
    version="0.1.0"
)
app.state.limiter = limiter
app.state.auth_settings = build_auth_settings(settings)
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report request validation failures as 400 Bad Request."""
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.on_event("startup")
async def create_tables():
    """Create tables that do not exist yet."""
    init_db()


@app.on_event("startup")
async def start_task_worker():
    try:
        task_queue.start()
    except Exception:
        # Keep API process alive even if worker startup fails.
        logger.exception("Failed to start background task worker")


@app.on_event("shutdown")
async def stop_task_worker():
    try:
        task_queue.stop()
    except Exception:
        logger.exception("Failed to stop background task worker")


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register all routers
app.include_router(auth.router)
app.include_router(images.router)
app.include_router(tags.router)
app.include_router(mcp.router)
app.include_router(tasks.router)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint with DB connectivity verification."""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return {"status": "healthy"}
    except Exception as exc:
        raise HTTPException(status_code=503, detail=f"Database unavailable: {exc}")
    finally:
        db.close()


# Stored originals and thumbnails are served as-is.
LocalStorage.from_settings(settings).ensure_dirs()
app.mount("/uploads", StaticFiles(directory=settings.upload_root), name="uploads")


def main():
    import uvicorn

    uvicorn.run(
        "photomind.api:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug
    )


if __name__ == "__main__":
    main()
