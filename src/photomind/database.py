"""Database configuration and session management."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from photomind.settings import settings


def get_engine_kwargs() -> dict:
    """Return SQLAlchemy engine kwargs for the configured database."""
    kwargs = {
        "pool_pre_ping": settings.db_pool_pre_ping,
    }

    if settings.database_url.startswith("sqlite"):
        # Request handlers run in FastAPI's threadpool.
        kwargs["connect_args"] = {"check_same_thread": False}
        return kwargs

    kwargs["pool_recycle"] = settings.db_pool_recycle
    kwargs["pool_timeout"] = settings.db_pool_timeout
    kwargs["pool_size"] = settings.db_pool_size
    kwargs["max_overflow"] = settings.db_max_overflow
    return kwargs


def build_engine():
    """Build a database engine using configured pool and connectivity options."""
    return create_engine(settings.database_url, **get_engine_kwargs())


# Create database engine
engine = build_engine()

# Create session factory
SessionLocal = sessionmaker(bind=engine)


def init_db(bind=None) -> None:
    """Create all tables that do not exist yet."""
    from photomind.metadata import Base
    import photomind.auth.models  # noqa: F401  (registers users table)

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """Get database session for dependency injection."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
