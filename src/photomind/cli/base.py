"""Base command class for shared CLI setup/teardown."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from photomind.database import get_engine_kwargs
from photomind.settings import settings


class CliCommand:
    """Base class for CLI commands that need a database session."""

    def __init__(self):
        self.engine = None
        self.Session = None
        self.db = None

    def setup_db(self):
        """Initialize database connection."""
        self.engine = create_engine(
            settings.database_url,
            **get_engine_kwargs(),
        )
        self.Session = sessionmaker(bind=self.engine)
        self.db = self.Session()

    def cleanup_db(self):
        """Close database connection."""
        if self.db:
            self.db.close()
        if self.engine:
            self.engine.dispose()

    def run(self):
        raise NotImplementedError
