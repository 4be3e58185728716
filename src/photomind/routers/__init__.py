"""photomind API routers package."""

from . import auth
from . import images
from . import mcp
from . import tags
from . import tasks

__all__ = [
    "auth",
    "images",
    "mcp",
    "tags",
    "tasks",
]
