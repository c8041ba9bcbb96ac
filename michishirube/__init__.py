"""
Michishirube

Task, link and comment tracking on an embedded SQLite store.
"""

import importlib.metadata

__version__ = importlib.metadata.version("michishirube")

from .data.models import Comment, Link, LinkType, Priority, Status, Task
from .db import SQLiteRepository, TaskFilters, open_repository
from .errors import (
    DecodeError,
    MichishirubeError,
    MigrationError,
    NotFoundError,
    StorageError,
    ValidationError,
)

__all__ = [
    "Comment",
    "DecodeError",
    "Link",
    "LinkType",
    "MichishirubeError",
    "MigrationError",
    "NotFoundError",
    "Priority",
    "SQLiteRepository",
    "Status",
    "StorageError",
    "Task",
    "TaskFilters",
    "ValidationError",
    "open_repository",
]
