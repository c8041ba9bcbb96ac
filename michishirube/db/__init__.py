"""
Database package for Michishirube.
"""

from .base import create_store_engine, get_database_url
from .codec import JSONListCodec, ListCodec, default_codec
from .filters import TaskFilters
from .repository import SQLiteRepository, open_repository

__all__ = [
    "JSONListCodec",
    "ListCodec",
    "SQLiteRepository",
    "TaskFilters",
    "create_store_engine",
    "default_codec",
    "get_database_url",
    "open_repository",
]
