"""Versioned schema migrations for the Michishirube store."""

from .registry import MIGRATIONS, Migration, latest_version, validate_registry
from .runner import (
    apply_migration,
    applied_versions,
    current_version,
    ensure_bookkeeping_table,
    run_migrations,
)

__all__ = [
    "MIGRATIONS",
    "Migration",
    "applied_versions",
    "apply_migration",
    "current_version",
    "ensure_bookkeeping_table",
    "latest_version",
    "run_migrations",
    "validate_registry",
]
