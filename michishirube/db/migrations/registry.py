"""
Schema migration registry.

Migrations are append-only: a new schema change gets the next version
number at the end of ``MIGRATIONS``. Every statement must be safe to run
against a database that already has the object it creates.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

from ...errors import MigrationError


@dataclass(frozen=True)
class Migration:
    """One versioned schema change, executed statement by statement."""

    version: int
    name: str
    statements: Tuple[str, ...]


MIGRATIONS: Tuple[Migration, ...] = (
    Migration(
        version=1,
        name="create_tasks",
        statements=(
            """
            CREATE TABLE IF NOT EXISTS tasks (
                id TEXT PRIMARY KEY,
                jira_id TEXT NOT NULL,
                title TEXT NOT NULL,
                priority TEXT NOT NULL CHECK (priority IN ('minor', 'normal', 'high', 'critical')),
                status TEXT NOT NULL CHECK (status IN ('new', 'in_progress', 'blocked', 'done', 'archived')),
                tags TEXT NOT NULL DEFAULT '[]',
                blockers TEXT NOT NULL DEFAULT '[]',
                created_at DATETIME NOT NULL,
                updated_at DATETIME NOT NULL
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_priority ON tasks(priority)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_jira_id ON tasks(jira_id)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at)",
        ),
    ),
    Migration(
        version=2,
        name="create_links",
        statements=(
            """
            CREATE TABLE IF NOT EXISTS links (
                id TEXT PRIMARY KEY,
                task_id TEXT NOT NULL,
                type TEXT NOT NULL CHECK (type IN ('pull_request', 'slack_thread', 'jira_ticket', 'documentation', 'other')),
                url TEXT NOT NULL,
                title TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT '',
                metadata TEXT NOT NULL DEFAULT '{}',
                FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_links_task_id ON links(task_id)",
            "CREATE INDEX IF NOT EXISTS idx_links_type ON links(type)",
        ),
    ),
    Migration(
        version=3,
        name="create_comments",
        statements=(
            """
            CREATE TABLE IF NOT EXISTS comments (
                id TEXT PRIMARY KEY,
                task_id TEXT NOT NULL,
                content TEXT NOT NULL,
                created_at DATETIME NOT NULL,
                FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_comments_task_id ON comments(task_id)",
            "CREATE INDEX IF NOT EXISTS idx_comments_created_at ON comments(created_at)",
        ),
    ),
)


def validate_registry(migrations: Sequence[Migration]) -> None:
    """Reject a registry whose versions are not 1, 2, 3, ... in order."""
    for expected, migration in enumerate(migrations, start=1):
        if migration.version != expected:
            raise MigrationError(
                migration.version,
                migration.name,
                f"expected version {expected}; versions must be contiguous from 1",
            )
        if not migration.statements:
            raise MigrationError(migration.version, migration.name, "no statements")


def latest_version(migrations: Sequence[Migration] = MIGRATIONS) -> int:
    return migrations[-1].version if migrations else 0
