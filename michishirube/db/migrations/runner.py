"""
Schema migration runner.

Applied versions are recorded in ``schema_migrations``. Each pending
migration runs in its own transaction together with its bookkeeping row,
so a failure leaves neither half-created tables nor a version marked as
applied.
"""

from datetime import datetime, timezone
from typing import List, Sequence

import structlog
from sqlalchemy import Engine, func, insert, select
from sqlalchemy.exc import SQLAlchemyError

from ...errors import MigrationError
from ..tables import schema_migrations
from .registry import MIGRATIONS, Migration, validate_registry

logger = structlog.get_logger()

BOOKKEEPING_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    applied_at DATETIME NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""


def ensure_bookkeeping_table(engine: Engine) -> None:
    with engine.begin() as conn:
        conn.exec_driver_sql(BOOKKEEPING_DDL)


def current_version(engine: Engine) -> int:
    """Highest applied migration version, 0 when none has been applied."""
    stmt = select(func.coalesce(func.max(schema_migrations.c.version), 0))
    with engine.connect() as conn:
        version = conn.execute(stmt).scalar_one()
    return int(version)


def applied_versions(engine: Engine) -> List[int]:
    stmt = select(schema_migrations.c.version).order_by(schema_migrations.c.version)
    with engine.connect() as conn:
        return [int(version) for version in conn.execute(stmt).scalars()]


def apply_migration(engine: Engine, migration: Migration) -> None:
    """Run one migration and record it, all inside a single transaction."""
    try:
        with engine.begin() as conn:
            for statement in migration.statements:
                conn.exec_driver_sql(statement)
            conn.execute(
                insert(schema_migrations).values(
                    version=migration.version,
                    applied_at=datetime.now(timezone.utc),
                )
            )
    except SQLAlchemyError as exc:
        raise MigrationError(migration.version, migration.name, str(exc)) from exc


def run_migrations(engine: Engine, migrations: Sequence[Migration] = MIGRATIONS) -> int:
    """
    Apply every migration newer than the database's current version.

    Safe to call repeatedly: already-applied versions are skipped. Stops at
    the first failure and raises ``MigrationError``.

    Returns:
        The schema version after the run.
    """
    validate_registry(migrations)

    try:
        ensure_bookkeeping_table(engine)
        version = current_version(engine)
    except SQLAlchemyError as exc:
        raise MigrationError(0, "schema_migrations", str(exc)) from exc

    pending = [m for m in migrations if m.version > version]
    if not pending:
        logger.debug("migrations_up_to_date", version=version)
        return version

    for migration in pending:
        apply_migration(engine, migration)
        version = migration.version
        logger.info("migration_applied", version=migration.version, name=migration.name)

    return version
