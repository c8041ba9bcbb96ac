"""
SQLite repository for tasks, links and comments.

This is the only module that issues queries against the store. Every
public method is synchronous and runs in its own transaction; nothing here
spans several entities in one transaction.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List, Optional

import structlog
from sqlalchemy import Engine, delete, func, insert, literal_column, select, update
from sqlalchemy.engine import Row
from sqlalchemy.exc import SQLAlchemyError

from ..data.models import Comment, Link, LinkType, Priority, Status, Task
from ..errors import NotFoundError, StorageError, ValidationError
from .base import create_store_engine
from .codec import ListCodec, default_codec
from .filters import TaskFilters, build_search_conditions, build_task_conditions
from .migrations import run_migrations
from .tables import comments, links, tasks

logger = structlog.get_logger()

_rowid = literal_column("rowid")


def generate_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite keeps no offset; everything is written in UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@contextmanager
def _storage_errors(entity: str, operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageError(entity, operation, exc) from exc


def _require_id(entity_id: str) -> None:
    if not entity_id:
        raise ValidationError("id", "id is required")


class SQLiteRepository:
    """Task, link and comment storage on an SQLAlchemy engine.

    Usage:
        repo = SQLiteRepository.open("sqlite:///michishirube.db")
        task = Task(title="Fix memory leak in pod controller")
        repo.create_task(task)
        repo.close()

    The engine is injected; migrations run once during construction so no
    operation ever sees a partially migrated schema.
    """

    def __init__(
        self,
        engine: Engine,
        codec: Optional[ListCodec] = None,
        owns_engine: bool = False,
    ):
        self.engine = engine
        self.codec = codec or default_codec
        self._owns_engine = owns_engine
        self.schema_version: int = self.run_migrations()

    @classmethod
    def open(cls, database_url: Optional[str] = None, **kwargs) -> "SQLiteRepository":
        """Create an engine for ``database_url`` and a repository that owns it."""
        engine = create_store_engine(database_url)
        try:
            return cls(engine, owns_engine=True, **kwargs)
        except Exception:
            engine.dispose()
            raise

    def run_migrations(self) -> int:
        self.schema_version = run_migrations(self.engine)
        return self.schema_version

    def close(self) -> None:
        """Release the engine if this repository created it."""
        if self._owns_engine:
            self.engine.dispose()
            logger.debug("repository_closed", url=self.engine.url.render_as_string())

    def __enter__(self) -> "SQLiteRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---- row mapping ----

    def _row_to_task(self, row: Row) -> Task:
        return Task(
            id=row.id,
            jira_id=row.jira_id,
            title=row.title,
            priority=Priority(row.priority),
            status=Status(row.status),
            tags=self.codec.decode(row.tags),
            blockers=self.codec.decode(row.blockers),
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
        )

    @staticmethod
    def _row_to_link(row: Row) -> Link:
        return Link(
            id=row.id,
            task_id=row.task_id,
            type=LinkType(row.type),
            url=row.url,
            title=row.title,
            status=row.status,
            metadata=row._mapping["metadata"],
        )

    @staticmethod
    def _row_to_comment(row: Row) -> Comment:
        return Comment(
            id=row.id,
            task_id=row.task_id,
            content=row.content,
            created_at=_as_utc(row.created_at),
        )

    def _task_values(self, task: Task) -> dict:
        return {
            "jira_id": task.jira_id,
            "title": task.title,
            "priority": task.priority.value,
            "status": task.status.value,
            "tags": self.codec.encode(task.tags),
            "blockers": self.codec.encode(task.blockers),
            "updated_at": task.updated_at,
        }

    @staticmethod
    def _link_values(link: Link) -> dict:
        return {
            "task_id": link.task_id,
            "type": link.type.value,
            "url": link.url,
            "title": link.title,
            "status": link.status,
            "metadata": link.metadata,
        }

    # ---- tasks ----

    def create_task(self, task: Task) -> Task:
        """Validate, stamp and insert ``task``. The task is updated in place."""
        task.validate()
        if not task.id:
            task.id = generate_id()
        now = utc_now()
        task.created_at = now
        task.updated_at = now

        values = self._task_values(task)
        with _storage_errors("task", "create"), self.engine.begin() as conn:
            conn.execute(insert(tasks).values(id=task.id, created_at=task.created_at, **values))

        logger.debug("task_created", task_id=task.id, status=task.status.value)
        return task

    def get_task(self, task_id: str) -> Task:
        with _storage_errors("task", "get"), self.engine.connect() as conn:
            row = conn.execute(select(tasks).where(tasks.c.id == task_id)).first()
        if row is None:
            raise NotFoundError("task", task_id)
        return self._row_to_task(row)

    def update_task(self, task: Task) -> Task:
        """Write every column of ``task``; a missing row is not an error here."""
        task.validate()
        _require_id(task.id)
        task.updated_at = utc_now()

        values = self._task_values(task)
        with _storage_errors("task", "update"), self.engine.begin() as conn:
            conn.execute(update(tasks).where(tasks.c.id == task.id).values(**values))
        return task

    def delete_task(self, task_id: str) -> None:
        """Delete a task; its links and comments go with it through ON DELETE CASCADE."""
        with _storage_errors("task", "delete"), self.engine.begin() as conn:
            result = conn.execute(delete(tasks).where(tasks.c.id == task_id))
        logger.debug("task_deleted", task_id=task_id, deleted=result.rowcount)

    def list_tasks(self, filters: Optional[TaskFilters] = None) -> List[Task]:
        """List tasks newest first, restricted by ``filters``."""
        filters = filters or TaskFilters()
        conditions = build_task_conditions(filters, self.codec)

        stmt = (
            select(tasks)
            .where(*conditions)
            .order_by(tasks.c.created_at.desc(), _rowid.desc())
        )
        if filters.limit and filters.limit > 0:
            stmt = stmt.limit(filters.limit)
        if filters.offset and filters.offset > 0:
            stmt = stmt.offset(filters.offset)

        with _storage_errors("task", "list"), self.engine.connect() as conn:
            rows = conn.execute(stmt).all()
        return [self._row_to_task(row) for row in rows]

    def count_tasks(self, filters: Optional[TaskFilters] = None) -> int:
        """Count tasks matching ``filters``, ignoring limit and offset."""
        conditions = build_task_conditions(filters or TaskFilters(), self.codec)
        stmt = select(func.count()).select_from(tasks).where(*conditions)
        with _storage_errors("task", "count"), self.engine.connect() as conn:
            return int(conn.execute(stmt).scalar_one())

    def search_tasks(
        self, query: str, include_archived: bool = False, limit: Optional[int] = 0
    ) -> List[Task]:
        """
        Find tasks whose title, jira_id or encoded tags contain ``query``.

        Matching is case-insensitive. ``limit`` of ``None`` or ``<= 0`` means no limit.
        """
        stmt = (
            select(tasks)
            .where(*build_search_conditions(query, include_archived))
            .order_by(tasks.c.created_at.desc(), _rowid.desc())
        )
        if limit and limit > 0:
            stmt = stmt.limit(limit)

        with _storage_errors("task", "search"), self.engine.connect() as conn:
            rows = conn.execute(stmt).all()
        return [self._row_to_task(row) for row in rows]

    # ---- links ----

    def create_link(self, link: Link) -> Link:
        link.validate()
        if not link.id:
            link.id = generate_id()

        with _storage_errors("link", "create"), self.engine.begin() as conn:
            conn.execute(insert(links).values(id=link.id, **self._link_values(link)))

        logger.debug("link_created", link_id=link.id, task_id=link.task_id)
        return link

    def get_link(self, link_id: str) -> Link:
        with _storage_errors("link", "get"), self.engine.connect() as conn:
            row = conn.execute(select(links).where(links.c.id == link_id)).first()
        if row is None:
            raise NotFoundError("link", link_id)
        return self._row_to_link(row)

    def update_link(self, link: Link) -> Link:
        link.validate()
        _require_id(link.id)
        with _storage_errors("link", "update"), self.engine.begin() as conn:
            conn.execute(
                update(links).where(links.c.id == link.id).values(**self._link_values(link))
            )
        return link

    def delete_link(self, link_id: str) -> None:
        with _storage_errors("link", "delete"), self.engine.begin() as conn:
            conn.execute(delete(links).where(links.c.id == link_id))

    def get_task_links(self, task_id: str) -> List[Link]:
        stmt = select(links).where(links.c.task_id == task_id).order_by(_rowid)
        with _storage_errors("link", "list"), self.engine.connect() as conn:
            rows = conn.execute(stmt).all()
        return [self._row_to_link(row) for row in rows]

    # ---- comments ----

    def create_comment(self, comment: Comment) -> Comment:
        comment.validate()
        if not comment.id:
            comment.id = generate_id()
        comment.created_at = utc_now()

        with _storage_errors("comment", "create"), self.engine.begin() as conn:
            conn.execute(
                insert(comments).values(
                    id=comment.id,
                    task_id=comment.task_id,
                    content=comment.content,
                    created_at=comment.created_at,
                )
            )

        logger.debug("comment_created", comment_id=comment.id, task_id=comment.task_id)
        return comment

    def get_comment(self, comment_id: str) -> Comment:
        with _storage_errors("comment", "get"), self.engine.connect() as conn:
            row = conn.execute(select(comments).where(comments.c.id == comment_id)).first()
        if row is None:
            raise NotFoundError("comment", comment_id)
        return self._row_to_comment(row)

    def update_comment(self, comment: Comment) -> Comment:
        """Rewrite a comment's task and content; ``created_at`` is left alone."""
        comment.validate()
        _require_id(comment.id)
        with _storage_errors("comment", "update"), self.engine.begin() as conn:
            conn.execute(
                update(comments)
                .where(comments.c.id == comment.id)
                .values(task_id=comment.task_id, content=comment.content)
            )
        return comment

    def delete_comment(self, comment_id: str) -> None:
        with _storage_errors("comment", "delete"), self.engine.begin() as conn:
            conn.execute(delete(comments).where(comments.c.id == comment_id))

    def get_task_comments(self, task_id: str) -> List[Comment]:
        """Comments for a task, oldest first."""
        stmt = (
            select(comments)
            .where(comments.c.task_id == task_id)
            .order_by(comments.c.created_at.asc(), _rowid.asc())
        )
        with _storage_errors("comment", "list"), self.engine.connect() as conn:
            rows = conn.execute(stmt).all()
        return [self._row_to_comment(row) for row in rows]


def open_repository(database_url: Optional[str] = None) -> SQLiteRepository:
    """Open (and migrate) the store at ``database_url``."""
    return SQLiteRepository.open(database_url)
