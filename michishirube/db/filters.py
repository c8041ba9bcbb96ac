"""
Task filters and the predicate builder behind ``list_tasks``/``search_tasks``.

Filters become a list of SQLAlchemy expressions that are ANDed together.
Values only ever travel as bound parameters.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from sqlalchemy import ColumnElement, or_

from ..data.models.enums import Priority, Status, coerce_enum
from .codec import ListCodec
from .tables import tasks


@dataclass
class TaskFilters:
    """
    Open filter set for listing tasks.

    Empty ``status``/``priority``/``tags`` add no restriction. Archived tasks
    are hidden unless ``include_archived`` is set or ``archived`` is listed
    explicitly in ``status``. ``limit``/``offset`` only apply when positive;
    ``None`` anywhere counts as unset.
    """

    status: List[Union[Status, str]] = field(default_factory=list)
    priority: List[Union[Priority, str]] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    include_archived: bool = False
    limit: Optional[int] = 0
    offset: Optional[int] = 0

    def statuses(self) -> List[Status]:
        return [coerce_enum(Status, s, "status") for s in self.status or []]

    def priorities(self) -> List[Priority]:
        return [coerce_enum(Priority, p, "priority") for p in self.priority or []]


def archived_clause(include_archived: bool, statuses: Sequence[Status] = ()) -> Optional[ColumnElement]:
    """Implicit archived exclusion; an explicit ``archived`` status filter wins."""
    if include_archived or Status.ARCHIVED in statuses:
        return None
    return tasks.c.status != Status.ARCHIVED.value


def build_task_conditions(filters: TaskFilters, codec: ListCodec) -> List[ColumnElement]:
    """Turn ``filters`` into an ordered list of WHERE conditions."""
    conditions: List[ColumnElement] = []
    statuses = filters.statuses()

    archived = archived_clause(filters.include_archived, statuses)
    if archived is not None:
        conditions.append(archived)

    if statuses:
        conditions.append(tasks.c.status.in_([s.value for s in statuses]))

    priorities = filters.priorities()
    if priorities:
        conditions.append(tasks.c.priority.in_([p.value for p in priorities]))

    for tag in filters.tags or []:
        if tag:
            conditions.append(codec.contains(tasks.c.tags, tag))

    return conditions


def build_search_conditions(query: str, include_archived: bool) -> List[ColumnElement]:
    """
    Case-insensitive substring match over title, jira_id and the encoded tags.

    The tags column is matched as raw text, so a query can match across the
    encoding's punctuation (e.g. ``a", "b`` against ``["a", "b"]``).
    """
    conditions: List[ColumnElement] = [
        or_(
            tasks.c.title.icontains(query, autoescape=True),
            tasks.c.jira_id.icontains(query, autoescape=True),
            tasks.c.tags.icontains(query, autoescape=True),
        )
    ]
    archived = archived_clause(include_archived)
    if archived is not None:
        conditions.append(archived)
    return conditions
