"""
Task services for Michishirube.

Thin orchestration on top of the repository: task details, partial
updates, link/comment creation against an existing task and the status
report.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

import structlog

from .data.models import Comment, Link, Priority, Status, Task
from .db.filters import TaskFilters
from .db.repository import SQLiteRepository
from .errors import ValidationError

logger = structlog.get_logger()

PATCHABLE_FIELDS = ("title", "jira_id", "priority", "status", "tags", "blockers")

PRIORITY_ORDER = {
    Priority.CRITICAL: 0,
    Priority.HIGH: 1,
    Priority.NORMAL: 2,
    Priority.MINOR: 3,
}


@dataclass
class TaskDetails:
    """A task together with its links and comments."""

    task: Task
    links: List[Link] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = self.task.to_dict()
        data["links"] = [link.to_dict() for link in self.links]
        data["comments"] = [comment.to_dict() for comment in self.comments]
        return data


@dataclass
class ReportEntry:
    task: Task
    links: List[Link] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = self.task.to_dict()
        data["links"] = [link.to_dict() for link in self.links]
        return data


@dataclass
class Report:
    """Status report buckets."""

    working_on: List[ReportEntry] = field(default_factory=list)
    next_up: List[ReportEntry] = field(default_factory=list)
    blockers: List[ReportEntry] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "working_on": [entry.to_dict() for entry in self.working_on],
            "next_up": [entry.to_dict() for entry in self.next_up],
            "blockers": [entry.to_dict() for entry in self.blockers],
        }


class TaskService:
    """Service for task-level operations that span several repository calls."""

    def __init__(self, repository: SQLiteRepository):
        self.repository = repository

    def get_details(self, task_id: str) -> TaskDetails:
        """Get a task with its links and comments (oldest comment first)."""
        task = self.repository.get_task(task_id)
        return TaskDetails(
            task=task,
            links=self.repository.get_task_links(task_id),
            comments=self.repository.get_task_comments(task_id),
        )

    def patch_task(self, task_id: str, changes: Mapping[str, Any]) -> Task:
        """
        Apply only the given fields to a stored task and save it.

        ``None`` values are skipped. Unknown field names are rejected before
        anything is read from the store.
        """
        unknown = sorted(set(changes) - set(PATCHABLE_FIELDS))
        if unknown:
            raise ValidationError(unknown[0], f"field cannot be patched: {unknown[0]}")

        task = self.repository.get_task(task_id)
        applied = []
        for name in PATCHABLE_FIELDS:
            value = changes.get(name)
            if value is None:
                continue
            if name in ("tags", "blockers"):
                value = list(value)
            setattr(task, name, value)
            applied.append(name)

        self.repository.update_task(task)
        logger.info("task_patched", task_id=task_id, fields=applied)
        return task

    def add_link(self, link: Link) -> Link:
        """Create a link after checking that its task exists."""
        link.validate()
        self.repository.get_task(link.task_id)
        return self.repository.create_link(link)

    def add_comment(self, comment: Comment) -> Comment:
        """Create a comment after checking that its task exists."""
        comment.validate()
        self.repository.get_task(comment.task_id)
        return self.repository.create_comment(comment)

    def generate_report(self) -> Report:
        """
        Build the status report over every non-archived task.

        in_progress tasks land in both working_on and next_up, done tasks in
        working_on, new tasks in next_up and blocked tasks in blockers.
        next_up is ordered critical first; ties keep list order (newest first).
        """
        report = Report()
        for task in self.repository.list_tasks(TaskFilters()):
            entry = ReportEntry(task=task, links=self.repository.get_task_links(task.id))
            if task.status == Status.IN_PROGRESS:
                report.working_on.append(entry)
                report.next_up.append(entry)
            elif task.status == Status.DONE:
                report.working_on.append(entry)
            elif task.status == Status.NEW:
                report.next_up.append(entry)
            elif task.status == Status.BLOCKED:
                report.blockers.append(entry)

        report.next_up.sort(key=lambda entry: PRIORITY_ORDER[entry.task.priority])

        logger.debug(
            "report_generated",
            working_on=len(report.working_on),
            next_up=len(report.next_up),
            blockers=len(report.blockers),
        )
        return report
