"""
Task model for Michishirube.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from ...errors import ValidationError
from .enums import DEFAULT_PRIORITY, DEFAULT_STATUS, Priority, Status, coerce_enum

DEFAULT_NO_JIRA = "NO-JIRA"


@dataclass
class Task:
    """
    A tracked work item.

    ``jira_id`` is the free-form external ticket reference. ``tags`` and
    ``blockers`` keep insertion order. ``id`` and the timestamps are filled
    in by the repository on create.
    """

    title: str = ""
    jira_id: str = ""
    priority: Union[Priority, str] = ""
    status: Union[Status, str] = ""
    tags: List[str] = field(default_factory=list)
    blockers: List[str] = field(default_factory=list)
    id: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def validate(self) -> None:
        """Check required fields and enums, filling in defaults for empty values."""
        if not self.title or not self.title.strip():
            raise ValidationError("title", "title is required")

        if not self.jira_id:
            self.jira_id = DEFAULT_NO_JIRA
        self.priority = coerce_enum(Priority, self.priority, "priority", DEFAULT_PRIORITY)
        self.status = coerce_enum(Status, self.status, "status", DEFAULT_STATUS)

        if self.tags is None:
            self.tags = []
        if self.blockers is None:
            self.blockers = []
        _check_strings(self.tags, "tags")
        _check_strings(self.blockers, "blockers")

    def to_dict(self) -> Dict[str, Any]:
        """Convert the task to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "jira_id": self.jira_id,
            "title": self.title,
            "priority": _enum_value(self.priority),
            "status": _enum_value(self.status),
            "tags": list(self.tags),
            "blockers": list(self.blockers),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __str__(self) -> str:
        return f"Task(id={self.id[:8]}, title={self.title!r}, status={_enum_value(self.status)})"


def _check_strings(values: List[str], name: str) -> None:
    for value in values:
        if not isinstance(value, str):
            raise ValidationError(name, f"{name} must be strings, got {type(value).__name__}")


def _enum_value(value: Union[Priority, Status, str]) -> str:
    return value.value if isinstance(value, (Priority, Status)) else value
