"""Data models for tasks, links and comments."""

from .comment import Comment
from .enums import DEFAULT_PRIORITY, DEFAULT_STATUS, LinkType, Priority, Status
from .link import Link
from .task import DEFAULT_NO_JIRA, Task

__all__ = [
    "Comment",
    "DEFAULT_NO_JIRA",
    "DEFAULT_PRIORITY",
    "DEFAULT_STATUS",
    "Link",
    "LinkType",
    "Priority",
    "Status",
    "Task",
]
