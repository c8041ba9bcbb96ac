"""
Canonical enums for tasks and links.

Stored values are the lowercase strings; the CHECK constraints in the
schema migrations list exactly the same sets.
"""

from enum import Enum
from typing import Optional, Type, TypeVar, Union

from ...errors import ValidationError

E = TypeVar("E", bound=Enum)


class Priority(str, Enum):
    """Task priority levels."""

    MINOR = "minor"
    NORMAL = "normal"
    HIGH = "high"
    CRITICAL = "critical"


class Status(str, Enum):
    """Task lifecycle status. Any value may follow any other."""

    NEW = "new"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    DONE = "done"
    ARCHIVED = "archived"


class LinkType(str, Enum):
    """Kinds of evidence a link can point at."""

    PULL_REQUEST = "pull_request"
    SLACK_THREAD = "slack_thread"
    JIRA_TICKET = "jira_ticket"
    DOCUMENTATION = "documentation"
    OTHER = "other"


DEFAULT_PRIORITY = Priority.NORMAL
DEFAULT_STATUS = Status.NEW


def coerce_enum(
    enum_cls: Type[E],
    value: Union[E, str, None],
    field: str,
    default: Optional[E] = None,
) -> E:
    """Return ``value`` as a member of ``enum_cls``.

    Empty values take ``default`` when one is given. Anything else that is
    not a member value is rejected rather than coerced.
    """
    if isinstance(value, enum_cls):
        return value
    if value is None or value == "":
        if default is None:
            raise ValidationError(field, f"{field} is required")
        return default
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(field, f"invalid {field}: {value!r}") from None
