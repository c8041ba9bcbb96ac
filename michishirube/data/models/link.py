"""
Link model: external evidence attached to a task.
"""

from dataclasses import dataclass
from typing import Any, Dict, Union

from ...errors import ValidationError
from .enums import LinkType, coerce_enum

DEFAULT_METADATA = "{}"


@dataclass
class Link:
    """A pull request, Slack thread, ticket or document referenced by a task."""

    task_id: str = ""
    type: Union[LinkType, str] = ""
    url: str = ""
    title: str = ""
    status: str = ""
    metadata: str = DEFAULT_METADATA
    id: str = ""

    def validate(self) -> None:
        if not self.task_id:
            raise ValidationError("task_id", "task_id is required")
        if not self.url:
            raise ValidationError("url", "url is required")
        self.type = coerce_enum(LinkType, self.type, "type")
        if not self.title:
            self.title = self.url
        if self.status is None:
            self.status = ""
        if not self.metadata:
            self.metadata = DEFAULT_METADATA

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "type": self.type.value if isinstance(self.type, LinkType) else self.type,
            "url": self.url,
            "title": self.title,
            "status": self.status,
            "metadata": self.metadata,
        }
