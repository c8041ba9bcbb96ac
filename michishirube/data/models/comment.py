"""
Comment model: a timestamped note on a task.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from ...errors import ValidationError


@dataclass
class Comment:
    task_id: str = ""
    content: str = ""
    id: str = ""
    created_at: Optional[datetime] = None

    def validate(self) -> None:
        if not self.task_id:
            raise ValidationError("task_id", "task_id is required")
        if not self.content or not self.content.strip():
            raise ValidationError("content", "content is required")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "content": self.content,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
