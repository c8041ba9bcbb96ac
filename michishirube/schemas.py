"""
Request bodies for the HTTP API.

Enum fields are plain strings here; the domain models decide what is valid
so that bad values surface as the API's 400 validation error.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .data.models import Comment, Link, Task


class TaskCreate(BaseModel):
    """Body of POST /api/tasks."""

    title: str = ""
    jira_id: str = ""
    priority: str = ""
    status: str = ""
    tags: List[str] = Field(default_factory=list)
    blockers: List[str] = Field(default_factory=list)

    def to_task(self) -> Task:
        return Task(
            title=self.title,
            jira_id=self.jira_id,
            priority=self.priority,
            status=self.status,
            tags=list(self.tags),
            blockers=list(self.blockers),
        )


class TaskUpdate(TaskCreate):
    """Body of PUT /api/tasks/{id}: every field is rewritten."""


class TaskPatch(BaseModel):
    """Body of PATCH /api/tasks/{id}: only fields that are present change."""

    title: Optional[str] = None
    jira_id: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[List[str]] = None
    blockers: Optional[List[str]] = None


class LinkUpdate(BaseModel):
    type: str = ""
    url: str = ""
    title: str = ""
    status: str = ""
    metadata: str = ""


class LinkCreate(LinkUpdate):
    task_id: str = ""
    # Links created through the API start out active.
    status: str = "active"

    def to_link(self) -> Link:
        return Link(
            task_id=self.task_id,
            type=self.type,
            url=self.url,
            title=self.title,
            status=self.status,
            metadata=self.metadata,
        )


class CommentCreate(BaseModel):
    task_id: str = ""
    content: str = ""

    def to_comment(self) -> Comment:
        return Comment(task_id=self.task_id, content=self.content.strip())


class CommentUpdate(BaseModel):
    content: str = ""


class TaskListResponse(BaseModel):
    tasks: List[dict]
    total: int
    limit: int
    offset: int


class CommentCreated(BaseModel):
    id: str
    message: str = "Comment created successfully"
