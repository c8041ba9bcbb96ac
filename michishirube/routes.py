"""
Michishirube API routes.

REST endpoints for tasks, links, comments and the status report.
All endpoints are prefixed with /api.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from .db.filters import TaskFilters
from .db.repository import SQLiteRepository
from .schemas import (
    CommentCreate,
    CommentCreated,
    CommentUpdate,
    LinkCreate,
    LinkUpdate,
    TaskCreate,
    TaskListResponse,
    TaskPatch,
    TaskUpdate,
)
from .services import TaskService

logger = structlog.get_logger()

router = APIRouter(prefix="/api")


def get_repository(request: Request) -> SQLiteRepository:
    """The repository opened by the application lifespan."""
    repository = getattr(request.app.state, "repository", None)
    if repository is None:
        raise HTTPException(status_code=503, detail="Repository not initialized")
    return repository


def get_task_service(
    repository: SQLiteRepository = Depends(get_repository),
) -> TaskService:
    return TaskService(repository)


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


# =============================================================================
# Task Endpoints
# =============================================================================


@router.get("/tasks", response_model=TaskListResponse, tags=["tasks"])
def list_tasks(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    tags: Optional[str] = None,
    include_archived: bool = False,
    limit: int = 0,
    offset: int = 0,
    search: Optional[str] = None,
    repository: SQLiteRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """
    List tasks with optional filtering.

    ``status``, ``priority`` and ``tags`` take comma-separated values.
    ``search`` switches to substring search over title, jira_id and tags.
    """
    limit = max(limit, 0)
    offset = max(offset, 0)

    if search:
        tasks = repository.search_tasks(search, include_archived=include_archived, limit=limit)
        total = len(tasks)
    else:
        filters = TaskFilters(
            status=_split_csv(status),
            priority=_split_csv(priority),
            tags=_split_csv(tags),
            include_archived=include_archived,
            limit=limit,
            offset=offset,
        )
        tasks = repository.list_tasks(filters)
        total = repository.count_tasks(filters)

    return {
        "tasks": [task.to_dict() for task in tasks],
        "total": total,
        "limit": limit,
        "offset": offset,
    }


@router.post("/tasks", status_code=201, tags=["tasks"])
def create_task(
    body: TaskCreate,
    repository: SQLiteRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """Create a new task."""
    task = repository.create_task(body.to_task())
    logger.info("api_task_created", task_id=task.id)
    return task.to_dict()


@router.get("/tasks/{task_id}", tags=["tasks"])
def get_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
) -> Dict[str, Any]:
    """Get a task with its links and comments."""
    return service.get_details(task_id).to_dict()


@router.put("/tasks/{task_id}", tags=["tasks"])
def update_task(
    task_id: str,
    body: TaskUpdate,
    repository: SQLiteRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """Replace every field of a task."""
    existing = repository.get_task(task_id)
    task = body.to_task()
    task.id = existing.id
    task.created_at = existing.created_at
    repository.update_task(task)
    return task.to_dict()


@router.patch("/tasks/{task_id}", tags=["tasks"])
def patch_task(
    task_id: str,
    body: TaskPatch,
    service: TaskService = Depends(get_task_service),
) -> Dict[str, Any]:
    """Update only the fields present in the body."""
    task = service.patch_task(task_id, body.model_dump(exclude_unset=True))
    return task.to_dict()


@router.delete("/tasks/{task_id}", status_code=204, tags=["tasks"])
def delete_task(
    task_id: str,
    repository: SQLiteRepository = Depends(get_repository),
) -> Response:
    """Delete a task together with its links and comments."""
    repository.delete_task(task_id)
    return Response(status_code=204)


@router.get("/tasks/{task_id}/links", tags=["links"])
def list_task_links(
    task_id: str,
    repository: SQLiteRepository = Depends(get_repository),
) -> List[Dict[str, Any]]:
    return [link.to_dict() for link in repository.get_task_links(task_id)]


@router.get("/tasks/{task_id}/comments", tags=["comments"])
def list_task_comments(
    task_id: str,
    repository: SQLiteRepository = Depends(get_repository),
) -> List[Dict[str, Any]]:
    return [comment.to_dict() for comment in repository.get_task_comments(task_id)]


# =============================================================================
# Link Endpoints
# =============================================================================


@router.post("/links", status_code=201, tags=["links"])
def create_link(
    body: LinkCreate,
    service: TaskService = Depends(get_task_service),
) -> Dict[str, Any]:
    """Attach a link to an existing task."""
    link = service.add_link(body.to_link())
    logger.info("api_link_created", link_id=link.id, task_id=link.task_id)
    return link.to_dict()


@router.get("/links/{link_id}", tags=["links"])
def get_link(
    link_id: str,
    repository: SQLiteRepository = Depends(get_repository),
) -> Dict[str, Any]:
    return repository.get_link(link_id).to_dict()


@router.put("/links/{link_id}", tags=["links"])
def update_link(
    link_id: str,
    body: LinkUpdate,
    repository: SQLiteRepository = Depends(get_repository),
) -> Dict[str, Any]:
    """Rewrite a link; it stays attached to the same task."""
    link = repository.get_link(link_id)
    link.type = body.type
    link.url = body.url
    link.title = body.title
    link.status = body.status
    link.metadata = body.metadata
    repository.update_link(link)
    return link.to_dict()


@router.delete("/links/{link_id}", status_code=204, tags=["links"])
def delete_link(
    link_id: str,
    repository: SQLiteRepository = Depends(get_repository),
) -> Response:
    repository.delete_link(link_id)
    return Response(status_code=204)


# =============================================================================
# Comment Endpoints
# =============================================================================


@router.post("/comments", status_code=201, response_model=CommentCreated, tags=["comments"])
def create_comment(
    body: CommentCreate,
    service: TaskService = Depends(get_task_service),
) -> CommentCreated:
    """Add a comment to an existing task."""
    comment = service.add_comment(body.to_comment())
    logger.info("api_comment_created", comment_id=comment.id, task_id=comment.task_id)
    return CommentCreated(id=comment.id)


@router.get("/comments/{comment_id}", tags=["comments"])
def get_comment(
    comment_id: str,
    repository: SQLiteRepository = Depends(get_repository),
) -> Dict[str, Any]:
    return repository.get_comment(comment_id).to_dict()


@router.put("/comments/{comment_id}", tags=["comments"])
def update_comment(
    comment_id: str,
    body: CommentUpdate,
    repository: SQLiteRepository = Depends(get_repository),
) -> Dict[str, Any]:
    comment = repository.get_comment(comment_id)
    comment.content = body.content.strip()
    repository.update_comment(comment)
    return comment.to_dict()


@router.delete("/comments/{comment_id}", status_code=204, tags=["comments"])
def delete_comment(
    comment_id: str,
    repository: SQLiteRepository = Depends(get_repository),
) -> Response:
    repository.delete_comment(comment_id)
    return Response(status_code=204)


# =============================================================================
# Report Endpoint
# =============================================================================


@router.get("/report", tags=["report"])
def get_report(service: TaskService = Depends(get_task_service)) -> Dict[str, Any]:
    """Status report: working_on, next_up and blockers."""
    return service.generate_report().to_dict()
