"""Task endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status  # type: ignore[import-untyped]

from tasktrack.api.auth import get_current_user
from tasktrack.api.dependencies import get_storage, owned_project, owned_task
from tasktrack.api.models import CreateTaskRequest, TaskResponse, UpdateTaskRequest
from tasktrack.core.models import Task, TaskPatch, TaskStatus, UserContext
from tasktrack.core.storage import StorageManager

router = APIRouter()


@router.get("/", response_model=list[TaskResponse])
async def list_tasks(
    project_id: Optional[str] = Query(None, description="Filter by project"),
    task_status: Optional[TaskStatus] = Query(None, alias="status"),
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> list[TaskResponse]:
    """List the caller's tasks, newest first.

    Example:
        >>> GET /api/v1/tasks?project_id={id}&status=pending
    """
    tasks = storage.get_tasks(project_id=project_id, user_id=user.user_id)
    if task_status:
        tasks = [t for t in tasks if t.status == task_status]
    return [TaskResponse.from_task(t) for t in tasks]


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> TaskResponse:
    """Get one task."""
    return TaskResponse.from_task(owned_task(storage, user, task_id))


@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    request: CreateTaskRequest,
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> TaskResponse:
    """Create a task in one of the caller's projects.

    Raises:
        HTTPException: 404 if the project does not exist

    Example:
        >>> POST /api/v1/tasks
        {
            "title": "Write copy",
            "project_id": "{id}",
            "priority": "high"
        }
    """
    owned_project(storage, user, request.project_id)

    task = Task(
        title=request.title,
        description=request.description,
        project_id=request.project_id,
        assigned_to=user.user_id,
        status=request.status,
        priority=request.priority,
        due_date=request.due_date,
    )
    storage.create_task(task)
    return TaskResponse.from_task(task)


@router.patch("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    request: UpdateTaskRequest,
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> TaskResponse:
    """Apply a partial update; fields left out are unchanged."""
    owned_task(storage, user, task_id)
    if request.project_id is not None:
        owned_project(storage, user, request.project_id)

    patch = TaskPatch(
        title=request.title,
        description=request.description,
        project_id=request.project_id,
        status=request.status,
        priority=request.priority,
        due_date=request.due_date,
    )
    task = storage.update_task(task_id, patch)
    return TaskResponse.from_task(task)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: str,
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> None:
    """Delete a task."""
    owned_task(storage, user, task_id)
    storage.delete_task(task_id)
