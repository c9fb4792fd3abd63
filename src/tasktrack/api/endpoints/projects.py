"""Project endpoints.

All operations are scoped to the calling user; projects owned by someone
else are reported as not found.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status  # type: ignore[import-untyped]

from tasktrack.api.auth import get_current_user
from tasktrack.api.dependencies import get_storage, owned_project
from tasktrack.api.models import (
    CreateProjectRequest,
    ProjectResponse,
    UpdateProjectRequest,
)
from tasktrack.core.models import Project, ProjectPatch, ProjectStatus, UserContext
from tasktrack.core.storage import StorageManager

router = APIRouter()


@router.get("/", response_model=list[ProjectResponse])
async def list_projects(
    project_status: Optional[ProjectStatus] = Query(None, alias="status"),
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> list[ProjectResponse]:
    """List the caller's projects, newest first.

    Example:
        >>> GET /api/v1/projects?status=active
    """
    projects = storage.get_projects(user.user_id)
    if project_status:
        projects = [p for p in projects if p.status == project_status]
    return [ProjectResponse.from_project(p) for p in projects]


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> ProjectResponse:
    """Get one project."""
    return ProjectResponse.from_project(owned_project(storage, user, project_id))


@router.post("/", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    request: CreateProjectRequest,
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> ProjectResponse:
    """Create a project owned by the caller.

    Example:
        >>> POST /api/v1/projects
        {
            "name": "Website",
            "description": "Marketing site relaunch"
        }
    """
    project = Project(
        name=request.name,
        description=request.description,
        created_by=user.user_id,
        status=request.status,
    )
    storage.create_project(project)
    return ProjectResponse.from_project(project)


@router.patch("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    request: UpdateProjectRequest,
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> ProjectResponse:
    """Apply a partial update; fields left out are unchanged.

    Example:
        >>> PATCH /api/v1/projects/{id}
        {
            "status": "completed"
        }
    """
    owned_project(storage, user, project_id)
    patch = ProjectPatch(
        name=request.name,
        description=request.description,
        status=request.status,
    )
    project = storage.update_project(project_id, patch)
    return ProjectResponse.from_project(project)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_project(
    project_id: str,
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> None:
    """Delete a project. Its tasks and entries are kept."""
    owned_project(storage, user, project_id)
    storage.delete_project(project_id)
