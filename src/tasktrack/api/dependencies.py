"""Dependency injection for FastAPI endpoints.

These dependencies give endpoints access to the configuration, the storage
gateway and the time tracker, and look up records owned by the caller.
"""

from datetime import datetime

from fastapi import HTTPException, Request, status  # type: ignore[import-untyped]

from tasktrack.core.config import ConfigManager
from tasktrack.core.models import Project, Task, TimeEntry, TimeLog, UserContext
from tasktrack.core.storage import StorageManager
from tasktrack.core.tracker import TimeTracker


def get_config(request: Request = None) -> ConfigManager:  # type: ignore[assignment,misc]
    """Get configuration manager instance.

    Args:
        request: FastAPI Request object (when used as dependency)

    Returns:
        ConfigManager instance from app state or new instance
    """
    if request is not None and hasattr(request, "app"):
        if hasattr(request.app.state, "config"):
            config: ConfigManager = request.app.state.config
            return config
    return ConfigManager()


def get_storage(request: Request = None) -> StorageManager:  # type: ignore[assignment,misc]
    """Get storage instance.

    Args:
        request: FastAPI request object (injected) or None for direct call

    Returns:
        StorageManager instance for the configured data directory
    """
    config = get_config(request)
    return StorageManager(config.data_dir())


def get_tracker(request: Request = None) -> TimeTracker:  # type: ignore[assignment,misc]
    """Get tracker instance.

    Args:
        request: FastAPI request object (injected) or None for direct call

    Returns:
        TimeTracker instance
    """
    storage = get_storage(request)
    return TimeTracker(storage)


def _not_found(kind: str, record_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{kind} {record_id} not found",
    )


def owned_project(storage: StorageManager, user: UserContext, project_id: str) -> Project:
    """Load a project owned by the user or raise 404."""
    project = storage.get_project(project_id)
    if project is None or project.created_by != user.user_id:
        raise _not_found("Project", project_id)
    return project


def owned_task(storage: StorageManager, user: UserContext, task_id: str) -> Task:
    """Load a task assigned to the user or raise 404."""
    task = storage.get_task(task_id)
    if task is None or task.assigned_to != user.user_id:
        raise _not_found("Task", task_id)
    return task


def owned_entry(storage: StorageManager, user: UserContext, entry_id: str) -> TimeEntry:
    """Load a time entry owned by the user or raise 404."""
    entry = storage.get_time_entry(entry_id)
    if entry is None or entry.user_id != user.user_id:
        raise _not_found("Time entry", entry_id)
    return entry


def owned_log(storage: StorageManager, user: UserContext, log_id: str) -> TimeLog:
    """Load a time log owned by the user or raise 404."""
    time_log = storage.get_time_log(log_id)
    if time_log is None or time_log.user_id != user.user_id:
        raise _not_found("Time log", log_id)
    return time_log


def parse_date_param(value: str, name: str) -> datetime:
    """Parse a YYYY-MM-DD query parameter or raise 400."""
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name}: {value} (expected YYYY-MM-DD)",
        )
