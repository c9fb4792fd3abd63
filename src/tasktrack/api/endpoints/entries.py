"""Entry endpoints for time tracking operations.

This module provides the start/stop timer, manual entries and CRUD
operations on the caller's time entries. Tracker errors are translated to
HTTP responses by the handlers in ``tasktrack.api.middleware``.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status  # type: ignore[import-untyped]

from tasktrack.api.auth import get_current_user
from tasktrack.api.dependencies import get_storage, get_tracker, owned_entry
from tasktrack.api.models import (
    ManualEntryRequest,
    StartTimerRequest,
    TimeEntryResponse,
    UpdateTimeEntryRequest,
)
from tasktrack.core.models import TimeEntryPatch, UserContext
from tasktrack.core.storage import StorageManager
from tasktrack.core.tracker import TimeTracker, elapsed

router = APIRouter()


@router.get("/", response_model=list[TimeEntryResponse])
async def list_entries(
    task_id: Optional[str] = Query(None, description="Filter by task"),
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Maximum number of entries"),
    tracker: TimeTracker = Depends(get_tracker),
    user: UserContext = Depends(get_current_user),
) -> list[TimeEntryResponse]:
    """List the caller's time entries, newest first.

    Example:
        >>> GET /api/v1/entries?task_id={id}&limit=10
    """
    entries = tracker.get_entries(user, task_id=task_id, limit=limit)
    return [TimeEntryResponse.from_entry(e) for e in entries]


@router.get("/active", response_model=Optional[TimeEntryResponse])
async def get_active_entry(
    tracker: TimeTracker = Depends(get_tracker),
    user: UserContext = Depends(get_current_user),
) -> Optional[TimeEntryResponse]:
    """Get the running entry with its elapsed seconds, or null.

    Example:
        >>> GET /api/v1/entries/active
        {
            "id": "...",
            "start_time": "2025-11-16T10:00:00",
            "is_active": true,
            "elapsed_seconds": 754,
            ...
        }
    """
    entry = tracker.active_entry(user)
    if entry is None:
        return None
    return TimeEntryResponse.from_entry(entry, elapsed_seconds=elapsed(entry, tracker.clock()))


@router.post("/start", response_model=TimeEntryResponse, status_code=status.HTTP_201_CREATED)
async def start_timer(
    request: StartTimerRequest,
    tracker: TimeTracker = Depends(get_tracker),
    user: UserContext = Depends(get_current_user),
) -> TimeEntryResponse:
    """Start the timer on a task.

    Returns 409 if a timer is already running and 400 if the task is unknown
    or the description is empty.

    Example:
        >>> POST /api/v1/entries/start
        {
            "task_id": "...",
            "description": "Drafting landing page"
        }
    """
    entry = tracker.start_timer(user, request.task_id, request.description)
    return TimeEntryResponse.from_entry(entry, elapsed_seconds=0)


@router.post("/manual", response_model=TimeEntryResponse, status_code=status.HTTP_201_CREATED)
async def log_manual_entry(
    request: ManualEntryRequest,
    tracker: TimeTracker = Depends(get_tracker),
    user: UserContext = Depends(get_current_user),
) -> TimeEntryResponse:
    """Record already-finished work as a closed entry.

    Example:
        >>> POST /api/v1/entries/manual
        {
            "task_id": "...",
            "description": "Client call",
            "hours": 1,
            "minutes": 30
        }
    """
    entry = tracker.log_manual_entry(
        user, request.task_id, request.description, request.hours, request.minutes
    )
    return TimeEntryResponse.from_entry(entry)


@router.post("/{entry_id}/stop", response_model=TimeEntryResponse)
async def stop_timer(
    entry_id: str,
    tracker: TimeTracker = Depends(get_tracker),
    user: UserContext = Depends(get_current_user),
) -> TimeEntryResponse:
    """Stop a running entry.

    Returns 404 for unknown entries and 409 if the entry is already stopped.
    """
    entry = tracker.stop_timer(user, entry_id)
    return TimeEntryResponse.from_entry(entry)


@router.get("/{entry_id}", response_model=TimeEntryResponse)
async def get_entry(
    entry_id: str,
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> TimeEntryResponse:
    """Get a specific entry by ID."""
    return TimeEntryResponse.from_entry(owned_entry(storage, user, entry_id))


@router.patch("/{entry_id}", response_model=TimeEntryResponse)
async def update_entry(
    entry_id: str,
    request: UpdateTimeEntryRequest,
    tracker: TimeTracker = Depends(get_tracker),
    user: UserContext = Depends(get_current_user),
) -> TimeEntryResponse:
    """Correct an entry; fields left out are unchanged.

    Changing the times of a stopped entry recomputes its duration. Returns
    400 for time changes on a running entry or a manual entry, and for a
    duration that disagrees with the times.

    Example:
        >>> PATCH /api/v1/entries/{id}
        {
            "description": "Updated description",
            "end_time": "2025-11-16T12:00:00"
        }
    """
    patch = TimeEntryPatch(
        description=request.description,
        start_time=request.start_time,
        end_time=request.end_time,
        duration=request.duration,
    )
    entry = tracker.update_entry(user, entry_id, patch)
    return TimeEntryResponse.from_entry(entry)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(
    entry_id: str,
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> None:
    """Delete an entry."""
    owned_entry(storage, user, entry_id)
    storage.delete_time_entry(entry_id)
