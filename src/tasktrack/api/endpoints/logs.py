"""Time log endpoints.

Time logs are hours and minutes recorded against a task and a day, kept
apart from timer entries.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status  # type: ignore[import-untyped]

from tasktrack.api.auth import get_current_user
from tasktrack.api.dependencies import get_storage, get_tracker, owned_log, parse_date_param
from tasktrack.api.models import CreateTimeLogRequest, TimeLogResponse, UpdateTimeLogRequest
from tasktrack.core.models import TimeLogPatch, UserContext
from tasktrack.core.storage import StorageManager
from tasktrack.core.tracker import TimeTracker

router = APIRouter()


@router.get("/", response_model=list[TimeLogResponse])
async def list_logs(
    from_date: Optional[str] = Query(None, description="From date (YYYY-MM-DD)"),
    to_date: Optional[str] = Query(None, description="To date (YYYY-MM-DD), inclusive"),
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> list[TimeLogResponse]:
    """List the caller's time logs, newest first.

    The range is applied only when both dates are given.

    Example:
        >>> GET /api/v1/logs?from_date=2025-11-01&to_date=2025-11-30
    """
    start = parse_date_param(from_date, "from_date") if from_date else None
    end = None
    if to_date:
        end = parse_date_param(to_date, "to_date").replace(
            hour=23, minute=59, second=59, microsecond=999999
        )

    logs = storage.get_time_logs(user.user_id, start_date=start, end_date=end)
    return [TimeLogResponse.from_log(log) for log in logs]


@router.post("/", response_model=TimeLogResponse, status_code=status.HTTP_201_CREATED)
async def create_log(
    request: CreateTimeLogRequest,
    tracker: TimeTracker = Depends(get_tracker),
    user: UserContext = Depends(get_current_user),
) -> TimeLogResponse:
    """Log hours and minutes against a task.

    Example:
        >>> POST /api/v1/logs
        {
            "task_id": "...",
            "description": "Review",
            "hours": 2,
            "minutes": 15
        }
    """
    time_log = tracker.log_time(
        user,
        request.task_id,
        request.description,
        request.hours,
        request.minutes,
        date=request.date,
    )
    return TimeLogResponse.from_log(time_log)


@router.get("/{log_id}", response_model=TimeLogResponse)
async def get_log(
    log_id: str,
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> TimeLogResponse:
    """Get one time log."""
    return TimeLogResponse.from_log(owned_log(storage, user, log_id))


@router.patch("/{log_id}", response_model=TimeLogResponse)
async def update_log(
    log_id: str,
    request: UpdateTimeLogRequest,
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> TimeLogResponse:
    """Apply a partial update; fields left out are unchanged."""
    owned_log(storage, user, log_id)
    patch = TimeLogPatch(
        description=request.description,
        date=request.date,
        hours=request.hours,
        minutes=request.minutes,
    )
    time_log = storage.update_time_log(log_id, patch)
    return TimeLogResponse.from_log(time_log)


@router.delete("/{log_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_log(
    log_id: str,
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> None:
    """Delete a time log."""
    owned_log(storage, user, log_id)
    storage.delete_time_log(log_id)
