"""Pydantic models for API requests and responses.

All models use Pydantic for automatic validation and serialization.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field  # type: ignore[import-untyped]

from tasktrack.core.models import (
    ProjectStatus,
    TaskPriority,
    TaskStatus,
)

# ============================================================================
# Response Models
# ============================================================================


class ProjectResponse(BaseModel):
    """Response model for project."""

    id: str
    name: str
    description: str = ""
    created_by: str
    status: ProjectStatus
    created_at: datetime

    @classmethod
    def from_project(cls, project):  # type: ignore[no-untyped-def]
        """Create response from a core Project."""
        return cls(
            id=project.id,
            name=project.name,
            description=project.description,
            created_by=project.created_by,
            status=project.status,
            created_at=project.created_at,
        )


class TaskResponse(BaseModel):
    """Response model for task."""

    id: str
    title: str
    description: str = ""
    project_id: str
    assigned_to: str
    status: TaskStatus
    priority: TaskPriority
    created_at: datetime
    due_date: Optional[datetime] = None

    @classmethod
    def from_task(cls, task):  # type: ignore[no-untyped-def]
        """Create response from a core Task."""
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            project_id=task.project_id,
            assigned_to=task.assigned_to,
            status=task.status,
            priority=task.priority,
            created_at=task.created_at,
            due_date=task.due_date,
        )


class TimeEntryResponse(BaseModel):
    """Response model for time entry."""

    id: str
    task_id: str
    user_id: str
    project_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, description="Duration in whole minutes")
    description: str = ""
    is_active: bool = False
    elapsed_seconds: Optional[int] = Field(
        None, description="Seconds since start, only for the running entry"
    )

    @classmethod
    def from_entry(cls, entry, elapsed_seconds=None):  # type: ignore[no-untyped-def]
        """Create response from a core TimeEntry."""
        return cls(
            id=entry.id,
            task_id=entry.task_id,
            user_id=entry.user_id,
            project_id=entry.project_id,
            start_time=entry.start_time,
            end_time=entry.end_time,
            duration=entry.duration,
            description=entry.description,
            is_active=entry.is_active,
            elapsed_seconds=elapsed_seconds,
        )


class TimeLogResponse(BaseModel):
    """Response model for time log."""

    id: str
    task_id: str
    user_id: str
    project_id: str
    date: datetime
    hours: int
    minutes: int
    description: str = ""

    @classmethod
    def from_log(cls, time_log):  # type: ignore[no-untyped-def]
        """Create response from a core TimeLog."""
        return cls(
            id=time_log.id,
            task_id=time_log.task_id,
            user_id=time_log.user_id,
            project_id=time_log.project_id,
            date=time_log.date,
            hours=time_log.hours,
            minutes=time_log.minutes,
            description=time_log.description,
        )


# ============================================================================
# Request Models
# ============================================================================


class CreateProjectRequest(BaseModel):
    """Request model for creating a project."""

    name: str = Field(..., min_length=1, max_length=200, description="Project name")
    description: str = Field("", max_length=2000)
    status: ProjectStatus = ProjectStatus.ACTIVE


class UpdateProjectRequest(BaseModel):
    """Request model for a partial project update."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    status: Optional[ProjectStatus] = None


class CreateTaskRequest(BaseModel):
    """Request model for creating a task."""

    title: str = Field(..., min_length=1, max_length=500, description="Task title")
    project_id: str = Field(..., min_length=1, description="Owning project id")
    description: str = Field("", max_length=5000)
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None


class UpdateTaskRequest(BaseModel):
    """Request model for a partial task update."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    project_id: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None


class StartTimerRequest(BaseModel):
    """Request model for starting the timer."""

    task_id: str = Field(..., description="Task to track time against")
    description: str = Field(..., max_length=5000, description="What is being worked on")


class ManualEntryRequest(BaseModel):
    """Request model for logging a finished block of time as an entry."""

    task_id: str
    description: str = Field(..., max_length=5000)
    hours: int = Field(..., description="Whole hours (>= 0)")
    minutes: int = Field(..., description="Minutes (0-59)")


class UpdateTimeEntryRequest(BaseModel):
    """Request model for a partial time entry update."""

    description: Optional[str] = Field(None, max_length=5000)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0)


class CreateTimeLogRequest(BaseModel):
    """Request model for creating a time log."""

    task_id: str
    description: str = Field(..., max_length=5000)
    hours: int
    minutes: int
    date: Optional[datetime] = None


class UpdateTimeLogRequest(BaseModel):
    """Request model for a partial time log update."""

    description: Optional[str] = Field(None, max_length=5000)
    date: Optional[datetime] = None
    hours: Optional[int] = None
    minutes: Optional[int] = None


# ============================================================================
# Report Models
# ============================================================================


class HoursBucket(BaseModel):
    """Hours attributed to one label (project, task)."""

    name: str
    hours: float


class DayBucket(BaseModel):
    """Hours on one calendar day."""

    day: date
    hours: float


class ReportResponse(BaseModel):
    """Response model for a date-range report."""

    start: datetime
    end: datetime
    total_minutes: int
    total_hours: float
    entry_count: int
    by_project: list[HoursBucket] = Field(default_factory=list)
    by_day: list[DayBucket] = Field(default_factory=list)
    top_tasks: list[HoursBucket] = Field(default_factory=list)
    task_status: dict[str, int] = Field(default_factory=dict)


class DashboardResponse(BaseModel):
    """Response model for the dashboard."""

    hours_this_week: float
    active_projects: int
    pending_tasks: int
    completed_tasks: int
    recent_tasks: list[TaskResponse] = Field(default_factory=list)
    recent_entries: list[TimeEntryResponse] = Field(default_factory=list)


# ============================================================================
# System Models
# ============================================================================


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status (healthy, degraded, unhealthy)")
    timestamp: datetime = Field(..., description="Current server time")
    version: str = Field(..., description="API version")


class StatusResponse(BaseModel):
    """Response model for system status."""

    api_enabled: bool
    authentication_enabled: bool
    cors_enabled: bool
    user_id: str
    active_timer: bool
    uptime_seconds: float


class TokenResponse(BaseModel):
    """Response model for authentication token."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiry in seconds")


class ErrorResponse(BaseModel):
    """Response model for errors."""

    detail: str = Field(..., description="Error message")
    error_code: Optional[str] = Field(None, description="Machine-readable error code")
