"""Core data models for projects, tasks and time tracking."""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from tasktrack.core.errors import ValidationError


class ProjectStatus(Enum):
    """Lifecycle status of a project."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class TaskStatus(Enum):
    """Progress status of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskPriority(Enum):
    """Priority of a task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _coerce_enum(enum_cls: Any, value: Any, name: str) -> Any:
    """Convert a raw value to an enum member, rejecting unknown values."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {name} '{value}'. Expected one of: {allowed}")


def _require(value: Optional[str], name: str) -> None:
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} is required")


def local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an offset-aware datetime to naive local time.

    Records store and compare naive local times only. Naive values and
    None pass through unchanged.
    """
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return local_naive(value)
    return local_naive(datetime.fromisoformat(value))


def _parse_bool(value: Any) -> bool:
    # CSV round-trips booleans as "True"/"False"
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


def _parse_optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class UserContext:
    """Identity of the user on whose behalf an operation runs.

    Attributes:
        user_id: Owner identifier stored on every record
        email: Email address (optional)
        display_name: Human readable name (optional)
    """

    user_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None

    def __post_init__(self) -> None:
        _require(self.user_id, "user_id")


@dataclass
class Project:
    """Project owned by a single user.

    Attributes:
        id: Document identifier (assigned on create)
        name: Display name
        description: Free-form description
        created_by: Owner user id
        status: Lifecycle status
        created_at: Creation timestamp (assigned on create)
    """

    name: str
    created_by: str
    description: str = ""
    status: ProjectStatus = ProjectStatus.ACTIVE
    id: str = ""
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        _require(self.name, "name")
        _require(self.created_by, "created_by")
        self.created_at = local_naive(self.created_at)
        self.status = _coerce_enum(ProjectStatus, self.status, "project status")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for document storage."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
            "created_by": self.created_by,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        """Create Project from a stored document."""
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description") or "",
            created_by=data["created_by"],
            status=data.get("status") or ProjectStatus.ACTIVE.value,
            created_at=_parse_datetime(data.get("created_at")) or datetime.now(),
        )


@dataclass
class Task:
    """Task belonging to a project and assigned to its owner.

    Attributes:
        id: Document identifier (assigned on create)
        title: Short title
        description: Free-form description
        project_id: Project this task belongs to
        assigned_to: Owner user id
        status: Progress status
        priority: Priority
        created_at: Creation timestamp (assigned on create)
        due_date: Optional due date
    """

    title: str
    project_id: str
    assigned_to: str
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    id: str = ""
    created_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        _require(self.title, "title")
        _require(self.project_id, "project_id")
        _require(self.assigned_to, "assigned_to")
        self.created_at = local_naive(self.created_at)
        self.due_date = local_naive(self.due_date)
        self.status = _coerce_enum(TaskStatus, self.status, "task status")
        self.priority = _coerce_enum(TaskPriority, self.priority, "task priority")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for document storage."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description or "",
            "project_id": self.project_id,
            "assigned_to": self.assigned_to,
            "status": self.status.value,
            "priority": self.priority.value,
            "created_at": self.created_at.isoformat(),
            "due_date": self.due_date.isoformat() if self.due_date else "",
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Create Task from a stored document."""
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description") or "",
            project_id=data["project_id"],
            assigned_to=data["assigned_to"],
            status=data.get("status") or TaskStatus.PENDING.value,
            priority=data.get("priority") or TaskPriority.MEDIUM.value,
            created_at=_parse_datetime(data.get("created_at")) or datetime.now(),
            due_date=_parse_datetime(data.get("due_date")),
        )


@dataclass
class TimeEntry:
    """Timed work session on a task.

    An entry is open while ``is_active`` is set and has neither ``end_time``
    nor ``duration``. Closing it sets both; a closed entry never re-opens.

    Attributes:
        id: Document identifier (assigned on create)
        task_id: Task the time was spent on
        user_id: Owner user id
        project_id: Project of the task
        start_time: When the session started
        end_time: When the session ended (None while open)
        duration: Whole minutes (None while open)
        description: What was worked on
        is_active: Whether this is the user's running timer
    """

    task_id: str
    user_id: str
    project_id: str
    start_time: datetime
    description: str = ""
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    is_active: bool = False
    id: str = ""

    def __post_init__(self) -> None:
        _require(self.task_id, "task_id")
        _require(self.user_id, "user_id")
        self.start_time = local_naive(self.start_time)
        self.end_time = local_naive(self.end_time)
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValidationError("end_time must not be before start_time")
        if self.duration is not None and self.duration < 0:
            raise ValidationError("duration must not be negative")
        if self.is_active and (self.end_time is not None or self.duration is not None):
            raise ValidationError("An active entry cannot have an end_time or duration")

    @property
    def is_closed(self) -> bool:
        """Check if this entry has been stopped or was logged manually."""
        return not self.is_active and self.duration is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for document storage."""
        return {
            "id": self.id,
            "task_id": self.task_id,
            "user_id": self.user_id,
            "project_id": self.project_id or "",
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else "",
            "duration": self.duration if self.duration is not None else "",
            "description": self.description or "",
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeEntry":
        """Create TimeEntry from a stored document."""
        return cls(
            id=data["id"],
            task_id=data["task_id"],
            user_id=data["user_id"],
            project_id=data.get("project_id") or "",
            start_time=_parse_datetime(data.get("start_time")) or datetime.now(),
            end_time=_parse_datetime(data.get("end_time")),
            duration=_parse_optional_int(data.get("duration")),
            description=data.get("description") or "",
            is_active=_parse_bool(data.get("is_active", False)),
        )


@dataclass
class TimeLog:
    """Manually logged, already-closed block of time.

    Attributes:
        id: Document identifier (assigned on create)
        task_id: Task the time was spent on
        user_id: Owner user id
        project_id: Project of the task
        date: Day the work happened
        hours: Whole hours
        minutes: Minutes (0-59)
        description: What was worked on
    """

    task_id: str
    user_id: str
    project_id: str
    date: datetime
    hours: int = 0
    minutes: int = 0
    description: str = ""
    id: str = ""

    def __post_init__(self) -> None:
        _require(self.task_id, "task_id")
        _require(self.user_id, "user_id")
        self.date = local_naive(self.date)
        validate_hours_minutes(self.hours, self.minutes)

    @property
    def total_minutes(self) -> int:
        """Logged time in minutes."""
        return self.hours * 60 + self.minutes

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for document storage."""
        return {
            "id": self.id,
            "task_id": self.task_id,
            "user_id": self.user_id,
            "project_id": self.project_id or "",
            "date": self.date.isoformat(),
            "hours": self.hours,
            "minutes": self.minutes,
            "description": self.description or "",
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeLog":
        """Create TimeLog from a stored document."""
        return cls(
            id=data["id"],
            task_id=data["task_id"],
            user_id=data["user_id"],
            project_id=data.get("project_id") or "",
            date=_parse_datetime(data.get("date")) or datetime.now(),
            hours=int(data.get("hours") or 0),
            minutes=int(data.get("minutes") or 0),
            description=data.get("description") or "",
        )


def validate_hours_minutes(hours: int, minutes: int) -> None:
    """Validate a manually entered hours/minutes pair.

    Raises:
        ValidationError: If hours is negative or minutes is outside 0-59
    """
    if isinstance(hours, bool) or isinstance(minutes, bool):
        raise ValidationError("hours and minutes must be integers")
    if not isinstance(hours, int) or not isinstance(minutes, int):
        raise ValidationError("hours and minutes must be integers")
    if hours < 0:
        raise ValidationError("hours must not be negative")
    if minutes < 0 or minutes > 59:
        raise ValidationError("minutes must be between 0 and 59")


# Partial updates


class _Patch:
    """Mixin for optional-field update records."""

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were provided."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)  # type: ignore[arg-type]
            if getattr(self, f.name) is not None
        }

    def is_empty(self) -> bool:
        """Check if the patch carries no changes."""
        return not self.changes()


@dataclass
class ProjectPatch(_Patch):
    """Partial update for a project."""

    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None


@dataclass
class TaskPatch(_Patch):
    """Partial update for a task."""

    title: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None


@dataclass
class TimeEntryPatch(_Patch):
    """Partial update for a time entry."""

    task_id: Optional[str] = None
    project_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


@dataclass
class TimeLogPatch(_Patch):
    """Partial update for a time log."""

    task_id: Optional[str] = None
    project_id: Optional[str] = None
    date: Optional[datetime] = None
    hours: Optional[int] = None
    minutes: Optional[int] = None
    description: Optional[str] = None
