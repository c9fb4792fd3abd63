"""Core functionality for time tracking."""

from tasktrack.core.models import Project, Task, TimeEntry, TimeLog, UserContext
from tasktrack.core.tracker import TimeTracker

__all__ = ["Project", "Task", "TimeEntry", "TimeLog", "UserContext", "TimeTracker"]
