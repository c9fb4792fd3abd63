"""API endpoints.

This package contains all API endpoint routers organized by resource type.
Each module defines a FastAPI router that is included in the main application.

Available routers:
- system: Health checks and system status
- projects: Project management
- tasks: Task management
- entries: Timer control and time entry CRUD
- logs: Time log CRUD
- reports: Date-range summaries and the dashboard
"""

__all__ = ["system", "projects", "tasks", "entries", "logs", "reports"]

from tasktrack.api.endpoints import (  # noqa: F401
    entries,
    logs,
    projects,
    reports,
    system,
    tasks,
)
