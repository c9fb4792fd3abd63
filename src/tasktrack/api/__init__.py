"""REST API for Task Track.

This module provides a FastAPI-based REST API for projects, tasks, the
start/stop timer, manual time and reports. The API is disabled by default and
must be explicitly enabled in the configuration.

Usage:
    tasktrack config set api.enabled true
    tasktrack api token
    tasktrack api serve
"""

__all__ = ["create_app", "run_server"]

from tasktrack.api.server import create_app, run_server  # noqa: F401
