"""Task Track - project, task and time tracking."""

__version__ = "0.4.0"
