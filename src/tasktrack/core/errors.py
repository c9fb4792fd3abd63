"""Exception types raised by the core."""


class TaskTrackError(Exception):
    """Base class for all Task Track errors."""


class ValidationError(TaskTrackError, ValueError):
    """Input rejected before any write (missing field, bad range, bad status)."""


class NotFoundError(TaskTrackError, ValueError):
    """Record does not exist or belongs to another user."""


class ActiveEntryError(TaskTrackError, ValueError):
    """A timer is already running for the user."""


class EntryNotActiveError(TaskTrackError, ValueError):
    """Stop requested for an entry that is already closed."""


class StorageError(TaskTrackError, RuntimeError):
    """The document store could not be read or written."""
