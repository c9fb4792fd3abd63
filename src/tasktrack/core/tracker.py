"""Core time tracking engine."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from tasktrack.core.errors import (
    ActiveEntryError,
    EntryNotActiveError,
    NotFoundError,
    ValidationError,
)
from tasktrack.core.models import (
    Task,
    TimeEntry,
    TimeEntryPatch,
    TimeLog,
    UserContext,
    local_naive,
    validate_hours_minutes,
)
from tasktrack.core.storage import StorageManager

logger = logging.getLogger(__name__)


def elapsed(entry: TimeEntry, now: datetime) -> int:
    """Whole seconds since the entry started.

    Used for live display of a running timer; nothing is persisted.

    Args:
        entry: Time entry
        now: Reference time

    Returns:
        Elapsed seconds, floored and never negative
    """
    seconds = (now - entry.start_time).total_seconds()
    return max(0, int(seconds // 1))


def duration_minutes(start_time: datetime, end_time: datetime) -> int:
    """Whole minutes between two times, floored."""
    return int((end_time - start_time).total_seconds() // 60)


class TimeTracker:
    """Timer lifecycle on top of the storage gateway.

    At most one entry per user is active. The check is a read of the active
    entry followed by a separate write, so two trackers starting a timer for
    the same user at the same moment can both succeed.
    """

    def __init__(
        self,
        storage: Optional[StorageManager] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize time tracker.

        Args:
            storage: Storage manager instance. Creates default if None.
            clock: Callable returning the current time. Defaults to datetime.now
        """
        self.storage = storage or StorageManager()
        self.clock = clock or datetime.now

    def _owned_task(self, user: UserContext, task_id: str) -> Task:
        task = self.storage.get_task(task_id)
        if task is None or task.assigned_to != user.user_id:
            raise ValidationError(f"Task not found: {task_id}")
        return task

    def _owned_entry(self, user: UserContext, entry_id: str) -> TimeEntry:
        entry = self.storage.get_time_entry(entry_id)
        if entry is None or entry.user_id != user.user_id:
            raise NotFoundError(f"Time entry not found: {entry_id}")
        return entry

    def start_timer(self, user: UserContext, task_id: str, description: str) -> TimeEntry:
        """Start a timer on a task.

        Args:
            user: User starting the timer
            task_id: Task to track time against
            description: What is being worked on

        Returns:
            Created active entry

        Raises:
            ValidationError: If task or description is missing, or task is unknown
            ActiveEntryError: If the user already has an active entry
        """
        if not task_id or not description or not description.strip():
            logger.warning(f"Rejected timer start for {user.user_id}: missing task or description")
            raise ValidationError("Please select a task and enter a description")

        current = self.storage.get_active_time_entry(user.user_id)
        if current:
            logger.warning(f"Rejected timer start for {user.user_id}: {current.id} is active")
            raise ActiveEntryError(
                f"Timer already running: {current.description}. Stop it first."
            )

        task = self._owned_task(user, task_id)

        entry = TimeEntry(
            task_id=task.id,
            user_id=user.user_id,
            project_id=task.project_id,
            start_time=self.clock(),
            description=description.strip(),
            is_active=True,
        )
        self.storage.create_time_entry(entry)

        logger.info(f"Started timer {entry.id} for {user.user_id} on task {task.id}")
        return entry

    def stop_timer(self, user: UserContext, entry_id: str) -> TimeEntry:
        """Stop an active entry and record its duration.

        Args:
            user: Owner of the entry
            entry_id: Entry to stop

        Returns:
            Closed entry

        Raises:
            NotFoundError: If the entry does not exist or is not owned by user
            EntryNotActiveError: If the entry is already closed
        """
        entry = self._owned_entry(user, entry_id)
        if not entry.is_active:
            logger.warning(f"Rejected stop of closed entry {entry_id}")
            raise EntryNotActiveError(f"Time entry {entry_id} is not running")

        end_time = self.clock()
        stopped = self.storage.update_time_entry(
            entry_id,
            TimeEntryPatch(
                end_time=end_time,
                duration=duration_minutes(entry.start_time, end_time),
                is_active=False,
            ),
        )

        logger.info(f"Stopped timer {entry_id} after {stopped.duration} min")
        return stopped

    def update_entry(
        self, user: UserContext, entry_id: str, patch: TimeEntryPatch
    ) -> TimeEntry:
        """Correct one of the user's entries.

        A stopped timer entry keeps its duration derived from its times:
        changing either time recomputes it, and an explicit duration must
        agree with the times. A manual entry has no span, so only its
        duration can change. A running entry only accepts a new description.

        Args:
            user: Owner of the entry
            entry_id: Entry to correct
            patch: Fields to change

        Returns:
            Updated entry

        Raises:
            NotFoundError: If the entry does not exist or is not owned by user
            ValidationError: If the change would break the entry's duration
        """
        entry = self._owned_entry(user, entry_id)
        start = local_naive(patch.start_time)
        end = local_naive(patch.end_time)
        changes_time = start is not None or end is not None

        if entry.is_active:
            if changes_time or patch.duration is not None:
                logger.warning(f"Rejected time change on running entry {entry_id}")
                raise ValidationError("A running entry can only change its description")
        elif entry.end_time is None or entry.end_time == entry.start_time:
            if changes_time:
                logger.warning(f"Rejected time change on manual entry {entry_id}")
                raise ValidationError("Manual entries have no span; change the duration instead")
        elif changes_time or patch.duration is not None:
            new_start = start or entry.start_time
            new_end = end or entry.end_time
            if new_end < new_start:
                raise ValidationError("end_time must not be before start_time")
            derived = duration_minutes(new_start, new_end)
            if patch.duration is not None and patch.duration != derived:
                raise ValidationError(
                    f"duration {patch.duration} does not match the entry's times ({derived} min)"
                )
            patch = replace(patch, start_time=start, end_time=end, duration=derived)

        updated = self.storage.update_time_entry(entry_id, patch)
        logger.info(f"Updated entry {entry_id}")
        return updated

    def active_entry(self, user: UserContext) -> Optional[TimeEntry]:
        """Get the user's running entry, if any."""
        return self.storage.get_active_time_entry(user.user_id)

    def log_manual_entry(
        self,
        user: UserContext,
        task_id: str,
        description: str,
        hours: int,
        minutes: int,
    ) -> TimeEntry:
        """Record already-finished work as a closed entry.

        The entry only carries the duration; start and end are both set to
        the time of logging.

        Args:
            user: User logging the time
            task_id: Task the time was spent on
            description: What was worked on
            hours: Whole hours (>= 0)
            minutes: Minutes (0-59)

        Returns:
            Created closed entry

        Raises:
            ValidationError: If any field is missing or out of range
        """
        if not task_id or not description or not description.strip():
            raise ValidationError("Please fill in all fields")
        validate_hours_minutes(hours, minutes)
        task = self._owned_task(user, task_id)

        now = self.clock()
        entry = TimeEntry(
            task_id=task.id,
            user_id=user.user_id,
            project_id=task.project_id,
            start_time=now,
            end_time=now,
            duration=hours * 60 + minutes,
            description=description.strip(),
            is_active=False,
        )
        self.storage.create_time_entry(entry)

        logger.info(f"Logged manual entry {entry.id} ({entry.duration} min) for {user.user_id}")
        return entry

    def log_time(
        self,
        user: UserContext,
        task_id: str,
        description: str,
        hours: int,
        minutes: int,
        date: Optional[datetime] = None,
    ) -> TimeLog:
        """Record work as a time log instead of a time entry.

        Raises:
            ValidationError: If any field is missing or out of range
        """
        if not task_id or not description or not description.strip():
            raise ValidationError("Please fill in all fields")
        validate_hours_minutes(hours, minutes)
        task = self._owned_task(user, task_id)

        time_log = TimeLog(
            task_id=task.id,
            user_id=user.user_id,
            project_id=task.project_id,
            date=date or self.clock(),
            hours=hours,
            minutes=minutes,
            description=description.strip(),
        )
        self.storage.create_time_log(time_log)

        logger.info(f"Logged {time_log.total_minutes} min as time log {time_log.id}")
        return time_log

    def get_entries(
        self,
        user: UserContext,
        task_id: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[TimeEntry]:
        """Get the user's entries, newest first."""
        entries = self.storage.get_time_entries(user.user_id, task_id=task_id)
        if limit:
            entries = entries[:limit]
        return entries

    def delete_entry(self, user: UserContext, entry_id: str) -> bool:
        """Delete one of the user's entries.

        Returns:
            True if deleted, False if not found or not owned
        """
        entry = self.storage.get_time_entry(entry_id)
        if entry is None or entry.user_id != user.user_id:
            return False
        return self.storage.delete_time_entry(entry_id)
