"""CSV document storage with atomic operations.

Each record type lives in its own collection file. A collection is a CSV file
with one row per document; every write rewrites the file through a temporary
file and an atomic rename while holding an exclusive lock.
"""

import csv
import logging
import os
import shutil
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional
from uuid import uuid4

from tasktrack.core.errors import NotFoundError, StorageError
from tasktrack.core.models import (
    Project,
    ProjectPatch,
    Task,
    TaskPatch,
    TimeEntry,
    TimeEntryPatch,
    TimeLog,
    TimeLogPatch,
)

logger = logging.getLogger(__name__)

PROJECT_FIELDS = ["id", "name", "description", "created_by", "status", "created_at"]
TASK_FIELDS = [
    "id",
    "title",
    "description",
    "project_id",
    "assigned_to",
    "status",
    "priority",
    "created_at",
    "due_date",
]
TIME_ENTRY_FIELDS = [
    "id",
    "task_id",
    "user_id",
    "project_id",
    "start_time",
    "end_time",
    "duration",
    "description",
    "is_active",
]
TIME_LOG_FIELDS = [
    "id",
    "task_id",
    "user_id",
    "project_id",
    "date",
    "hours",
    "minutes",
    "description",
]


def _lock_file(file_obj: Any, exclusive: bool = True) -> None:
    """Lock a file in a cross-platform way.

    Args:
        file_obj: File object to lock
        exclusive: If True, acquire exclusive lock; if False, acquire shared lock
    """
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        mode = msvcrt.LK_NBLCK if exclusive else msvcrt.LK_NBRLCK
        msvcrt.locking(file_obj.fileno(), mode, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(file_obj.fileno(), mode)


def _unlock_file(file_obj: Any) -> None:
    """Unlock a file in a cross-platform way."""
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        msvcrt.locking(file_obj.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        fcntl.flock(file_obj.fileno(), fcntl.LOCK_UN)


class StorageManager:
    """Persistence gateway between typed records and CSV document collections."""

    def __init__(self, data_dir: Optional[Path] = None):
        """Initialize storage manager.

        Args:
            data_dir: Custom data directory. Defaults to ~/.tasktrack/data
        """
        if data_dir is None:
            data_dir = Path.home() / ".tasktrack" / "data"

        self.data_dir = Path(data_dir)
        self.projects_file = self.data_dir / "projects.csv"
        self.tasks_file = self.data_dir / "tasks.csv"
        self.time_entries_file = self.data_dir / "time_entries.csv"
        self.time_logs_file = self.data_dir / "time_logs.csv"
        self.backup_dir = self.data_dir.parent / "backups"

        self._collections: dict[Path, list[str]] = {
            self.projects_file: PROJECT_FIELDS,
            self.tasks_file: TASK_FIELDS,
            self.time_entries_file: TIME_ENTRY_FIELDS,
            self.time_logs_file: TIME_LOG_FIELDS,
        }

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory {self.data_dir}: {e}") from e

        self._initialize_files()

    def _initialize_files(self) -> None:
        """Create collection files with headers if they don't exist."""
        for file_path, fieldnames in self._collections.items():
            if not file_path.exists():
                self._write_csv_atomic(file_path, fieldnames, [])

    def _write_csv_atomic(
        self, file_path: Path, fieldnames: list[str], rows: list[dict[str, Any]]
    ) -> None:
        """Write CSV file atomically using temporary file and rename.

        Args:
            file_path: Target file path
            fieldnames: CSV field names
            rows: List of row dictionaries

        Raises:
            StorageError: If the file cannot be written
        """
        temp_file = file_path.with_suffix(".tmp")

        try:
            with open(temp_file, "w", newline="", encoding="utf-8") as f:
                _lock_file(f, exclusive=True)

                writer = csv.DictWriter(f, fieldnames=fieldnames)
                writer.writeheader()
                writer.writerows(rows)

                f.flush()
                os.fsync(f.fileno())

                _unlock_file(f)

            temp_file.replace(file_path)

        except (OSError, csv.Error) as e:
            if temp_file.exists():
                temp_file.unlink()
            raise StorageError(f"Failed to write {file_path.name}: {e}") from e

    def _read_csv(self, file_path: Path) -> list[dict[str, Any]]:
        """Read CSV file with locking.

        Args:
            file_path: CSV file to read

        Returns:
            List of row dictionaries

        Raises:
            StorageError: If the file cannot be read
        """
        if not file_path.exists():
            return []

        try:
            with open(file_path, encoding="utf-8") as f:
                _lock_file(f, exclusive=False)

                try:
                    reader = csv.DictReader(f)
                    rows = list(reader)
                finally:
                    _unlock_file(f)
        except (OSError, csv.Error) as e:
            raise StorageError(f"Failed to read {file_path.name}: {e}") from e

        return rows

    def backup(self, label: Optional[str] = None) -> Path:
        """Create backup of all collection files.

        Args:
            label: Optional label for backup. Defaults to timestamp

        Returns:
            Path to backup directory
        """
        if label is None:
            label = datetime.now().strftime("%Y%m%d_%H%M%S")

        backup_path = self.backup_dir / label
        try:
            backup_path.mkdir(parents=True, exist_ok=True)
            for file in self._collections:
                if file.exists():
                    shutil.copy2(file, backup_path / file.name)
        except OSError as e:
            raise StorageError(f"Backup failed: {e}") from e

        logger.info(f"Backup written to {backup_path}")
        return backup_path

    # Generic document operations

    def _add_document(self, file_path: Path, document: dict[str, Any]) -> str:
        """Append a document with a freshly generated id.

        Returns:
            Generated document id
        """
        rows = self._read_csv(file_path)
        doc_id = uuid4().hex
        document["id"] = doc_id
        rows.append(document)
        self._write_csv_atomic(file_path, self._collections[file_path], rows)
        logger.debug(f"Created {file_path.stem}/{doc_id}")
        return doc_id

    def _get_document(self, file_path: Path, doc_id: str) -> Optional[dict[str, Any]]:
        for row in self._read_csv(file_path):
            if row["id"] == doc_id:
                return row
        return None

    def _update_document(
        self,
        file_path: Path,
        doc_id: str,
        merge: Callable[[dict[str, Any]], dict[str, Any]],
    ) -> dict[str, Any]:
        """Replace one document with the result of merging changes into it.

        Raises:
            NotFoundError: If no document has the given id
        """
        rows = self._read_csv(file_path)
        for i, row in enumerate(rows):
            if row["id"] == doc_id:
                rows[i] = merge(row)
                self._write_csv_atomic(file_path, self._collections[file_path], rows)
                logger.debug(f"Updated {file_path.stem}/{doc_id}")
                return rows[i]
        raise NotFoundError(f"No document {doc_id} in {file_path.stem}")

    def _delete_document(self, file_path: Path, doc_id: str) -> bool:
        rows = self._read_csv(file_path)
        remaining = [r for r in rows if r["id"] != doc_id]
        if len(remaining) == len(rows):
            return False
        self._write_csv_atomic(file_path, self._collections[file_path], remaining)
        logger.debug(f"Deleted {file_path.stem}/{doc_id}")
        return True

    def _update_record(
        self, file_path: Path, record_cls: Any, doc_id: str, changes: dict[str, Any]
    ) -> Any:
        """Merge patch changes into a stored record and return the result.

        The merged record is rebuilt through the dataclass, so the record
        invariants are re-checked before anything is written.
        """

        def merge(row: dict[str, Any]) -> dict[str, Any]:
            merged = replace(record_cls.from_dict(row), **changes)
            return dict(merged.to_dict())

        return record_cls.from_dict(self._update_document(file_path, doc_id, merge))

    # Project operations

    def create_project(self, project: Project) -> str:
        """Create a project; the creation timestamp is assigned here.

        Args:
            project: Project to store (its id is ignored)

        Returns:
            Generated project id
        """
        project.created_at = datetime.now()
        project.id = self._add_document(self.projects_file, project.to_dict())
        return project.id

    def get_project(self, project_id: str) -> Optional[Project]:
        """Get project by ID."""
        row = self._get_document(self.projects_file, project_id)
        return Project.from_dict(row) if row else None

    def get_projects(self, user_id: str) -> list[Project]:
        """Get all projects created by a user, newest first."""
        rows = [r for r in self._read_csv(self.projects_file) if r["created_by"] == user_id]
        projects = [Project.from_dict(r) for r in rows]
        projects.sort(key=lambda p: p.created_at, reverse=True)
        return projects

    def update_project(self, project_id: str, patch: ProjectPatch) -> Project:
        """Merge a partial update into a project.

        Raises:
            NotFoundError: If the project does not exist
        """
        project: Project = self._update_record(
            self.projects_file, Project, project_id, patch.changes()
        )
        return project

    def delete_project(self, project_id: str) -> bool:
        """Delete a project. Tasks and entries referencing it are left in place."""
        return self._delete_document(self.projects_file, project_id)

    # Task operations

    def create_task(self, task: Task) -> str:
        """Create a task; the creation timestamp is assigned here."""
        task.created_at = datetime.now()
        task.id = self._add_document(self.tasks_file, task.to_dict())
        return task.id

    def get_task(self, task_id: str) -> Optional[Task]:
        """Get task by ID."""
        row = self._get_document(self.tasks_file, task_id)
        return Task.from_dict(row) if row else None

    def get_tasks(
        self, project_id: Optional[str] = None, user_id: Optional[str] = None
    ) -> list[Task]:
        """Get tasks, optionally filtered by project and assignee, newest first."""
        rows = self._read_csv(self.tasks_file)
        if project_id:
            rows = [r for r in rows if r["project_id"] == project_id]
        if user_id:
            rows = [r for r in rows if r["assigned_to"] == user_id]
        tasks = [Task.from_dict(r) for r in rows]
        tasks.sort(key=lambda t: t.created_at, reverse=True)
        return tasks

    def update_task(self, task_id: str, patch: TaskPatch) -> Task:
        """Merge a partial update into a task.

        Raises:
            NotFoundError: If the task does not exist
        """
        task: Task = self._update_record(self.tasks_file, Task, task_id, patch.changes())
        return task

    def delete_task(self, task_id: str) -> bool:
        """Delete a task."""
        return self._delete_document(self.tasks_file, task_id)

    # Time entry operations

    def create_time_entry(self, entry: TimeEntry) -> str:
        """Create a time entry."""
        entry.id = self._add_document(self.time_entries_file, entry.to_dict())
        return entry.id

    def get_time_entry(self, entry_id: str) -> Optional[TimeEntry]:
        """Get time entry by ID."""
        row = self._get_document(self.time_entries_file, entry_id)
        return TimeEntry.from_dict(row) if row else None

    def get_time_entries(self, user_id: str, task_id: Optional[str] = None) -> list[TimeEntry]:
        """Get a user's time entries, newest first.

        Args:
            user_id: Owner user id
            task_id: Restrict to entries for this task

        Returns:
            Entries sorted by start time descending
        """
        rows = [r for r in self._read_csv(self.time_entries_file) if r["user_id"] == user_id]
        if task_id:
            rows = [r for r in rows if r["task_id"] == task_id]
        entries = [TimeEntry.from_dict(r) for r in rows]
        entries.sort(key=lambda e: e.start_time, reverse=True)
        return entries

    def get_active_time_entry(self, user_id: str) -> Optional[TimeEntry]:
        """Get the user's active time entry, if any."""
        for row in self._read_csv(self.time_entries_file):
            if row["user_id"] == user_id:
                entry = TimeEntry.from_dict(row)
                if entry.is_active:
                    return entry
        return None

    def update_time_entry(self, entry_id: str, patch: TimeEntryPatch) -> TimeEntry:
        """Merge a partial update into a time entry.

        Raises:
            NotFoundError: If the entry does not exist
        """
        entry: TimeEntry = self._update_record(
            self.time_entries_file, TimeEntry, entry_id, patch.changes()
        )
        return entry

    def delete_time_entry(self, entry_id: str) -> bool:
        """Delete a time entry."""
        return self._delete_document(self.time_entries_file, entry_id)

    # Time log operations

    def create_time_log(self, time_log: TimeLog) -> str:
        """Create a time log."""
        time_log.id = self._add_document(self.time_logs_file, time_log.to_dict())
        return time_log.id

    def get_time_log(self, log_id: str) -> Optional[TimeLog]:
        """Get time log by ID."""
        row = self._get_document(self.time_logs_file, log_id)
        return TimeLog.from_dict(row) if row else None

    def get_time_logs(
        self,
        user_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[TimeLog]:
        """Get a user's time logs, newest first.

        The date range is only applied when both bounds are given; both
        bounds are inclusive.
        """
        rows = [r for r in self._read_csv(self.time_logs_file) if r["user_id"] == user_id]
        logs = [TimeLog.from_dict(r) for r in rows]
        logs.sort(key=lambda log: log.date, reverse=True)

        if start_date and end_date:
            logs = [log for log in logs if start_date <= log.date <= end_date]

        return logs

    def update_time_log(self, log_id: str, patch: TimeLogPatch) -> TimeLog:
        """Merge a partial update into a time log.

        Raises:
            NotFoundError: If the log does not exist
        """
        time_log: TimeLog = self._update_record(
            self.time_logs_file, TimeLog, log_id, patch.changes()
        )
        return time_log

    def delete_time_log(self, log_id: str) -> bool:
        """Delete a time log."""
        return self._delete_document(self.time_logs_file, log_id)
