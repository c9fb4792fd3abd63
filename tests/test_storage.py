"""Tests for storage manager."""

import tempfile
from datetime import datetime
from pathlib import Path

import pytest  # type: ignore[import-not-found]

from tasktrack.core.errors import NotFoundError, StorageError, ValidationError
from tasktrack.core.models import (
    Project,
    ProjectPatch,
    ProjectStatus,
    Task,
    TaskPatch,
    TaskStatus,
    TimeEntry,
    TimeEntryPatch,
    TimeLog,
    TimeLogPatch,
)
from tasktrack.core.storage import StorageManager


@pytest.fixture  # type: ignore[misc]
def temp_storage() -> StorageManager:
    """Create a storage manager with temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = StorageManager(Path(tmpdir) / "data")
        yield storage


def _entry(start: datetime, user_id: str = "alice", **kwargs) -> TimeEntry:  # type: ignore[no-untyped-def]
    return TimeEntry(task_id="t1", user_id=user_id, project_id="p1", start_time=start, **kwargs)


class TestStorageManager:
    """Test StorageManager setup."""

    def test_initialization_creates_csv_files(self, temp_storage: StorageManager) -> None:
        """Test that initialization creates collection files with headers."""
        for path in (
            temp_storage.projects_file,
            temp_storage.tasks_file,
            temp_storage.time_entries_file,
            temp_storage.time_logs_file,
        ):
            assert path.exists()

        with open(temp_storage.time_entries_file) as f:
            header = f.readline().strip()
        assert header.startswith("id,task_id,user_id")

    def test_backup(self, temp_storage: StorageManager) -> None:
        """Test that backups copy every collection."""
        temp_storage.create_project(Project(name="Website", created_by="alice"))

        backup_path = temp_storage.backup("before-upgrade")

        assert backup_path == temp_storage.backup_dir / "before-upgrade"
        assert (backup_path / "projects.csv").exists()
        assert "Website" in (backup_path / "projects.csv").read_text()

    def test_unreadable_data_dir(self, tmp_path: Path) -> None:
        """Test that a data directory blocked by a file raises StorageError."""
        blocker = tmp_path / "data"
        blocker.write_text("not a directory")

        with pytest.raises(StorageError):
            StorageManager(blocker)

    def test_read_failure_is_wrapped(self, temp_storage: StorageManager) -> None:
        """Test that a collection path that cannot be opened raises StorageError."""
        temp_storage.tasks_file.unlink()
        temp_storage.tasks_file.mkdir()

        with pytest.raises(StorageError, match="tasks.csv"):
            temp_storage.get_tasks()


class TestProjects:
    """Test project operations."""

    def test_create_and_get(self, temp_storage: StorageManager) -> None:
        """Test create-then-read round trip."""
        project = Project(name="Website", created_by="alice", description="Relaunch")

        project_id = temp_storage.create_project(project)
        loaded = temp_storage.get_project(project_id)

        assert project_id
        assert project.id == project_id
        assert loaded == project

    def test_ids_are_unique(self, temp_storage: StorageManager) -> None:
        """Test that every create assigns a new id."""
        first = temp_storage.create_project(Project(name="A", created_by="alice"))
        second = temp_storage.create_project(Project(name="B", created_by="alice"))
        assert first != second

    def test_get_missing(self, temp_storage: StorageManager) -> None:
        """Test that unknown ids give None."""
        assert temp_storage.get_project("missing") is None

    def test_get_projects_filters_by_owner(self, temp_storage: StorageManager) -> None:
        """Test that only the user's projects are returned."""
        temp_storage.create_project(Project(name="Mine", created_by="alice"))
        temp_storage.create_project(Project(name="Theirs", created_by="bob"))

        projects = temp_storage.get_projects("alice")

        assert [p.name for p in projects] == ["Mine"]

    def test_update_merges_patch(self, temp_storage: StorageManager) -> None:
        """Test that unset patch fields are left alone."""
        project = Project(name="Website", created_by="alice", description="Relaunch")
        temp_storage.create_project(project)

        updated = temp_storage.update_project(
            project.id, ProjectPatch(status=ProjectStatus.COMPLETED)
        )

        assert updated.status == ProjectStatus.COMPLETED
        assert updated.name == "Website"
        assert updated.description == "Relaunch"
        assert temp_storage.get_project(project.id) == updated

    def test_update_missing(self, temp_storage: StorageManager) -> None:
        """Test that updating an unknown id raises NotFoundError."""
        with pytest.raises(NotFoundError):
            temp_storage.update_project("missing", ProjectPatch(name="X"))

    def test_invalid_update_writes_nothing(self, temp_storage: StorageManager) -> None:
        """Test that a patch breaking validation is rejected before writing."""
        project = Project(name="Website", created_by="alice")
        temp_storage.create_project(project)

        with pytest.raises(ValidationError):
            temp_storage.update_project(project.id, ProjectPatch(name="  "))

        assert temp_storage.get_project(project.id).name == "Website"  # type: ignore[union-attr]

    def test_delete(self, temp_storage: StorageManager) -> None:
        """Test deleting a project."""
        project_id = temp_storage.create_project(Project(name="Website", created_by="alice"))

        assert temp_storage.delete_project(project_id) is True
        assert temp_storage.get_project(project_id) is None
        assert temp_storage.delete_project(project_id) is False


class TestTasks:
    """Test task operations."""

    def test_filters(self, temp_storage: StorageManager) -> None:
        """Test filtering by project and assignee."""
        temp_storage.create_task(Task(title="A", project_id="p1", assigned_to="alice"))
        temp_storage.create_task(Task(title="B", project_id="p2", assigned_to="alice"))
        temp_storage.create_task(Task(title="C", project_id="p1", assigned_to="bob"))

        assert len(temp_storage.get_tasks()) == 3
        assert {t.title for t in temp_storage.get_tasks(project_id="p1")} == {"A", "C"}
        assert {t.title for t in temp_storage.get_tasks(user_id="alice")} == {"A", "B"}
        assert [t.title for t in temp_storage.get_tasks("p1", "alice")] == ["A"]

    def test_update_status(self, temp_storage: StorageManager) -> None:
        """Test a status change through a patch."""
        task = Task(title="A", project_id="p1", assigned_to="alice")
        temp_storage.create_task(task)

        updated = temp_storage.update_task(task.id, TaskPatch(status=TaskStatus.IN_PROGRESS))

        assert updated.status == TaskStatus.IN_PROGRESS
        assert updated.title == "A"

    def test_delete(self, temp_storage: StorageManager) -> None:
        """Test deleting a task."""
        task_id = temp_storage.create_task(Task(title="A", project_id="p1", assigned_to="alice"))
        assert temp_storage.delete_task(task_id) is True
        assert temp_storage.get_task(task_id) is None


class TestTimeEntries:
    """Test time entry operations."""

    def test_round_trip(self, temp_storage: StorageManager) -> None:
        """Test create-then-read keeps every field."""
        entry = _entry(
            datetime(2025, 11, 16, 10, 0),
            end_time=datetime(2025, 11, 16, 10, 45),
            duration=45,
            description="Drafting",
        )

        temp_storage.create_time_entry(entry)

        assert temp_storage.get_time_entry(entry.id) == entry

    def test_sorted_newest_first(self, temp_storage: StorageManager) -> None:
        """Test entries come back by start time descending."""
        for hour in (9, 14, 11):
            temp_storage.create_time_entry(
                _entry(datetime(2025, 11, 16, hour, 0), duration=10, end_time=datetime(2025, 11, 16, hour, 10))
            )

        entries = temp_storage.get_time_entries("alice")

        assert [e.start_time.hour for e in entries] == [14, 11, 9]

    def test_filter_by_user_and_task(self, temp_storage: StorageManager) -> None:
        """Test user and task filters."""
        temp_storage.create_time_entry(_entry(datetime(2025, 11, 16, 9, 0), duration=5))
        temp_storage.create_time_entry(_entry(datetime(2025, 11, 16, 9, 0), user_id="bob", duration=5))
        other_task = TimeEntry(
            task_id="t2",
            user_id="alice",
            project_id="p1",
            start_time=datetime(2025, 11, 16, 10, 0),
            duration=5,
        )
        temp_storage.create_time_entry(other_task)

        assert len(temp_storage.get_time_entries("alice")) == 2
        assert [e.id for e in temp_storage.get_time_entries("alice", task_id="t2")] == [other_task.id]

    def test_active_entry(self, temp_storage: StorageManager) -> None:
        """Test finding the user's running entry."""
        temp_storage.create_time_entry(_entry(datetime(2025, 11, 16, 8, 0), duration=30))
        running = _entry(datetime(2025, 11, 16, 9, 0), is_active=True)
        temp_storage.create_time_entry(running)

        assert temp_storage.get_active_time_entry("alice") == running
        assert temp_storage.get_active_time_entry("bob") is None

    def test_close_through_patch(self, temp_storage: StorageManager) -> None:
        """Test closing an entry with a patch."""
        running = _entry(datetime(2025, 11, 16, 9, 0), is_active=True)
        temp_storage.create_time_entry(running)

        closed = temp_storage.update_time_entry(
            running.id,
            TimeEntryPatch(end_time=datetime(2025, 11, 16, 9, 30), duration=30, is_active=False),
        )

        assert closed.is_active is False
        assert closed.duration == 30
        assert temp_storage.get_active_time_entry("alice") is None

    def test_delete(self, temp_storage: StorageManager) -> None:
        """Test deleting an entry."""
        entry = _entry(datetime(2025, 11, 16, 9, 0), duration=5)
        temp_storage.create_time_entry(entry)

        assert temp_storage.delete_time_entry(entry.id) is True
        assert temp_storage.get_time_entries("alice") == []


class TestTimeLogs:
    """Test time log operations."""

    @pytest.fixture  # type: ignore[misc]
    def logs(self, temp_storage: StorageManager) -> list[TimeLog]:
        """Store logs on three different days."""
        created = []
        for day in (3, 10, 20):
            time_log = TimeLog(
                task_id="t1",
                user_id="alice",
                project_id="p1",
                date=datetime(2025, 11, day),
                hours=1,
            )
            temp_storage.create_time_log(time_log)
            created.append(time_log)
        return created

    def test_sorted_newest_first(self, temp_storage: StorageManager, logs: list[TimeLog]) -> None:
        """Test logs come back by date descending."""
        days = [log.date.day for log in temp_storage.get_time_logs("alice")]
        assert days == [20, 10, 3]

    def test_range_is_inclusive(self, temp_storage: StorageManager, logs: list[TimeLog]) -> None:
        """Test that both bounds are included."""
        found = temp_storage.get_time_logs(
            "alice", start_date=datetime(2025, 11, 3), end_date=datetime(2025, 11, 10)
        )
        assert [log.date.day for log in found] == [10, 3]

    def test_single_bound_is_ignored(self, temp_storage: StorageManager, logs: list[TimeLog]) -> None:
        """Test that a range needs both bounds."""
        found = temp_storage.get_time_logs("alice", start_date=datetime(2025, 11, 15))
        assert len(found) == 3

    def test_update(self, temp_storage: StorageManager, logs: list[TimeLog]) -> None:
        """Test a partial log update."""
        updated = temp_storage.update_time_log(logs[0].id, TimeLogPatch(minutes=45))

        assert updated.hours == 1
        assert updated.minutes == 45
        assert updated.total_minutes == 105

    def test_delete(self, temp_storage: StorageManager, logs: list[TimeLog]) -> None:
        """Test deleting a log."""
        assert temp_storage.delete_time_log(logs[0].id) is True
        assert temp_storage.get_time_log(logs[0].id) is None
