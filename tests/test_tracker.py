"""Tests for time tracker."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from tasktrack.core.errors import (
    ActiveEntryError,
    EntryNotActiveError,
    NotFoundError,
    ValidationError,
)
from tasktrack.core.models import Project, Task, TimeEntry, TimeEntryPatch, UserContext
from tasktrack.core.storage import StorageManager
from tasktrack.core.tracker import TimeTracker, duration_minutes, elapsed

T0 = datetime(2025, 11, 16, 10, 0, 0)


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: int) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def storage() -> StorageManager:
    """Create a storage manager with temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield StorageManager(Path(tmpdir))


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at T0."""
    return FakeClock(T0)


@pytest.fixture
def tracker(storage: StorageManager, clock: FakeClock) -> TimeTracker:
    """Create a time tracker on temporary storage with a fake clock."""
    return TimeTracker(storage, clock=clock)


@pytest.fixture
def user() -> UserContext:
    return UserContext(user_id="alice")


@pytest.fixture
def task(storage: StorageManager, user: UserContext) -> Task:
    """A task in a project owned by the user."""
    project = Project(name="Website", created_by=user.user_id)
    storage.create_project(project)
    new_task = Task(title="Write copy", project_id=project.id, assigned_to=user.user_id)
    storage.create_task(new_task)
    return new_task


class TestElapsedAndDuration:
    """Test the time arithmetic helpers."""

    def test_elapsed_floors_to_seconds(self) -> None:
        """Test elapsed seconds are whole and floored."""
        entry = TimeEntry(
            task_id="t1", user_id="alice", project_id="p1", start_time=T0, is_active=True
        )
        assert elapsed(entry, T0 + timedelta(seconds=65, milliseconds=900)) == 65

    def test_elapsed_never_negative(self) -> None:
        """Test a clock behind the start time gives zero."""
        entry = TimeEntry(
            task_id="t1", user_id="alice", project_id="p1", start_time=T0, is_active=True
        )
        assert elapsed(entry, T0 - timedelta(seconds=5)) == 0

    @pytest.mark.parametrize(
        "seconds,minutes", [(0, 0), (59, 0), (60, 1), (65, 1), (3599, 59), (5400, 90)]
    )
    def test_duration_floors_to_minutes(self, seconds: int, minutes: int) -> None:
        """Test duration is floor((end - start) / 60s)."""
        assert duration_minutes(T0, T0 + timedelta(seconds=seconds)) == minutes


class TestTimeTracker:
    """Test TimeTracker functionality."""

    def test_start_timer(self, tracker: TimeTracker, user: UserContext, task: Task) -> None:
        """Test starting the timer."""
        entry = tracker.start_timer(user, task.id, "  Drafting  ")

        assert entry.id
        assert entry.is_active is True
        assert entry.start_time == T0
        assert entry.end_time is None
        assert entry.duration is None
        assert entry.description == "Drafting"
        assert entry.project_id == task.project_id
        assert tracker.active_entry(user) == entry

    def test_start_then_stop_after_65_seconds(
        self, tracker: TimeTracker, clock: FakeClock, user: UserContext, task: Task
    ) -> None:
        """Test elapsed and duration for a 65 second session."""
        entry = tracker.start_timer(user, task.id, "Drafting")
        clock.advance(seconds=65)

        assert elapsed(entry, clock()) == 65

        stopped = tracker.stop_timer(user, entry.id)

        assert stopped.duration == 1
        assert stopped.end_time == T0 + timedelta(seconds=65)
        assert stopped.is_active is False
        assert tracker.active_entry(user) is None

    def test_second_start_rejected(
        self, tracker: TimeTracker, user: UserContext, task: Task
    ) -> None:
        """Test that a running timer blocks another start."""
        tracker.start_timer(user, task.id, "First")

        with pytest.raises(ActiveEntryError, match="Timer already running: First"):
            tracker.start_timer(user, task.id, "Second")

        active = [e for e in tracker.get_entries(user) if e.is_active]
        assert len(active) == 1

    def test_users_have_separate_timers(
        self, tracker: TimeTracker, storage: StorageManager, user: UserContext, task: Task
    ) -> None:
        """Test that one user's timer does not block another's."""
        bob = UserContext(user_id="bob")
        bob_task = Task(title="Review", project_id=task.project_id, assigned_to="bob")
        storage.create_task(bob_task)

        tracker.start_timer(user, task.id, "Drafting")
        tracker.start_timer(bob, bob_task.id, "Reviewing")

        assert tracker.active_entry(user).description == "Drafting"  # type: ignore[union-attr]
        assert tracker.active_entry(bob).description == "Reviewing"  # type: ignore[union-attr]

    def test_interleaved_starts_can_both_succeed(
        self,
        storage: StorageManager,
        clock: FakeClock,
        user: UserContext,
        task: Task,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test the check-then-write window between two trackers.

        Both trackers read "no active entry" before either writes, so both
        starts go through.
        """
        first = TimeTracker(StorageManager(storage.data_dir), clock=clock)
        second = TimeTracker(StorageManager(storage.data_dir), clock=clock)

        seen_by_second = second.storage.get_active_time_entry(user.user_id)
        assert seen_by_second is None

        first.start_timer(user, task.id, "From laptop")

        monkeypatch.setattr(
            second.storage, "get_active_time_entry", lambda user_id: seen_by_second
        )
        second.start_timer(user, task.id, "From phone")

        active = [e for e in storage.get_time_entries(user.user_id) if e.is_active]
        assert {e.description for e in active} == {"From laptop", "From phone"}

    @pytest.mark.parametrize(
        "task_id,description", [("", "Drafting"), ("some-task", ""), ("some-task", "   ")]
    )
    def test_start_requires_task_and_description(
        self, tracker: TimeTracker, user: UserContext, task_id: str, description: str
    ) -> None:
        """Test missing input is rejected before anything is written."""
        with pytest.raises(ValidationError, match="Please select a task and enter a description"):
            tracker.start_timer(user, task_id, description)

        assert tracker.get_entries(user) == []

    def test_start_unknown_task(self, tracker: TimeTracker, user: UserContext) -> None:
        """Test starting on a task that does not exist."""
        with pytest.raises(ValidationError, match="Task not found"):
            tracker.start_timer(user, "missing", "Drafting")

    def test_start_on_foreign_task(
        self, tracker: TimeTracker, task: Task
    ) -> None:
        """Test that another user's task cannot be tracked."""
        with pytest.raises(ValidationError, match="Task not found"):
            tracker.start_timer(UserContext(user_id="mallory"), task.id, "Drafting")

    def test_stop_closed_entry_keeps_duration(
        self, tracker: TimeTracker, clock: FakeClock, user: UserContext, task: Task
    ) -> None:
        """Test stopping twice raises and leaves the entry unchanged."""
        entry = tracker.start_timer(user, task.id, "Drafting")
        clock.advance(minutes=10)
        stopped = tracker.stop_timer(user, entry.id)

        clock.advance(minutes=30)
        with pytest.raises(EntryNotActiveError, match="is not running"):
            tracker.stop_timer(user, entry.id)

        assert tracker.storage.get_time_entry(entry.id) == stopped
        assert stopped.duration == 10

    def test_stop_unknown_entry(self, tracker: TimeTracker, user: UserContext) -> None:
        """Test stopping an entry that does not exist."""
        with pytest.raises(NotFoundError):
            tracker.stop_timer(user, "missing")

    def test_stop_foreign_entry(
        self, tracker: TimeTracker, user: UserContext, task: Task
    ) -> None:
        """Test that another user's timer cannot be stopped."""
        entry = tracker.start_timer(user, task.id, "Drafting")

        with pytest.raises(NotFoundError):
            tracker.stop_timer(UserContext(user_id="mallory"), entry.id)

        assert tracker.active_entry(user) is not None

    def test_start_after_stop(
        self, tracker: TimeTracker, clock: FakeClock, user: UserContext, task: Task
    ) -> None:
        """Test a new timer can start once the previous one stopped."""
        first = tracker.start_timer(user, task.id, "First")
        clock.advance(minutes=5)
        tracker.stop_timer(user, first.id)

        second = tracker.start_timer(user, task.id, "Second")

        assert tracker.active_entry(user) == second


class TestManualTime:
    """Test manual entries and time logs."""

    def test_manual_entry(self, tracker: TimeTracker, user: UserContext, task: Task) -> None:
        """Test 1h30m becomes a closed 90 minute entry."""
        entry = tracker.log_manual_entry(user, task.id, "Client call", 1, 30)

        assert entry.duration == 90
        assert entry.is_active is False
        assert entry.start_time == T0
        assert entry.end_time == T0
        assert tracker.storage.get_time_entry(entry.id) == entry

    def test_manual_entry_does_not_touch_running_timer(
        self, tracker: TimeTracker, user: UserContext, task: Task
    ) -> None:
        """Test manual time can be logged while a timer runs."""
        running = tracker.start_timer(user, task.id, "Drafting")

        tracker.log_manual_entry(user, task.id, "Client call", 0, 15)

        assert tracker.active_entry(user) == running

    @pytest.mark.parametrize("hours,minutes", [(-1, 0), (0, 60), (0, -5)])
    def test_manual_entry_out_of_range(
        self, tracker: TimeTracker, user: UserContext, task: Task, hours: int, minutes: int
    ) -> None:
        """Test invalid hours and minutes are rejected without writing."""
        with pytest.raises(ValidationError):
            tracker.log_manual_entry(user, task.id, "Client call", hours, minutes)

        assert tracker.get_entries(user) == []

    def test_manual_entry_requires_description(
        self, tracker: TimeTracker, user: UserContext, task: Task
    ) -> None:
        """Test missing fields are rejected."""
        with pytest.raises(ValidationError, match="Please fill in all fields"):
            tracker.log_manual_entry(user, task.id, "", 1, 0)

    def test_log_time(self, tracker: TimeTracker, user: UserContext, task: Task) -> None:
        """Test logging time as a time log."""
        time_log = tracker.log_time(user, task.id, "Review", 2, 15)

        assert time_log.total_minutes == 135
        assert time_log.date == T0
        assert time_log.project_id == task.project_id
        assert tracker.get_entries(user) == []
        assert tracker.storage.get_time_logs(user.user_id) == [time_log]

    def test_log_time_on_given_date(
        self, tracker: TimeTracker, user: UserContext, task: Task
    ) -> None:
        """Test logging time for another day."""
        day = datetime(2025, 11, 14)
        time_log = tracker.log_time(user, task.id, "Review", 0, 45, date=day)
        assert time_log.date == day


class TestEntryQueries:
    """Test listing and deleting entries."""

    def test_get_entries_limit(
        self, tracker: TimeTracker, clock: FakeClock, user: UserContext, task: Task
    ) -> None:
        """Test the newest entries are returned first, up to the limit."""
        for minutes in (10, 20, 30):
            tracker.log_manual_entry(user, task.id, f"{minutes} min", 0, minutes)
            clock.advance(hours=1)

        entries = tracker.get_entries(user, limit=2)

        assert [e.duration for e in entries] == [30, 20]

    def test_delete_entry(self, tracker: TimeTracker, user: UserContext, task: Task) -> None:
        """Test deleting own and foreign entries."""
        entry = tracker.log_manual_entry(user, task.id, "Client call", 1, 0)

        assert tracker.delete_entry(UserContext(user_id="mallory"), entry.id) is False
        assert tracker.delete_entry(user, entry.id) is True
        assert tracker.delete_entry(user, entry.id) is False


class TestEntryCorrections:
    """Test correcting existing entries."""

    @pytest.fixture
    def stopped(self, tracker: TimeTracker, clock: FakeClock, user: UserContext, task: Task) -> TimeEntry:
        """A timer entry stopped after one hour."""
        entry = tracker.start_timer(user, task.id, "Drafting")
        clock.advance(hours=1)
        return tracker.stop_timer(user, entry.id)

    def test_new_end_recomputes_duration(
        self, tracker: TimeTracker, user: UserContext, stopped: TimeEntry
    ) -> None:
        """Test the duration follows a corrected end time."""
        updated = tracker.update_entry(
            user, stopped.id, TimeEntryPatch(end_time=T0 + timedelta(hours=3))
        )

        assert updated.duration == 180
        assert tracker.storage.get_time_entry(stopped.id) == updated

    def test_aware_times_are_stored_local(
        self, tracker: TimeTracker, user: UserContext, stopped: TimeEntry
    ) -> None:
        """Test offset-aware corrections are converted before comparing."""
        new_end = (T0 + timedelta(days=2)).astimezone(timezone.utc)

        updated = tracker.update_entry(user, stopped.id, TimeEntryPatch(end_time=new_end))

        assert updated.end_time == T0 + timedelta(days=2)
        assert updated.end_time.tzinfo is None
        assert updated.duration == 2 * 24 * 60

    def test_conflicting_duration(
        self, tracker: TimeTracker, user: UserContext, stopped: TimeEntry
    ) -> None:
        """Test a duration must match the times it comes with."""
        with pytest.raises(ValidationError, match="does not match"):
            tracker.update_entry(
                user,
                stopped.id,
                TimeEntryPatch(end_time=T0 + timedelta(hours=2), duration=30),
            )
        with pytest.raises(ValidationError, match="does not match"):
            tracker.update_entry(user, stopped.id, TimeEntryPatch(duration=30))

        assert tracker.storage.get_time_entry(stopped.id) == stopped

    def test_running_entry_keeps_its_times(
        self, tracker: TimeTracker, user: UserContext, task: Task
    ) -> None:
        """Test a running entry only accepts a description."""
        entry = tracker.start_timer(user, task.id, "Drafting")

        with pytest.raises(ValidationError, match="running entry"):
            tracker.update_entry(user, entry.id, TimeEntryPatch(start_time=T0 - timedelta(hours=1)))
        renamed = tracker.update_entry(user, entry.id, TimeEntryPatch(description="Editing"))

        assert renamed.description == "Editing"
        assert renamed.is_active is True
        assert renamed.start_time == T0

    def test_manual_entry_changes_duration_only(
        self, tracker: TimeTracker, user: UserContext, task: Task
    ) -> None:
        """Test manual entries take a new duration but no times."""
        entry = tracker.log_manual_entry(user, task.id, "Client call", 0, 30)

        updated = tracker.update_entry(user, entry.id, TimeEntryPatch(duration=45))
        with pytest.raises(ValidationError, match="Manual entries"):
            tracker.update_entry(
                user, entry.id, TimeEntryPatch(end_time=T0 + timedelta(hours=1))
            )

        assert updated.duration == 45

    def test_foreign_entry(
        self, tracker: TimeTracker, user: UserContext, stopped: TimeEntry
    ) -> None:
        """Test other users cannot correct an entry."""
        with pytest.raises(NotFoundError):
            tracker.update_entry(
                UserContext(user_id="mallory"), stopped.id, TimeEntryPatch(description="x")
            )
