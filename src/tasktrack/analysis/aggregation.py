"""Aggregations over already-fetched records.

Everything here is pure: callers load the records for a range and pass them
in. Durations are summed as whole minutes and only converted to hours at the
end, so grouped sums always add up to the overall total.
"""

import calendar
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

from tasktrack.core.errors import ValidationError
from tasktrack.core.models import (
    Project,
    ProjectStatus,
    Task,
    TaskStatus,
    TimeEntry,
)

MAX_REPORT_DAYS = 366


@dataclass
class TimeReport:
    """Aggregated view of a date range."""

    start: datetime
    end: datetime
    total_minutes: int
    entry_count: int
    by_project: list[tuple[str, float]] = field(default_factory=list)
    by_day: list[tuple[date, float]] = field(default_factory=list)
    top_tasks: list[tuple[str, float]] = field(default_factory=list)
    task_status: dict[str, int] = field(default_factory=dict)

    @property
    def total_hours(self) -> float:
        return self.total_minutes / 60


@dataclass
class DashboardSummary:
    """Headline numbers for the dashboard."""

    hours_this_week: float
    active_projects: int
    pending_tasks: int
    completed_tasks: int
    recent_tasks: list[Task] = field(default_factory=list)
    recent_entries: list[TimeEntry] = field(default_factory=list)


def _minutes(entry: TimeEntry) -> int:
    # open entries carry no duration yet
    return entry.duration or 0


def filter_by_range(
    entries: Iterable[TimeEntry], start: Optional[datetime], end: Optional[datetime]
) -> list[TimeEntry]:
    """Keep entries whose start time falls within [start, end].

    Args:
        entries: Entries to filter
        start: Inclusive lower bound (None for unbounded)
        end: Inclusive upper bound (None for unbounded)

    Returns:
        Filtered list, original order preserved
    """
    filtered = list(entries)
    if start:
        filtered = [e for e in filtered if e.start_time >= start]
    if end:
        filtered = [e for e in filtered if e.start_time <= end]
    return filtered


def total_minutes(entries: Iterable[TimeEntry]) -> int:
    """Sum of durations in minutes."""
    return sum(_minutes(e) for e in entries)


def total_hours(entries: Iterable[TimeEntry]) -> float:
    """Sum of durations in hours."""
    return total_minutes(entries) / 60


def minutes_by_project(entries: Iterable[TimeEntry]) -> dict[str, int]:
    """Minutes per project id."""
    totals: dict[str, int] = defaultdict(int)
    for entry in entries:
        if entry.duration:
            totals[entry.project_id] += entry.duration
    return dict(totals)


def hours_by_project(
    entries: Iterable[TimeEntry], projects: Iterable[Project]
) -> list[tuple[str, float]]:
    """Hours per project name, skipping projects without time.

    Args:
        entries: Entries to reduce
        projects: Projects to report on, in display order

    Returns:
        List of (project name, hours)
    """
    totals = minutes_by_project(entries)
    return [(p.name, totals[p.id] / 60) for p in projects if totals.get(p.id, 0) > 0]


def minutes_by_day(entries: Iterable[TimeEntry], start: date, end: date) -> dict[date, int]:
    """Minutes per calendar day, with a zero bucket for every day in [start, end]."""
    totals: dict[date, int] = {}
    day = start
    while day <= end:
        totals[day] = 0
        day += timedelta(days=1)

    for entry in entries:
        day = entry.start_time.date()
        if day in totals:
            totals[day] += _minutes(entry)
    return totals


def hours_by_day(
    entries: Iterable[TimeEntry], start: datetime, end: datetime
) -> list[tuple[date, float]]:
    """Hours per calendar day between start and end, including empty days."""
    totals = minutes_by_day(entries, start.date(), end.date())
    return [(day, minutes / 60) for day, minutes in totals.items()]


def hours_by_task(
    entries: Iterable[TimeEntry], tasks: Iterable[Task], limit: int = 5
) -> list[tuple[str, float]]:
    """Top tasks by tracked hours.

    Args:
        entries: Entries to reduce
        tasks: Tasks to report on
        limit: Maximum number of tasks to return

    Returns:
        List of (task title, hours), highest first
    """
    totals: dict[str, int] = defaultdict(int)
    for entry in entries:
        if entry.duration:
            totals[entry.task_id] += entry.duration

    ranked = [(t.title, totals[t.id] / 60) for t in tasks if totals.get(t.id, 0) > 0]
    ranked.sort(key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def task_status_counts(tasks: Iterable[Task]) -> dict[str, int]:
    """Number of tasks per status; every status is present."""
    counts = {status.value: 0 for status in TaskStatus}
    for task in tasks:
        counts[task.status.value] += 1
    return counts


def project_status_counts(projects: Iterable[Project]) -> dict[str, int]:
    """Number of projects per status; every status is present."""
    counts = {status.value: 0 for status in ProjectStatus}
    for project in projects:
        counts[project.status.value] += 1
    return counts


def period_range(
    period: str, now: Optional[datetime] = None, week_start: str = "sunday"
) -> tuple[datetime, datetime]:
    """Date range for a named period containing ``now``.

    Args:
        period: 'week' or 'month'
        now: Reference time. Defaults to datetime.now()
        week_start: 'sunday' or 'monday'

    Returns:
        (start of first day, end of last day)

    Raises:
        ValueError: If the period is unknown
    """
    now = now or datetime.now()
    today = now.date()

    if period == "week":
        offset = today.weekday() if week_start == "monday" else (today.weekday() + 1) % 7
        first = today - timedelta(days=offset)
        last = first + timedelta(days=6)
    elif period == "month":
        first = today.replace(day=1)
        last = today.replace(day=calendar.monthrange(today.year, today.month)[1])
    else:
        raise ValueError(f"Unknown period: {period}")

    return datetime.combine(first, time.min), datetime.combine(last, time.max)


def build_report(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    tasks: Iterable[Task],
    start: datetime,
    end: datetime,
) -> TimeReport:
    """Reduce a user's records to a report for [start, end].

    Args:
        entries: All of the user's entries (filtered here)
        projects: The user's projects
        tasks: The user's tasks
        start: Inclusive range start
        end: Inclusive range end

    Returns:
        Report with totals, per-project, per-day and per-task breakdowns

    Raises:
        ValidationError: If the range spans more than MAX_REPORT_DAYS days
    """
    if (end.date() - start.date()).days + 1 > MAX_REPORT_DAYS:
        raise ValidationError(f"Report range must not exceed {MAX_REPORT_DAYS} days")

    in_range = filter_by_range(entries, start, end)
    projects = list(projects)
    tasks = list(tasks)

    return TimeReport(
        start=start,
        end=end,
        total_minutes=total_minutes(in_range),
        entry_count=len(in_range),
        by_project=hours_by_project(in_range, projects),
        by_day=hours_by_day(in_range, start, end),
        top_tasks=hours_by_task(in_range, tasks),
        task_status=task_status_counts(tasks),
    )


def dashboard_summary(
    entries: Iterable[TimeEntry],
    projects: Iterable[Project],
    tasks: Iterable[Task],
    now: Optional[datetime] = None,
    week_start: str = "sunday",
) -> DashboardSummary:
    """Headline numbers for the current week.

    Entries and tasks are expected newest first, as the gateway returns them.
    """
    entries = list(entries)
    tasks = list(tasks)
    week_from, week_to = period_range("week", now, week_start)
    this_week = filter_by_range(entries, week_from, week_to)
    statuses = task_status_counts(tasks)

    return DashboardSummary(
        hours_this_week=total_hours(this_week),
        active_projects=project_status_counts(projects)[ProjectStatus.ACTIVE.value],
        pending_tasks=statuses[TaskStatus.PENDING.value],
        completed_tasks=statuses[TaskStatus.COMPLETED.value],
        recent_tasks=tasks[:5],
        recent_entries=[e for e in entries if e.duration][:5],
    )
