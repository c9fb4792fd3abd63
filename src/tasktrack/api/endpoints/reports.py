"""Report generation endpoints.

This module provides the date-range summary and the dashboard, both computed
from the caller's entries, projects and tasks.
"""

from datetime import datetime, time
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status  # type: ignore[import-untyped]

from tasktrack.analysis.aggregation import build_report, dashboard_summary, period_range
from tasktrack.api.auth import get_current_user
from tasktrack.api.dependencies import get_config, get_storage, parse_date_param
from tasktrack.api.models import (
    DashboardResponse,
    DayBucket,
    HoursBucket,
    ReportResponse,
    TaskResponse,
    TimeEntryResponse,
)
from tasktrack.core.config import ConfigManager
from tasktrack.core.models import UserContext
from tasktrack.core.storage import StorageManager

router = APIRouter()


def _resolve_range(
    period: Optional[str],
    from_date: Optional[str],
    to_date: Optional[str],
    week_start: str,
) -> tuple[datetime, datetime]:
    """Turn query parameters into an inclusive datetime range.

    Explicit dates win over the period; with neither, the current week is used.
    """
    if from_date or to_date:
        if not (from_date and to_date):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="from_date and to_date must be given together",
            )
        start = parse_date_param(from_date, "from_date")
        end = datetime.combine(parse_date_param(to_date, "to_date").date(), time.max)
        if start > end:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="from_date must not be after to_date",
            )
        return start, end

    return period_range(period or "week", week_start=week_start)


@router.get("/summary", response_model=ReportResponse)
async def get_summary_report(
    period: Optional[Literal["week", "month"]] = Query(None, description="week or month"),
    from_date: Optional[str] = Query(None, description="From date (YYYY-MM-DD)"),
    to_date: Optional[str] = Query(None, description="To date (YYYY-MM-DD)"),
    config: ConfigManager = Depends(get_config),
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> ReportResponse:
    """Hours by project, by day and by task for a date range.

    Example:
        >>> GET /api/v1/reports/summary?period=month
        {
            "total_minutes": 750,
            "total_hours": 12.5,
            "entry_count": 9,
            "by_project": [{"name": "Website", "hours": 8.0}, ...],
            "by_day": [{"day": "2025-11-01", "hours": 0.0}, ...],
            ...
        }
    """
    start, end = _resolve_range(
        period, from_date, to_date, config.get("general.week_start", "sunday")
    )

    report = build_report(
        storage.get_time_entries(user.user_id),
        storage.get_projects(user.user_id),
        storage.get_tasks(user_id=user.user_id),
        start,
        end,
    )

    return ReportResponse(
        start=report.start,
        end=report.end,
        total_minutes=report.total_minutes,
        total_hours=round(report.total_hours, 2),
        entry_count=report.entry_count,
        by_project=[HoursBucket(name=n, hours=round(h, 2)) for n, h in report.by_project],
        by_day=[DayBucket(day=d, hours=round(h, 2)) for d, h in report.by_day],
        top_tasks=[HoursBucket(name=n, hours=round(h, 2)) for n, h in report.top_tasks],
        task_status=report.task_status,
    )


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    config: ConfigManager = Depends(get_config),
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> DashboardResponse:
    """Headline numbers for the current week plus recent tasks and entries."""
    summary = dashboard_summary(
        storage.get_time_entries(user.user_id),
        storage.get_projects(user.user_id),
        storage.get_tasks(user_id=user.user_id),
        week_start=config.get("general.week_start", "sunday"),
    )

    return DashboardResponse(
        hours_this_week=round(summary.hours_this_week, 2),
        active_projects=summary.active_projects,
        pending_tasks=summary.pending_tasks,
        completed_tasks=summary.completed_tasks,
        recent_tasks=[TaskResponse.from_task(t) for t in summary.recent_tasks],
        recent_entries=[TimeEntryResponse.from_entry(e) for e in summary.recent_entries],
    )
