"""Report rendering for time tracking data."""

from typing import Optional

from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]
from rich.text import Text  # type: ignore[import-not-found]

from tasktrack.analysis.aggregation import DashboardSummary, TimeReport


def format_minutes(minutes: Optional[int]) -> str:
    """Format a duration in minutes as e.g. '1h 30m' or '45m'."""
    if minutes is None:
        return "running"

    hours = minutes // 60
    mins = minutes % 60
    if hours > 0:
        return f"{hours}h {mins}m"
    return f"{mins}m"


def format_clock(seconds: int) -> str:
    """Format elapsed seconds as HH:MM:SS."""
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class ReportGenerator:
    """Render reports and the dashboard to a console."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize report generator.

        Args:
            console: Rich console for output. Creates default if None.
        """
        self.console = console or Console()

    def summary_report(self, report: TimeReport, period_label: str = "Summary") -> None:
        """Display a report for a date range.

        Args:
            report: Aggregated report
            period_label: Label for the report period
        """
        self.console.print(f"\n[bold cyan]Task Track - {period_label}[/bold cyan]")
        self.console.print(
            f"[dim]{report.start:%Y-%m-%d} to {report.end:%Y-%m-%d}[/dim]\n"
        )

        if report.entry_count == 0:
            self.console.print("[yellow]No time entries found for this period[/yellow]")
            return

        overview_table = Table(show_header=False, box=None, padding=(0, 2))
        overview_table.add_column(style="dim")
        overview_table.add_column(style="bold")
        overview_table.add_row("Total Hours:", f"{report.total_hours:.1f}h")
        overview_table.add_row("Entries:", str(report.entry_count))
        self.console.print(overview_table)
        self.console.print()

        if report.by_project:
            project_table = Table(title="Hours by Project")
            project_table.add_column("Project", style="cyan")
            project_table.add_column("Hours", style="magenta", justify="right")
            project_table.add_column("% Total", style="green", justify="right")
            project_table.add_column("Bar", style="blue")

            for name, hours in report.by_project:
                pct = (hours / report.total_hours) * 100 if report.total_hours > 0 else 0
                project_table.add_row(name, f"{hours:.1f}", f"{pct:.1f}%", self._create_bar(pct))

            self.console.print(project_table)
            self.console.print()

        day_table = Table(title="Hours by Day")
        day_table.add_column("Date", style="cyan")
        day_table.add_column("Hours", style="magenta", justify="right")
        for day, hours in report.by_day:
            day_table.add_row(day.strftime("%b %d"), f"{hours:.1f}")
        self.console.print(day_table)
        self.console.print()

        if report.top_tasks:
            tasks_table = Table(title="Top Tasks")
            tasks_table.add_column("Task", style="bold")
            tasks_table.add_column("Hours", style="magenta", justify="right")
            for title, hours in report.top_tasks:
                tasks_table.add_row(title[:50] + "..." if len(title) > 50 else title, f"{hours:.1f}")
            self.console.print(tasks_table)
            self.console.print()

        status_table = Table(title="Task Status")
        status_table.add_column("Status", style="cyan")
        status_table.add_column("Tasks", justify="right")
        for status, count in report.task_status.items():
            status_table.add_row(status, str(count))
        self.console.print(status_table)

    def dashboard(self, summary: DashboardSummary) -> None:
        """Display dashboard headline numbers and recent activity."""
        overview_table = Table(show_header=False, box=None, padding=(0, 2))
        overview_table.add_column(style="dim")
        overview_table.add_column(style="bold")
        overview_table.add_row("Hours This Week:", f"{summary.hours_this_week:.1f}h")
        overview_table.add_row("Active Projects:", str(summary.active_projects))
        overview_table.add_row("Pending Tasks:", str(summary.pending_tasks))
        overview_table.add_row("Completed Tasks:", str(summary.completed_tasks))

        self.console.print("\n[bold cyan]Dashboard[/bold cyan]\n")
        self.console.print(overview_table)
        self.console.print()

        if summary.recent_tasks:
            tasks_table = Table(title="Recent Tasks")
            tasks_table.add_column("Task", style="bold")
            tasks_table.add_column("Status", style="cyan")
            tasks_table.add_column("Priority", style="magenta")
            for task in summary.recent_tasks:
                tasks_table.add_row(task.title, task.status.value, task.priority.value)
            self.console.print(tasks_table)
            self.console.print()

        if summary.recent_entries:
            entries_table = Table(title="Recent Time Entries")
            entries_table.add_column("Date", style="cyan")
            entries_table.add_column("Description", style="bold")
            entries_table.add_column("Duration", style="magenta", justify="right")
            for entry in summary.recent_entries:
                entries_table.add_row(
                    entry.start_time.strftime("%b %d"),
                    entry.description,
                    format_minutes(entry.duration),
                )
            self.console.print(entries_table)

    def _create_bar(self, percentage: float, width: int = 25) -> Text:
        """Create a visual bar for percentage display."""
        filled = int((percentage / 100) * width)
        empty = width - filled

        bar = Text()
        bar.append("█" * filled, style="blue")
        bar.append("░" * empty, style="dim")

        return bar
