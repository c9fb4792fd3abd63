"""Main CLI application."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tasktrack import __version__
from tasktrack.analysis.aggregation import build_report, dashboard_summary, period_range
from tasktrack.analysis.reports import ReportGenerator, format_clock, format_minutes
from tasktrack.cli.api_commands import api
from tasktrack.cli.config_commands import config
from tasktrack.core.config import ConfigManager
from tasktrack.core.errors import NotFoundError, StorageError, ValidationError
from tasktrack.core.logsetup import setup_logging
from tasktrack.core.models import (
    Project,
    ProjectPatch,
    ProjectStatus,
    Task,
    TaskPatch,
    TaskPriority,
    TaskStatus,
    UserContext,
)
from tasktrack.core.storage import StorageManager
from tasktrack.core.tracker import TimeTracker, elapsed

logger = logging.getLogger(__name__)

console = Console()
error_console = Console(stderr=True)

DATE = click.DateTime(formats=["%Y-%m-%d"])


@contextmanager
def handle_errors() -> Iterator[None]:
    """Turn core errors into an error message and exit status 1."""
    try:
        yield
    except StorageError:
        logger.error("Storage operation failed", exc_info=True)
        error_console.print("[red]Error:[/red] storage failure, see the log for details")
        sys.exit(1)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


def get_storage(ctx: click.Context) -> StorageManager:
    """Get StorageManager for the selected data directory."""
    with handle_errors():
        return StorageManager(ctx.obj["data_dir"])


def get_tracker(ctx: click.Context) -> TimeTracker:
    """Get TimeTracker for the selected data directory."""
    return TimeTracker(get_storage(ctx))


def get_user(ctx: click.Context) -> UserContext:
    """Get the user the command runs as."""
    user: UserContext = ctx.obj["user"]
    return user


def format_datetime(dt: datetime) -> str:
    """Format datetime for display."""
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def _owned_project(storage: StorageManager, user: UserContext, project_id: str) -> Project:
    project = storage.get_project(project_id)
    if project is None or project.created_by != user.user_id:
        raise NotFoundError(f"Project not found: {project_id}")
    return project


def _owned_task(storage: StorageManager, user: UserContext, task_id: str) -> Task:
    task = storage.get_task(task_id)
    if task is None or task.assigned_to != user.user_id:
        raise NotFoundError(f"Task not found: {task_id}")
    return task


@click.group()
@click.version_option(version=__version__)
@click.option("--data-dir", help="Custom data directory", type=click.Path())
@click.option("--config", "config_path", help="Path to config file", type=click.Path())
@click.option("--user", "user_id", help="Act as this user id (default: user.id from config)")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.pass_context
def cli(
    ctx: click.Context,
    data_dir: Optional[str],
    config_path: Optional[str],
    user_id: Optional[str],
    no_color: bool,
) -> None:
    """Task Track - projects, tasks and time tracking from the command line.

    Organise work into projects and tasks, run a timer or log time manually,
    and review where the hours went.
    """
    ctx.ensure_object(dict)

    try:
        config_mgr = ConfigManager(Path(config_path) if config_path else None)
    except ValueError as e:
        error_console.print(f"[yellow]Warning:[/yellow] {e}")
        config_mgr = ConfigManager(Path(config_path) if config_path else None)

    setup_logging(config_mgr.get("logging.level", "WARNING"), config_mgr.get("logging.file"))

    user = config_mgr.default_user()
    if user_id is not None:
        with handle_errors():
            user = UserContext(user_id=user_id)

    ctx.obj["config"] = config_mgr
    ctx.obj["config_path"] = config_mgr.config_path
    ctx.obj["data_dir"] = Path(data_dir) if data_dir else config_mgr.data_dir()
    ctx.obj["user"] = user

    if no_color:
        console.no_color = True
        error_console.no_color = True


cli.add_command(config)
cli.add_command(api)


# ============================================================================
# Projects
# ============================================================================


@cli.group()
def project() -> None:
    """Manage projects."""
    pass


@project.command("add")
@click.argument("name")
@click.option("-d", "--description", default="", help="Project description")
@click.pass_context
def project_add(ctx: click.Context, name: str, description: str) -> None:
    """Create a project.

    Example:
        tasktrack project add "Website" -d "Marketing site relaunch"
    """
    storage = get_storage(ctx)
    user = get_user(ctx)

    with handle_errors():
        new_project = Project(name=name, description=description, created_by=user.user_id)
        project_id = storage.create_project(new_project)

    console.print(f"[green]✓[/green] Created project: {name}")
    console.print(f"  ID: {project_id}")


@project.command("list")
@click.option(
    "--status",
    "project_status",
    type=click.Choice([s.value for s in ProjectStatus]),
    help="Only show projects with this status",
)
@click.pass_context
def project_list(ctx: click.Context, project_status: Optional[str]) -> None:
    """List your projects, newest first."""
    storage = get_storage(ctx)

    with handle_errors():
        projects = storage.get_projects(get_user(ctx).user_id)

    if project_status:
        projects = [p for p in projects if p.status.value == project_status]

    if not projects:
        console.print("[yellow]No projects found[/yellow]")
        return

    table = Table(title=f"Projects ({len(projects)})")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Status", style="green")
    table.add_column("Created", style="cyan")

    for p in projects:
        table.add_row(p.id, p.name, p.status.value, p.created_at.strftime("%Y-%m-%d"))

    console.print(table)


@project.command("edit")
@click.argument("project_id")
@click.option("--name", help="New name")
@click.option("--description", help="New description")
@click.option(
    "--status",
    "project_status",
    type=click.Choice([s.value for s in ProjectStatus]),
    help="New status",
)
@click.pass_context
def project_edit(
    ctx: click.Context,
    project_id: str,
    name: Optional[str],
    description: Optional[str],
    project_status: Optional[str],
) -> None:
    """Change a project's name, description or status.

    Example:
        tasktrack project edit <id> --status completed
    """
    storage = get_storage(ctx)
    patch = ProjectPatch(
        name=name,
        description=description,
        status=ProjectStatus(project_status) if project_status else None,
    )
    if patch.is_empty():
        error_console.print("[red]Error:[/red] Nothing to change")
        sys.exit(1)

    with handle_errors():
        _owned_project(storage, get_user(ctx), project_id)
        updated = storage.update_project(project_id, patch)

    console.print(f"[green]✓[/green] Updated project: {updated.name}")


@project.command("delete")
@click.argument("project_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def project_delete(ctx: click.Context, project_id: str, yes: bool) -> None:
    """Delete a project. Its tasks and time entries are kept."""
    storage = get_storage(ctx)

    with handle_errors():
        existing = _owned_project(storage, get_user(ctx), project_id)

    if not yes and not click.confirm(f"Delete project '{existing.name}'?"):
        console.print("Cancelled")
        return

    with handle_errors():
        storage.delete_project(project_id)

    console.print(f"[green]✓[/green] Deleted project: {existing.name}")


# ============================================================================
# Tasks
# ============================================================================


@cli.group()
def task() -> None:
    """Manage tasks."""
    pass


@task.command("add")
@click.argument("title")
@click.option("-p", "--project", "project_id", required=True, help="Project ID")
@click.option("-d", "--description", default="", help="Task description")
@click.option(
    "--priority",
    type=click.Choice([p.value for p in TaskPriority]),
    default=TaskPriority.MEDIUM.value,
    help="Task priority",
)
@click.option("--due", type=DATE, help="Due date (YYYY-MM-DD)")
@click.pass_context
def task_add(
    ctx: click.Context,
    title: str,
    project_id: str,
    description: str,
    priority: str,
    due: Optional[datetime],
) -> None:
    """Create a task in one of your projects.

    Example:
        tasktrack task add "Write copy" -p <project-id> --priority high --due 2025-12-01
    """
    storage = get_storage(ctx)
    user = get_user(ctx)

    with handle_errors():
        _owned_project(storage, user, project_id)
        new_task = Task(
            title=title,
            description=description,
            project_id=project_id,
            assigned_to=user.user_id,
            priority=TaskPriority(priority),
            due_date=due,
        )
        task_id = storage.create_task(new_task)

    console.print(f"[green]✓[/green] Created task: {title}")
    console.print(f"  ID: {task_id}")


@task.command("list")
@click.option("-p", "--project", "project_id", help="Only tasks of this project")
@click.option(
    "--status",
    "task_status",
    type=click.Choice([s.value for s in TaskStatus]),
    help="Only tasks with this status",
)
@click.pass_context
def task_list(ctx: click.Context, project_id: Optional[str], task_status: Optional[str]) -> None:
    """List your tasks, newest first."""
    storage = get_storage(ctx)
    user = get_user(ctx)

    with handle_errors():
        tasks = storage.get_tasks(project_id=project_id, user_id=user.user_id)
        project_names = {p.id: p.name for p in storage.get_projects(user.user_id)}

    if task_status:
        tasks = [t for t in tasks if t.status.value == task_status]

    if not tasks:
        console.print("[yellow]No tasks found[/yellow]")
        return

    table = Table(title=f"Tasks ({len(tasks)})")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Project", style="blue")
    table.add_column("Status", style="green")
    table.add_column("Priority", style="magenta")
    table.add_column("Due", style="cyan")

    for t in tasks:
        table.add_row(
            t.id,
            t.title,
            project_names.get(t.project_id, "-"),
            t.status.value,
            t.priority.value,
            t.due_date.strftime("%Y-%m-%d") if t.due_date else "-",
        )

    console.print(table)


@task.command("edit")
@click.argument("task_id")
@click.option("--title", help="New title")
@click.option("--description", help="New description")
@click.option(
    "--status",
    "task_status",
    type=click.Choice([s.value for s in TaskStatus]),
    help="New status",
)
@click.option("--priority", type=click.Choice([p.value for p in TaskPriority]), help="New priority")
@click.option("--due", type=DATE, help="New due date (YYYY-MM-DD)")
@click.pass_context
def task_edit(
    ctx: click.Context,
    task_id: str,
    title: Optional[str],
    description: Optional[str],
    task_status: Optional[str],
    priority: Optional[str],
    due: Optional[datetime],
) -> None:
    """Change a task.

    Example:
        tasktrack task edit <id> --status in-progress
    """
    storage = get_storage(ctx)
    patch = TaskPatch(
        title=title,
        description=description,
        status=TaskStatus(task_status) if task_status else None,
        priority=TaskPriority(priority) if priority else None,
        due_date=due,
    )
    if patch.is_empty():
        error_console.print("[red]Error:[/red] Nothing to change")
        sys.exit(1)

    with handle_errors():
        _owned_task(storage, get_user(ctx), task_id)
        updated = storage.update_task(task_id, patch)

    console.print(f"[green]✓[/green] Updated task: {updated.title}")


@task.command("delete")
@click.argument("task_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.pass_context
def task_delete(ctx: click.Context, task_id: str, yes: bool) -> None:
    """Delete a task. Its time entries are kept."""
    storage = get_storage(ctx)

    with handle_errors():
        existing = _owned_task(storage, get_user(ctx), task_id)

    if not yes and not click.confirm(f"Delete task '{existing.title}'?"):
        console.print("Cancelled")
        return

    with handle_errors():
        storage.delete_task(task_id)

    console.print(f"[green]✓[/green] Deleted task: {existing.title}")


# ============================================================================
# Timer
# ============================================================================


@cli.command()
@click.argument("task_id")
@click.argument("description")
@click.pass_context
def start(ctx: click.Context, task_id: str, description: str) -> None:
    """Start the timer on a task.

    Example:
        tasktrack start <task-id> "Drafting landing page"
    """
    tracker = get_tracker(ctx)

    with handle_errors():
        entry = tracker.start_timer(get_user(ctx), task_id, description)

    console.print(f"[green]✓[/green] Started timer: {entry.description}")
    console.print(f"  Started: {format_datetime(entry.start_time)}")


@cli.command()
@click.pass_context
def stop(ctx: click.Context) -> None:
    """Stop the running timer.

    Example:
        tasktrack stop
    """
    tracker = get_tracker(ctx)
    user = get_user(ctx)

    with handle_errors():
        active = tracker.active_entry(user)
        if active is None:
            console.print("[yellow]No timer running[/yellow]")
            return
        entry = tracker.stop_timer(user, active.id)

    console.print(f"[green]✓[/green] Stopped timer: {entry.description}")
    console.print(f"  Duration: {format_minutes(entry.duration)}")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the running timer.

    Example:
        tasktrack status
    """
    tracker = get_tracker(ctx)

    with handle_errors():
        entry = tracker.active_entry(get_user(ctx))
        current_task = tracker.storage.get_task(entry.task_id) if entry else None

    if not entry:
        console.print("[yellow]No timer running[/yellow]")
        console.print('\nStart one with: [cyan]tasktrack start TASK_ID "Description"[/cyan]')
        return

    content = f"""[bold]{entry.description}[/bold]

[dim]Task:[/dim] {current_task.title if current_task else entry.task_id}
[dim]Started:[/dim] {format_datetime(entry.start_time)}
[dim]Elapsed:[/dim] {format_clock(elapsed(entry, tracker.clock()))}
[dim]Entry ID:[/dim] {entry.id}"""

    console.print(Panel(content, title="Timer Running", border_style="green"))


@cli.command()
@click.argument("task_id")
@click.argument("description")
@click.option("--hours", type=int, default=0, help="Whole hours")
@click.option("--minutes", type=int, default=0, help="Minutes (0-59)")
@click.option("--legacy", is_flag=True, help="Record as a time log instead of a time entry")
@click.option("--date", "log_date", type=DATE, help="Day of a --legacy log (default: today)")
@click.pass_context
def log(
    ctx: click.Context,
    task_id: str,
    description: str,
    hours: int,
    minutes: int,
    legacy: bool,
    log_date: Optional[datetime],
) -> None:
    """Record time you already spent on a task.

    Example:
        tasktrack log <task-id> "Client call" --hours 1 --minutes 30
        tasktrack log <task-id> "Review" --minutes 45 --legacy --date 2025-11-14
    """
    tracker = get_tracker(ctx)
    user = get_user(ctx)

    with handle_errors():
        if legacy:
            time_log = tracker.log_time(user, task_id, description, hours, minutes, date=log_date)
            logged = time_log.total_minutes
        else:
            entry = tracker.log_manual_entry(user, task_id, description, hours, minutes)
            logged = entry.duration or 0

    console.print(f"[green]✓[/green] Logged {format_minutes(logged)}: {description.strip()}")


@cli.command()
@click.option("-t", "--task", "task_id", help="Only entries of this task")
@click.option("-n", "--count", "limit", default=10, help="Number of entries to show")
@click.pass_context
def entries(ctx: click.Context, task_id: Optional[str], limit: int) -> None:
    """List recent time entries.

    Example:
        tasktrack entries
        tasktrack entries -n 20 -t <task-id>
    """
    tracker = get_tracker(ctx)
    user = get_user(ctx)

    with handle_errors():
        found = tracker.get_entries(user, task_id=task_id, limit=limit)
        titles = {t.id: t.title for t in tracker.storage.get_tasks(user_id=user.user_id)}

    if not found:
        console.print("[yellow]No entries found[/yellow]")
        return

    table = Table(title=f"Time Entries (showing {len(found)})")
    table.add_column("Start", style="cyan")
    table.add_column("Duration", style="magenta")
    table.add_column("Task", style="bold")
    table.add_column("Description")

    for entry in found:
        status_icon = "▶" if entry.is_active else "■"
        table.add_row(
            format_datetime(entry.start_time),
            format_minutes(entry.duration),
            f"{status_icon} {titles.get(entry.task_id, entry.task_id)}",
            entry.description,
        )

    console.print(table)


# ============================================================================
# Reports
# ============================================================================


@cli.command()
@click.option(
    "--period", type=click.Choice(["week", "month"]), default="week", help="Time period"
)
@click.option("--from", "from_date", type=DATE, help="Start date (YYYY-MM-DD)")
@click.option("--to", "to_date", type=DATE, help="End date (YYYY-MM-DD)")
@click.pass_context
def report(
    ctx: click.Context,
    period: str,
    from_date: Optional[datetime],
    to_date: Optional[datetime],
) -> None:
    """Show hours by project, by day and by task.

    Examples:
        tasktrack report --period month
        tasktrack report --from 2025-11-01 --to 2025-11-30
    """
    storage = get_storage(ctx)
    user = get_user(ctx)
    config_mgr: ConfigManager = ctx.obj["config"]

    with handle_errors():
        if from_date or to_date:
            if not (from_date and to_date):
                raise ValidationError("--from and --to must be given together")
            start_dt = from_date
            end_dt = datetime.combine(to_date.date(), datetime.max.time())
            if start_dt > end_dt:
                raise ValidationError("--from must not be after --to")
            period_label = f"{start_dt:%Y-%m-%d} to {end_dt:%Y-%m-%d}"
        else:
            start_dt, end_dt = period_range(
                period, week_start=config_mgr.get("general.week_start", "sunday")
            )
            period_label = "This Week" if period == "week" else "This Month"

        time_report = build_report(
            storage.get_time_entries(user.user_id),
            storage.get_projects(user.user_id),
            storage.get_tasks(user_id=user.user_id),
            start_dt,
            end_dt,
        )

    ReportGenerator(console).summary_report(time_report, period_label)


@cli.command()
@click.pass_context
def dashboard(ctx: click.Context) -> None:
    """Show this week's hours and your open work."""
    storage = get_storage(ctx)
    user = get_user(ctx)
    config_mgr: ConfigManager = ctx.obj["config"]

    with handle_errors():
        summary = dashboard_summary(
            storage.get_time_entries(user.user_id),
            storage.get_projects(user.user_id),
            storage.get_tasks(user_id=user.user_id),
            week_start=config_mgr.get("general.week_start", "sunday"),
        )

    ReportGenerator(console).dashboard(summary)


if __name__ == "__main__":
    cli(obj={})
