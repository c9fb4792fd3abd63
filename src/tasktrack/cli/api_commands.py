"""CLI commands for the REST API: serving, tokens and configuration status."""

import sys
from datetime import timedelta
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from tasktrack.api.auth import create_token_for_user
from tasktrack.api.server import run_server
from tasktrack.core.config import ConfigManager

console = Console()


def _load(ctx: click.Context) -> ConfigManager:
    config_path = ctx.obj.get("config_path") if ctx.obj else None
    return ConfigManager(config_path)


def _flag(value: bool) -> str:
    return "[green]yes[/green]" if value else "[red]no[/red]"


@click.group()
def api() -> None:
    """API server management commands."""
    pass


@api.command()
@click.option("--host", default=None, help="Host address (default: from config)")
@click.option("--port", type=int, default=None, help="Port number (default: from config)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.option("--ssl-cert", type=click.Path(exists=True), help="Path to SSL certificate file")
@click.option("--ssl-key", type=click.Path(exists=True), help="Path to SSL key file")
@click.pass_context
def serve(
    ctx: click.Context,
    host: Optional[str],
    port: Optional[int],
    reload: bool,
    ssl_cert: Optional[str],
    ssl_key: Optional[str],
) -> None:
    """Start the API server.

    Examples:
        tasktrack api serve
        tasktrack api serve --host 0.0.0.0 --port 8080
        tasktrack api serve --ssl-cert cert.pem --ssl-key key.pem
    """
    config = _load(ctx)

    if not config.get("api.enabled", False):
        click.echo(click.style("⚠️  API is not enabled in configuration", fg="yellow"), err=True)
        click.echo("Enable it with: tasktrack config set api.enabled true", err=True)
        sys.exit(1)

    config.ensure_api_secret_key()

    bind_host = host or config.get("api.host", "localhost")
    bind_port = port or config.get("api.port", 8000)
    use_ssl = bool(ssl_cert and ssl_key)
    base_url = f"{'https' if use_ssl else 'http'}://{bind_host}:{bind_port}"

    click.echo(f"🚀 Serving Task Track API on {base_url} (docs at {base_url}/docs)")

    try:
        run_server(
            config=config,
            host=bind_host,
            port=bind_port,
            reload=reload,
            ssl_certfile=Path(ssl_cert) if use_ssl else None,
            ssl_keyfile=Path(ssl_key) if use_ssl else None,
        )
    except KeyboardInterrupt:
        click.echo("\n👋 API server stopped")


@api.command()
@click.option("--user", "user_id", default=None, help="User id for the token (default: user.id)")
@click.option("--expires", type=click.IntRange(min=1), help="Token lifetime in hours")
@click.pass_context
def token(ctx: click.Context, user_id: Optional[str], expires: Optional[int]) -> None:
    """Issue a bearer token.

    Every request made with the token runs as its user.

    Examples:
        tasktrack api token
        tasktrack api token --user alice --expires 48
    """
    config = _load(ctx)
    hours = expires or config.get("api.authentication.token_expiry_hours", 24)

    token_data = create_token_for_user(
        config, user_id=user_id, expires_delta=timedelta(hours=hours)
    )
    subject = user_id or config.get("user.id", "local-user")

    click.echo(f"Token: {token_data['access_token']}")
    click.echo(f"User: {subject}")
    click.echo(f"Expires in: {hours} hours")
    click.echo("Send it as: Authorization: Bearer <token>")


@api.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show API configuration status."""
    config = _load(ctx)

    table = Table(title="Task Track API", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Enabled", _flag(config.get("api.enabled", False)))
    table.add_row("Address", f"{config.get('api.host', 'localhost')}:{config.get('api.port', 8000)}")

    auth_enabled = config.get("api.authentication.enabled", True)
    table.add_row("Authentication", _flag(auth_enabled))
    if auth_enabled:
        table.add_row(
            "Token expiry", f"{config.get('api.authentication.token_expiry_hours', 24)} hours"
        )
        table.add_row(
            "Secret key", _flag(bool(config.get("api.authentication.secret_key")))
        )
    else:
        table.add_row("Requests run as", config.get("user.id", "local-user"))

    origins = config.get("api.cors.origins", []) if config.get("api.cors.enabled", True) else []
    table.add_row("CORS origins", ", ".join(origins) or "-")

    console.print(table)
