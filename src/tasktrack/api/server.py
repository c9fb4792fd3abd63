"""FastAPI application factory and server runner."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI  # type: ignore[import-untyped]
from fastapi.responses import JSONResponse  # type: ignore[import-untyped]

from tasktrack import __version__
from tasktrack.api.middleware import setup_middleware
from tasktrack.core.config import ConfigManager
from tasktrack.core.logsetup import setup_logging

logger = logging.getLogger(__name__)

CONFIG_ENV = "TASKTRACK_CONFIG"


def create_app(config: Optional[ConfigManager] = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config: Configuration to serve. When omitted, the file named by
            ``TASKTRACK_CONFIG`` is loaded, falling back to the default path.

    Returns:
        Configured FastAPI application instance
    """
    if config is None:
        config_path = os.environ.get(CONFIG_ENV)
        config = ConfigManager(Path(config_path) if config_path else None)

    setup_logging(config.get("logging.level", "WARNING"), config.get("logging.file"))

    app = FastAPI(
        title="Task Track API",
        description="REST API for projects, tasks and time tracking",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Config lives in app state for dependency injection
    app.state.config = config

    setup_middleware(app, config)

    from tasktrack.api.endpoints import entries, logs, projects, reports, system, tasks

    app.include_router(system.router, prefix="/api/v1", tags=["system"])
    for name, module in (
        ("projects", projects),
        ("tasks", tasks),
        ("entries", entries),
        ("logs", logs),
        ("reports", reports),
    ):
        app.include_router(module.router, prefix=f"/api/v1/{name}", tags=[name])

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        return JSONResponse(
            {
                "message": "Task Track API",
                "version": __version__,
                "docs": "/docs",
                "health": "/api/v1/health",
            }
        )

    return app


def run_server(
    host: str = "localhost",
    port: int = 8000,
    reload: bool = False,
    ssl_certfile: Optional[Path] = None,
    ssl_keyfile: Optional[Path] = None,
    config: Optional[ConfigManager] = None,
) -> None:
    """Run the API server under uvicorn.

    Uvicorn builds the app through the ``create_app`` factory, in a reloader
    child process when ``reload`` is set, so the config file travels in the
    ``TASKTRACK_CONFIG`` environment variable.

    Args:
        host: Host address to bind to
        port: Port number to bind to
        reload: Enable auto-reload for development
        ssl_certfile: Path to SSL certificate file
        ssl_keyfile: Path to SSL key file
        config: Configuration to serve (default: ~/.tasktrack/config.yml)
    """
    import uvicorn  # type: ignore[import-untyped]

    if config is None:
        config = ConfigManager()
    os.environ[CONFIG_ENV] = str(config.config_path)

    options: dict[str, Any] = {
        "factory": True,
        "host": host,
        "port": port,
        "reload": reload,
        "log_level": config.get("api.advanced.log_level", "info"),
        "access_log": config.get("api.advanced.access_log", True),
    }
    if ssl_certfile and ssl_keyfile:
        options["ssl_certfile"] = str(ssl_certfile)
        options["ssl_keyfile"] = str(ssl_keyfile)

    logger.info(f"Starting API server on {host}:{port} with {config.config_path}")
    uvicorn.run("tasktrack.api.server:create_app", **options)
