"""System endpoints for health checks and status."""

import time
from datetime import datetime

from fastapi import APIRouter, Depends  # type: ignore[import-untyped]

from tasktrack import __version__
from tasktrack.api.auth import get_current_user
from tasktrack.api.dependencies import get_config, get_storage
from tasktrack.api.models import HealthResponse, StatusResponse
from tasktrack.core.config import ConfigManager
from tasktrack.core.models import UserContext
from tasktrack.core.storage import StorageManager

router = APIRouter()

_server_start_time = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint.

    Note:
        This endpoint is public (no authentication required).
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(),
        version=__version__,
    )


@router.get("/status", response_model=StatusResponse)
async def get_status(
    config: ConfigManager = Depends(get_config),
    storage: StorageManager = Depends(get_storage),
    user: UserContext = Depends(get_current_user),
) -> StatusResponse:
    """Get system status for the calling user.

    Example:
        >>> GET /api/v1/status
        {
            "api_enabled": true,
            "authentication_enabled": true,
            "cors_enabled": true,
            "user_id": "alice",
            "active_timer": false,
            "uptime_seconds": 3600.5
        }
    """
    active = storage.get_active_time_entry(user.user_id)

    return StatusResponse(
        api_enabled=config.get("api.enabled", False),
        authentication_enabled=config.get("api.authentication.enabled", True),
        cors_enabled=config.get("api.cors.enabled", True),
        user_id=user.user_id,
        active_timer=active is not None,
        uptime_seconds=time.time() - _server_start_time,
    )
