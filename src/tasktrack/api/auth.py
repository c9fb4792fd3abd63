"""Authentication for the API.

Requests carry a JWT bearer token whose ``sub`` claim is the user id. The
decoded token becomes the ``UserContext`` every endpoint passes to the core.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status  # type: ignore[import-untyped]
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer  # type: ignore[import-untyped]
from jose import JWTError, jwt  # type: ignore[import-untyped]

from tasktrack.api.dependencies import get_config
from tasktrack.core.config import ConfigManager
from tasktrack.core.models import UserContext

ALGORITHM = "HS256"

# auto_error is off so that disabled authentication needs no header
security = HTTPBearer(auto_error=False)


def create_access_token(
    data: dict[str, Any], secret_key: str, expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token.

    Args:
        data: Claims to encode in the token
        secret_key: Secret key for encoding
        expires_delta: Optional expiration time delta (default 24 hours)

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=24))
    to_encode.update({"exp": expire, "iat": now})

    encoded_jwt: str = jwt.encode(to_encode, secret_key, algorithm=ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str, secret_key: str) -> dict[str, Any]:
    """Decode and verify a token.

    Raises:
        JWTError: If the token is invalid or expired
    """
    payload: dict[str, Any] = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    return payload


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UserContext:
    """Resolve the calling user from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid or has no subject

    Note:
        When authentication is disabled in config, every request runs as
        the configured local user.
    """
    config = get_config(request)

    if not config.get("api.authentication.enabled", True):
        return config.default_user()

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    secret_key = config.get("api.authentication.secret_key")
    if not secret_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="API secret key not configured",
        )

    try:
        payload = decode_access_token(credentials.credentials, secret_key)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid authentication credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has no subject",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return UserContext(
        user_id=user_id,
        email=payload.get("email"),
        display_name=payload.get("name"),
    )


def get_token_expiry_seconds(config: ConfigManager) -> int:
    """Get token expiry time in seconds from config."""
    hours: int = config.get("api.authentication.token_expiry_hours", 24)
    return hours * 3600


def create_token_for_user(
    config: ConfigManager,
    user_id: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> dict[str, Any]:
    """Create a complete token response.

    Args:
        config: Configuration manager
        user_id: User identifier for the token (default: configured user)
        expires_delta: Token lifetime (default: from config)

    Returns:
        Dictionary with access_token, token_type, and expires_in
    """
    secret_key = config.ensure_api_secret_key()

    if expires_delta is None:
        expires_delta = timedelta(seconds=get_token_expiry_seconds(config))

    claims: dict[str, Any] = {"sub": user_id or config.get("user.id", "local-user")}
    if user_id is None and config.get("user.email"):
        claims["email"] = config.get("user.email")

    access_token = create_access_token(
        data=claims, secret_key=secret_key, expires_delta=expires_delta
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": int(expires_delta.total_seconds()),
    }
