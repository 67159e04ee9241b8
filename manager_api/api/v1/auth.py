"""Local login, token refresh and Bearer-protected profile routes."""

import logging
from typing import Annotated, Any, NoReturn

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.engine import Engine

from manager_api.core.config import Settings, get_settings
from manager_api.core.database import get_engine
from manager_api.core.errors import AuthError, InternalAuthError, UnauthorizedError
from manager_api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
)
from manager_api.services import local_auth

logger = logging.getLogger(__name__)
router = APIRouter()
security = HTTPBearer(auto_error=False)


def _raise_http(e: AuthError) -> NoReturn:
    if isinstance(e, UnauthorizedError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    logger.error("Local auth failed with server error: %s", e.message)
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=e.message,
    ) from e


@router.post("/local/login", response_model=LoginResponse)
def local_login(
    body: LoginRequest,
    settings: Annotated[Settings, Depends(get_settings)],
    engine: Annotated[Engine, Depends(get_engine)],
) -> LoginResponse:
    """
    Authenticate against the legacy user table; returns access and refresh tokens.
    Include the access token in the Authorization header as: Bearer <accessToken>
    """
    try:
        return local_auth.login(body.username, body.password, settings, engine)
    except (UnauthorizedError, InternalAuthError) as e:
        _raise_http(e)


@router.post("/local/refresh", response_model=RefreshResponse)
def local_refresh(
    body: RefreshRequest,
    settings: Annotated[Settings, Depends(get_settings)],
) -> RefreshResponse:
    """Exchange a refresh token for a new access token (the refresh token is not rotated)."""
    if not body.refresh_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="refreshToken is required",
        )
    try:
        return local_auth.refresh(body.refresh_token, settings)
    except UnauthorizedError as e:
        _raise_http(e)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> dict[str, Any]:
    """Dependency: require a valid Bearer access token and return its claims. Raises 401 otherwise."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return local_auth.verify_access_token(credentials.credentials.strip(), settings)
    except UnauthorizedError as e:
        _raise_http(e)


@router.get("/local/profile")
def local_profile(
    current_user: Annotated[dict[str, Any], Depends(get_current_user)],
) -> dict[str, Any] | None:
    """Return the claims of the authenticated local user."""
    return current_user
