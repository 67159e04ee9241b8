"""Pydantic request/response schemas."""

from manager_api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    UserClaims,
)
from manager_api.schemas.health import HealthResponse

__all__ = [
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "RefreshRequest",
    "RefreshResponse",
    "UserClaims",
]
