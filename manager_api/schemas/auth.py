"""Request/response schemas for local auth endpoints."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for bodies exchanged with the browser client (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(BaseModel):
    """Credentials for login; missing or null fields are treated as empty and rejected with 401."""

    username: str = Field(default="", description="Username")
    password: str = Field(default="", description="Password")

    @field_validator("username", "password", mode="before")
    @classmethod
    def null_to_empty(cls, v: str | None) -> str:
        return "" if v is None else v


class RefreshRequest(CamelModel):
    """Refresh token exchange."""

    refresh_token: str | None = Field(default=None, description="JWT refresh token")


class UserClaims(BaseModel):
    """Identity asserted by both access and refresh tokens."""

    model_config = ConfigDict(extra="ignore")

    sub: str = Field(..., description="User identifier from the legacy table")
    username: str | None = Field(default=None, description="Trimmed username column value")
    provider: Literal["local"] = Field(default="local", description="Identity provider tag")

    def to_claims(self) -> dict[str, str]:
        """Claims dict for signing; username is omitted when unknown."""
        return self.model_dump(exclude_none=True)


class LoginResponse(CamelModel):
    """Tokens and user claims returned after successful login."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="Bearer", description="Token type")
    user: UserClaims


class RefreshResponse(CamelModel):
    """New access token issued from a refresh token."""

    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="Bearer", description="Token type")
