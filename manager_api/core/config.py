"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PasswordAlgorithm = Literal["plain", "bcrypt", "sha256"]
Sha256Transform = Literal["none", "trim", "upper", "lower", "trim-upper", "trim-lower"]

PASSWORD_ALGORITHMS: tuple[str, ...] = ("plain", "bcrypt", "sha256")
SHA256_TRANSFORMS: tuple[str, ...] = (
    "none",
    "trim",
    "upper",
    "lower",
    "trim-upper",
    "trim-lower",
)

DEFAULT_ACCESS_SECRET = "change-access-secret"
DEFAULT_REFRESH_SECRET = "change-refresh-secret"

# One year; upper bound for either token lifetime.
MAX_TOKEN_TTL_SECONDS = 31_536_000


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_PREFIX: str = ""
    # Comma-separated list of browser origins allowed by CORS; empty means any origin in dev.
    CLIENT_ORIGIN: str = ""

    # Oracle connection (legacy user table lives here)
    ORACLE_DB_USER: str | None = None
    ORACLE_DB_PASSWORD: SecretStr | None = None
    ORACLE_DB_CONNECT_STRING: str | None = None

    # Legacy table layout; identifiers are validated again before each query
    ORACLE_AUTH_TABLE: str = "SGDT947"
    ORACLE_AUTH_USERNAME_COLUMN: str = "USUARIO"
    ORACLE_AUTH_PASSWORD_COLUMN: str = "PASSWORDD"

    # Password comparison
    ORACLE_AUTH_PASSWORD_ALGORITHM: PasswordAlgorithm | None = None
    ORACLE_AUTH_PASSWORD_HASHED: bool = False
    ORACLE_AUTH_SHA256_TRANSFORM: Sha256Transform = "trim-upper"
    ORACLE_AUTH_SHA256_ENABLE_FALLBACKS: bool = True
    # Logs lookup misses and SHA-256 candidate digests. Never enable in production.
    ORACLE_AUTH_DEBUG: bool = False

    # JWT access/refresh tokens (secrets must differ)
    JWT_ACCESS_SECRET: SecretStr = SecretStr(DEFAULT_ACCESS_SECRET)
    JWT_ACCESS_EXPIRES_IN: int = 900
    JWT_REFRESH_SECRET: SecretStr = SecretStr(DEFAULT_REFRESH_SECRET)
    JWT_REFRESH_EXPIRES_IN: int = 604800
    JWT_ALGORITHM: str = "HS256"

    @field_validator("ORACLE_DB_USER", "ORACLE_DB_CONNECT_STRING", mode="before")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None or not str(v).strip():
            return None
        return str(v).strip()

    @field_validator("ORACLE_AUTH_PASSWORD_ALGORITHM", mode="before")
    @classmethod
    def normalize_password_algorithm(cls, v: str | None) -> str | None:
        # Unknown values fall back to the legacy HASHED flag, same as unset.
        if v is None:
            return None
        s = str(v).strip().lower()
        return s if s in PASSWORD_ALGORITHMS else None

    @field_validator("ORACLE_AUTH_SHA256_TRANSFORM", mode="before")
    @classmethod
    def normalize_sha256_transform(cls, v: str | None) -> str:
        if v is None:
            return "trim-upper"
        s = str(v).strip().lower()
        return s if s in SHA256_TRANSFORMS else "trim-upper"

    @field_validator("JWT_ACCESS_SECRET", "JWT_REFRESH_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value() or not v.get_secret_value().strip():
            raise ValueError("JWT secrets must be set and non-empty")
        return v

    @field_validator("JWT_ACCESS_EXPIRES_IN", "JWT_REFRESH_EXPIRES_IN")
    @classmethod
    def validate_token_ttl(cls, v: int) -> int:
        if v < 1 or v > MAX_TOKEN_TTL_SECONDS:
            raise ValueError(
                "JWT expiry must be between 1 and 31536000 seconds (1 year)"
            )
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("JWT_ALGORITHM must be set and non-empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Reject insecure defaults when APP_ENV=prod."""
        if self.APP_ENV != "prod":
            return self
        access = self.JWT_ACCESS_SECRET.get_secret_value()
        refresh = self.JWT_REFRESH_SECRET.get_secret_value()
        if access == DEFAULT_ACCESS_SECRET or refresh == DEFAULT_REFRESH_SECRET:
            raise ValueError(
                "JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be changed in production"
            )
        if access == refresh:
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ")
        if self.ORACLE_AUTH_DEBUG:
            raise ValueError("ORACLE_AUTH_DEBUG must be disabled in production")
        return self

    @property
    def password_algorithm(self) -> PasswordAlgorithm:
        """Configured algorithm; the legacy HASHED flag selects bcrypt when none is set."""
        if self.ORACLE_AUTH_PASSWORD_ALGORITHM is not None:
            return self.ORACLE_AUTH_PASSWORD_ALGORITHM
        if self.ORACLE_AUTH_PASSWORD_HASHED:
            return "bcrypt"
        return "plain"

    @property
    def client_origins(self) -> list[str]:
        return [o.strip() for o in self.CLIENT_ORIGIN.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()
