"""
Local username/password login against the legacy Oracle user table, with
access/refresh JWT issuance.

The table, its username column and its password column come from settings.
Passwords are compared as plain text, bcrypt, or SHA-256 hex digests; the
SHA-256 path can try several historical normalizations of the password.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

import jwt
from sqlalchemy import bindparam, column, func, literal_column, select, table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from manager_api.core.errors import (
    CredentialDecodeError,
    CredentialStoreError,
    InvalidIdentifierError,
    UnauthorizedError,
)
from manager_api.core.security import (
    decode_token,
    sha256_hex,
    sign_token,
    strip_time_claims,
    verify_password,
)
from manager_api.schemas.auth import LoginResponse, RefreshResponse, UserClaims

if TYPE_CHECKING:
    from manager_api.core.config import Settings

logger = logging.getLogger(__name__)

SAFE_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Columns tried, in order, for the token subject before the username column.
ID_COLUMNS = ("ID", "USER_ID", "USUARIO_ID", "CODIGO")
FALLBACK_SUBJECT = "local-user"
TOKEN_TYPE = "Bearer"

INVALID_CREDENTIALS = "Invalid credentials"

_SHA256_VARIANTS = {
    "none": lambda p: p,
    "trim": lambda p: p.strip(),
    "upper": lambda p: p.upper(),
    "lower": lambda p: p.lower(),
    "trim-upper": lambda p: p.strip().upper(),
    "trim-lower": lambda p: p.strip().lower(),
}


@dataclass(frozen=True)
class CredentialRecord:
    """Decoded legacy row: stored password plus the identity claims it yields."""

    password: str
    subject: str
    username: str | None

    @classmethod
    def from_row(
        cls,
        row: Mapping[str, Any],
        password_column: str,
        username_column: str,
    ) -> CredentialRecord:
        """
        Decode a column->value mapping. Column names are matched case-insensitively
        since drivers disagree on whether Oracle names come back upper or lower case.
        Raises CredentialDecodeError when the password column is missing or not a string.
        """
        values = {str(k).upper(): v for k, v in row.items()}
        password_key = password_column.upper()
        username_key = username_column.upper()

        password = values.get(password_key)
        if not isinstance(password, str):
            raise CredentialDecodeError(
                f"Password column {password_key} was not found or is invalid in Oracle table."
            )

        subject: Any = None
        for key in (*ID_COLUMNS, username_key):
            if values.get(key) is not None:
                subject = values[key]
                break
        if subject is None:
            subject = FALLBACK_SUBJECT

        username_value = values.get(username_key)
        return cls(
            password=password,
            subject=str(subject),
            username=username_value.strip() if isinstance(username_value, str) else None,
        )

    def claims(self) -> UserClaims:
        return UserClaims(sub=self.subject, username=self.username)


def safe_sql_identifier(raw_value: str) -> str:
    """Validate a configured table/column name and return it upper-cased."""
    value = (raw_value or "").strip()
    if not SAFE_IDENTIFIER_RE.match(value):
        raise InvalidIdentifierError(f"Invalid SQL identifier: {raw_value}")
    return value.upper()


def _user_lookup_query(table_name: str, username_column: str):
    """SELECT * for the single row whose trimmed username matches, case-insensitively."""
    user_column = column(username_column)
    return (
        select(literal_column("*"))
        .select_from(table(table_name))
        .where(func.upper(func.trim(user_column)) == func.upper(bindparam("username")))
        .limit(1)
    )


def find_user_by_username(
    username: str, settings: Settings, engine: Engine
) -> dict[str, Any] | None:
    """
    Fetch at most one legacy row for username. One connection is acquired and
    always released. Store failures raise CredentialStoreError.
    """
    table_name = safe_sql_identifier(settings.ORACLE_AUTH_TABLE)
    username_column = safe_sql_identifier(settings.ORACLE_AUTH_USERNAME_COLUMN)
    query = _user_lookup_query(table_name, username_column)

    try:
        with engine.connect() as conn:
            row = conn.execute(query, {"username": username.strip()}).mappings().first()
    except SQLAlchemyError as e:
        logger.error("Credential store query failed: %s", type(e).__name__)
        raise CredentialStoreError("Credential store is unavailable") from e
    return dict(row) if row is not None else None


def sha256_candidates(password: str, settings: Settings) -> dict[str, str]:
    """
    Digests of password under the configured transform and, unless fallbacks
    are disabled, under every other known normalization.
    """
    configured = _SHA256_VARIANTS[settings.ORACLE_AUTH_SHA256_TRANSFORM]
    variants = {"configured": configured(password)}
    if settings.ORACLE_AUTH_SHA256_ENABLE_FALLBACKS:
        for name, transform in _SHA256_VARIANTS.items():
            variants[name] = transform(password)
    return {name: sha256_hex(value) for name, value in variants.items()}


def _password_matches(provided: str, persisted: str, settings: Settings) -> bool:
    algorithm = settings.password_algorithm
    stored = persisted.strip()

    if algorithm == "sha256":
        stored_hash = stored.lower()
        candidates = sha256_candidates(provided, settings)
        matched = stored_hash in candidates.values()
        if not matched and settings.ORACLE_AUTH_DEBUG:
            logger.warning(
                "SHA256 mismatch. Stored hash: %s. Candidates: %s",
                stored_hash,
                json.dumps(candidates),
            )
        return matched
    if algorithm == "bcrypt":
        return verify_password(provided, stored)
    return provided == stored


def _issue_access_token(claims: dict[str, Any], settings: Settings) -> str:
    return sign_token(
        claims,
        settings.JWT_ACCESS_SECRET.get_secret_value(),
        settings.JWT_ACCESS_EXPIRES_IN,
        settings.JWT_ALGORITHM,
    )


def login(
    username: str | None,
    password: str | None,
    settings: Settings,
    engine: Engine,
) -> LoginResponse:
    """
    Verify username/password against the legacy table and issue tokens.

    Raises UnauthorizedError for missing credentials, unknown users and wrong
    passwords (same message for the last two), InternalAuthError subclasses for
    bad identifiers, an unexpected row shape or store failures.
    """
    normalized_username = (username or "").strip()
    if not normalized_username or not password:
        raise UnauthorizedError("Username and password are required")

    password_column = safe_sql_identifier(settings.ORACLE_AUTH_PASSWORD_COLUMN)
    row = find_user_by_username(normalized_username, settings, engine)
    if row is None:
        logger.info("Local login rejected", extra={"auth_status": "failure"})
        if settings.ORACLE_AUTH_DEBUG:
            logger.warning("No Oracle user found for username: %s", normalized_username)
        raise UnauthorizedError(INVALID_CREDENTIALS)

    record = CredentialRecord.from_row(
        row,
        password_column=password_column,
        username_column=safe_sql_identifier(settings.ORACLE_AUTH_USERNAME_COLUMN),
    )
    if not _password_matches(password, record.password, settings):
        logger.info("Local login rejected", extra={"auth_status": "failure"})
        raise UnauthorizedError(INVALID_CREDENTIALS)

    user = record.claims()
    claims = user.to_claims()
    access_token = _issue_access_token(claims, settings)
    refresh_token = sign_token(
        claims,
        settings.JWT_REFRESH_SECRET.get_secret_value(),
        settings.JWT_REFRESH_EXPIRES_IN,
        settings.JWT_ALGORITHM,
    )
    logger.info(
        "Local login succeeded",
        extra={"auth_status": "success", "subject": user.sub},
    )
    return LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type=TOKEN_TYPE,
        user=user,
    )


def refresh(refresh_token: str, settings: Settings) -> RefreshResponse:
    """Exchange a refresh token for a new access token carrying the same claims."""
    try:
        payload = decode_token(
            refresh_token,
            settings.JWT_REFRESH_SECRET.get_secret_value(),
            settings.JWT_ALGORITHM,
        )
    except jwt.PyJWTError as e:
        raise UnauthorizedError("Invalid refresh token") from e

    return RefreshResponse(
        access_token=_issue_access_token(payload, settings),
        token_type=TOKEN_TYPE,
    )


def verify_access_token(access_token: str, settings: Settings) -> dict[str, Any]:
    """
    Decode an access token and return its claims without exp/iat/nbf.
    Raises UnauthorizedError on any verification failure.
    """
    try:
        payload = decode_token(
            access_token,
            settings.JWT_ACCESS_SECRET.get_secret_value(),
            settings.JWT_ALGORITHM,
        )
    except jwt.PyJWTError as e:
        raise UnauthorizedError("Invalid access token") from e
    return strip_time_claims(payload)
