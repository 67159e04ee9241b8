"""Password hashing and JWT creation/verification for authentication."""

import hashlib
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12

# Registered time claims that are re-issued on every signature.
TIME_CLAIMS = ("exp", "iat", "nbf")


def hash_password(plain_password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a plain-text password with bcrypt (used to seed legacy rows in tests and tooling)."""
    # bcrypt has a 72-byte limit; truncate to avoid errors.
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored bcrypt hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def sha256_hex(value: str) -> str:
    """Lower-case hex SHA-256 digest of the UTF-8 encoding of value."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def strip_time_claims(payload: dict[str, Any]) -> dict[str, Any]:
    """Copy of payload without exp, iat and nbf."""
    return {k: v for k, v in payload.items() if k not in TIME_CLAIMS}


def sign_token(
    claims: dict[str, Any],
    secret: str,
    ttl_seconds: int,
    algorithm: str = "HS256",
) -> str:
    """Sign claims into a JWT that expires ttl_seconds from now."""
    now = datetime.now(UTC)
    payload = strip_time_claims(claims)
    payload["iat"] = now
    payload["exp"] = now + timedelta(seconds=ttl_seconds)
    return jwt.encode(payload, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> dict[str, Any]:
    """
    Decode and validate a JWT; return its payload (including exp and iat).
    Raises jwt.PyJWTError on invalid signature, malformed token or expiry.
    """
    return jwt.decode(token, secret, algorithms=[algorithm])
