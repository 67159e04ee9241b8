"""Typed errors raised by the local authentication flow."""


class AuthError(Exception):
    """Base class for authentication failures; carries a client-facing message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UnauthorizedError(AuthError):
    """Missing or invalid credentials, or an invalid/expired token (HTTP 401)."""


class InternalAuthError(AuthError):
    """Server-side misconfiguration or store failure (HTTP 500)."""


class InvalidIdentifierError(InternalAuthError):
    """A configured table or column name is not a safe SQL identifier."""


class CredentialDecodeError(InternalAuthError):
    """The store row does not have the expected password column."""


class CredentialStoreError(InternalAuthError):
    """The credential store could not be reached or the query failed."""


class DatabaseNotConfiguredError(InternalAuthError):
    """Oracle connection parameters are missing from the environment."""
