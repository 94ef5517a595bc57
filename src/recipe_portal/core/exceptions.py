"""Typed error taxonomy.

Every failure leaving the repositories and services is one of the
subclasses below. The HTTP layer maps ``code`` to a status; messages are
safe to show to clients and never carry raw driver text.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from datetime import datetime


class PortalError(Exception):
    """Base application error.

    All custom errors inherit from this class so callers can catch a
    single type at the boundary.
    """

    code = "PORTAL_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serializable ``{error, message}`` view."""
        return {"error": self.code, "message": self.message}


class DuplicateKeyError(PortalError):
    """A uniqueness invariant (user email, category name) was violated."""

    code = "DUPLICATE_KEY"


class NotFoundError(PortalError):
    """Entity absent or inactive."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: Any) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} with identifier '{identifier}' not found")


class NoValidFieldsError(PortalError):
    """Update called without any permitted field."""

    code = "NO_VALID_FIELDS"

    def __init__(self, message: str = "No valid fields to update") -> None:
        super().__init__(message)


class InvalidFieldError(PortalError):
    """A permitted field carried a value that failed validation."""

    code = "INVALID_FIELD"

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        self.fields = fields or []
        super().__init__(message)


class ForeignKeyInvalidError(PortalError):
    """A referenced category or author is missing or inactive."""

    code = "FOREIGN_KEY_INVALID"


class InvalidCredentialError(PortalError):
    """Wrong secret supplied for an existing account."""

    code = "INVALID_CREDENTIAL"

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class AccountLockedError(PortalError):
    """Account is inside its lockout window."""

    code = "ACCOUNT_LOCKED"

    def __init__(self, locked_until: datetime | None = None) -> None:
        self.locked_until = locked_until
        super().__init__(
            "Account temporarily locked due to too many failed login attempts"
        )


class PermissionDeniedError(PortalError):
    """Actor is not allowed to perform the operation."""

    code = "PERMISSION_DENIED"

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message)


class StorageError(PortalError):
    """Unclassified failure of the underlying database driver."""

    code = "STORAGE_ERROR"

    def __init__(self, message: str = "Storage operation failed") -> None:
        super().__init__(message)


class TokenError(PortalError):
    """Base error for access token verification."""

    code = "TOKEN_INVALID"


class TokenExpiredError(TokenError):
    """Token signature is valid but its expiry has passed."""

    code = "TOKEN_EXPIRED"


class TokenInvalidError(TokenError):
    """Token is malformed, tampered with, or missing required claims."""
