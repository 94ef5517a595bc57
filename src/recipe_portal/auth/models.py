"""Authentication result models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from recipe_portal.models.enums import Role
from recipe_portal.models.user import User


class Actor(BaseModel):
    """The authenticated caller on whose behalf an operation runs.

    Built from verified token claims by the HTTP layer, or directly in
    tests and scripts.
    """

    user_id: int
    role: Role = Role.REGULAR

    model_config = {"frozen": True}

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class AuthenticatedSession(BaseModel):
    """Outcome of a successful ``authenticate`` call."""

    user: User
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")


class AuthResult(BaseModel):
    """Outcome of ``login``, successful or not.

    Attributes:
        success: Whether the credentials were accepted.
        user: The account on success, otherwise None.
        message: Human-readable outcome, safe to show to the caller.
        error: Error code of the failure (see ``PortalError.code``).
        access_token: Issued token on success.
    """

    success: bool
    user: User | None = None
    message: str
    error: str | None = None
    access_token: str | None = None
    expires_in: int | None = None
