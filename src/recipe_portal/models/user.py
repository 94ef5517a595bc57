"""User account entity and write models."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import Field, field_validator

from recipe_portal.models.base import Entity, FilterModel, PartialUpdate, WriteModel
from recipe_portal.models.enums import Role


def normalize_email(email: str) -> str:
    """Case-normalize an email address for storage and lookup."""
    return email.strip().lower()


def _validate_email(value: str) -> str:
    value = normalize_email(value)
    local, _, domain = value.partition("@")
    if not local or "." not in domain:
        msg = "must be a valid email address"
        raise ValueError(msg)
    return value


class User(Entity):
    """Stored account. ``password_hash`` is excluded from every dump."""

    id: int
    name: str
    email: str
    password_hash: str = Field(default="", exclude=True, repr=False)
    role: Role = Role.REGULAR
    active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login_at: datetime | None = None
    failed_login_count: int = 0
    locked_until: datetime | None = None

    def is_active(self) -> bool:
        return self.active

    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def is_locked(self, now: datetime | None = None) -> bool:
        """True while ``now`` is before ``locked_until``."""
        if self.locked_until is None:
            return False
        now = now or datetime.now(UTC)
        locked_until = self.locked_until
        if locked_until.tzinfo is None:
            locked_until = locked_until.replace(tzinfo=UTC)
        return now < locked_until

    def to_public_dict(self) -> dict[str, Any]:
        """Profile view without credentials or lockout bookkeeping."""
        return self.model_dump(
            mode="json",
            exclude={"failed_login_count", "locked_until"},
        )


class UserCreate(WriteModel):
    """Registration payload; the secret arrives already hashed."""

    name: str = Field(min_length=1, max_length=100)
    email: str = Field(max_length=255)
    password_hash: str = Field(min_length=1)
    role: Role = Role.REGULAR

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return _validate_email(value)


class UserUpdate(PartialUpdate):
    """Profile fields a caller may change through ``update``."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    role: Role | None = None
    active: bool | None = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str | None) -> str | None:
        return None if value is None else _validate_email(value)


class UserFilters(FilterModel):
    """Optional filters for the admin user listing."""

    role: Role | None = None
    active: bool | None = None
    term: str | None = None
