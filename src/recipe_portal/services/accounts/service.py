"""Account service.

Users manage their own profile; admins manage every account. Role and
active flag changes from non-admins are dropped before the write.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from recipe_portal.auth.permissions import (
    Permission,
    can_manage_user,
    has_permission,
    require,
)
from recipe_portal.core.exceptions import NotFoundError
from recipe_portal.database.repositories.users import UserRepository
from recipe_portal.models.base import drop_fields
from recipe_portal.observability.logging import get_logger


if TYPE_CHECKING:
    from recipe_portal.auth.models import Actor
    from recipe_portal.database.query import Page, Pagination
    from recipe_portal.models.user import User, UserFilters, UserUpdate

logger = get_logger(__name__)

# Fields only an admin may change
PRIVILEGED_FIELDS = frozenset({"role", "active"})


class AccountService:
    """Profile reads and updates on behalf of an actor."""

    def __init__(self, users: UserRepository | None = None) -> None:
        self._users = users or UserRepository()

    async def get_profile(self, user_id: int) -> User:
        """Get an active account.

        Raises:
            NotFoundError: If the account does not exist or is inactive.
        """
        user = await self._users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def update_profile(
        self,
        actor: Actor,
        user_id: int,
        changes: UserUpdate | dict[str, Any],
    ) -> User:
        """Update a profile.

        Raises:
            PermissionDeniedError: If the actor is neither the owner nor an admin.
            NoValidFieldsError: If nothing updatable remains.
        """
        require(
            can_manage_user(actor.user_id, actor.role, user_id),
            "You can only update your own profile",
        )
        if not actor.is_admin:
            changes = drop_fields(changes, PRIVILEGED_FIELDS)

        return await self._users.update(user_id, changes)

    async def deactivate(self, actor: Actor, user_id: int) -> User:
        """Deactivate an account.

        Raises:
            PermissionDeniedError: If the actor is neither the owner nor an admin.
            NotFoundError: If the account does not exist or is already inactive.
        """
        require(
            can_manage_user(actor.user_id, actor.role, user_id),
            "You can only deactivate your own account",
        )
        await self.get_profile(user_id)

        user = await self._users.deactivate(user_id)
        logger.info("User deactivated", user_id=user_id, actor_id=actor.user_id)
        return user

    async def list_users(
        self,
        actor: Actor,
        filters: UserFilters | dict[str, Any] | None = None,
        pagination: Pagination | None = None,
    ) -> Page[User]:
        """Admin listing of accounts."""
        require(has_permission(actor.role, Permission.USER_MANAGE))
        return await self._users.list(filters, pagination)
