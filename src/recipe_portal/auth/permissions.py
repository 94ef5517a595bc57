"""Role-based authorization policy.

Permissions are granular ``resource:action`` strings; roles map to a set of
permissions. The ``can_*`` decision functions combine a role check with an
ownership check where the action targets a specific entity. All functions
are pure.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

from recipe_portal.core.exceptions import PermissionDeniedError
from recipe_portal.models.enums import Role


if TYPE_CHECKING:
    from recipe_portal.models.recipe import Recipe


class Permission(StrEnum):
    """Application permissions.

    Permissions follow the pattern: resource:action
    """

    # Recipe permissions
    RECIPE_CREATE = "recipe:create"
    RECIPE_UPDATE_OWN = "recipe:update_own"
    RECIPE_UPDATE_ANY = "recipe:update_any"
    RECIPE_MODERATE = "recipe:moderate"

    # Category permissions
    CATEGORY_CREATE = "category:create"
    CATEGORY_MANAGE = "category:manage"

    # User permissions
    USER_UPDATE_OWN = "user:update_own"
    USER_MANAGE = "user:manage"


# Role to permissions mapping
ROLE_PERMISSIONS: dict[Role, frozenset[Permission]] = {
    Role.REGULAR: frozenset(
        {
            Permission.RECIPE_CREATE,
            Permission.RECIPE_UPDATE_OWN,
            Permission.USER_UPDATE_OWN,
        }
    ),
    Role.ADMIN: frozenset(Permission),
}


def _as_role(role: Role | str | None) -> Role | None:
    if role is None:
        return None
    try:
        return Role(role)
    except ValueError:
        return None


def get_permissions_for_role(role: Role | str | None) -> frozenset[Permission]:
    """Permissions granted to ``role``; unknown roles get none."""
    resolved = _as_role(role)
    if resolved is None:
        return frozenset()
    return ROLE_PERMISSIONS.get(resolved, frozenset())


def has_permission(role: Role | str | None, permission: Permission | str) -> bool:
    return str(permission) in {str(p) for p in get_permissions_for_role(role)}


def can_create_category(role: Role | str | None) -> bool:
    """Only admins may create categories."""
    return has_permission(role, Permission.CATEGORY_CREATE)


def can_manage_category(role: Role | str | None) -> bool:
    """Only admins may rename, describe, deactivate or activate categories."""
    return has_permission(role, Permission.CATEGORY_MANAGE)


def can_moderate_recipe(role: Role | str | None) -> bool:
    """Only admins may change a recipe's ``approved`` and ``active`` flags."""
    return has_permission(role, Permission.RECIPE_MODERATE)


def can_mutate_recipe(
    actor_id: int | None,
    actor_role: Role | str | None,
    recipe: Recipe,
) -> bool:
    """Owner or admin, the same rule as ``Recipe.can_edit``."""
    if has_permission(actor_role, Permission.RECIPE_UPDATE_ANY):
        return True
    return (
        has_permission(actor_role, Permission.RECIPE_UPDATE_OWN)
        and actor_id is not None
        and recipe.author_id == actor_id
    )


def can_manage_user(
    actor_id: int | None,
    actor_role: Role | str | None,
    target_id: int,
) -> bool:
    """Users may manage their own account; admins may manage any account."""
    if has_permission(actor_role, Permission.USER_MANAGE):
        return True
    return (
        has_permission(actor_role, Permission.USER_UPDATE_OWN)
        and actor_id is not None
        and actor_id == target_id
    )


def require(allowed: bool, message: str = "Insufficient permissions") -> None:
    """Raise ``PermissionDeniedError`` unless ``allowed``."""
    if not allowed:
        raise PermissionDeniedError(message)
