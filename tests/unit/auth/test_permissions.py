"""Unit tests for the authorization policy."""

from __future__ import annotations

import pytest

from recipe_portal.auth.permissions import (
    ROLE_PERMISSIONS,
    Permission,
    can_create_category,
    can_manage_category,
    can_manage_user,
    can_moderate_recipe,
    can_mutate_recipe,
    get_permissions_for_role,
    has_permission,
    require,
)
from recipe_portal.core.exceptions import PermissionDeniedError
from recipe_portal.models import Role
from tests.factories import RecipeFactory


pytestmark = pytest.mark.unit


class TestRolePermissions:
    def test_admin_has_every_permission(self) -> None:
        assert ROLE_PERMISSIONS[Role.ADMIN] == frozenset(Permission)

    def test_regular_has_only_own_scoped_permissions(self) -> None:
        assert get_permissions_for_role(Role.REGULAR) == {
            Permission.RECIPE_CREATE,
            Permission.RECIPE_UPDATE_OWN,
            Permission.USER_UPDATE_OWN,
        }

    @pytest.mark.parametrize("role", [None, "", "superuser"])
    def test_unknown_roles_get_nothing(self, role: str | None) -> None:
        assert get_permissions_for_role(role) == frozenset()
        assert has_permission(role, Permission.RECIPE_CREATE) is False

    def test_accepts_plain_strings(self) -> None:
        assert has_permission("admin", "category:manage") is True


class TestDecisions:
    @pytest.mark.parametrize(
        ("role", "allowed"), [(Role.ADMIN, True), (Role.REGULAR, False), (None, False)]
    )
    def test_admin_only_decisions(self, role: Role | None, allowed: bool) -> None:
        assert can_create_category(role) is allowed
        assert can_manage_category(role) is allowed
        assert can_moderate_recipe(role) is allowed

    def test_mutate_own_recipe(self) -> None:
        recipe = RecipeFactory.build(author_id=7)

        assert can_mutate_recipe(7, Role.REGULAR, recipe) is True
        assert can_mutate_recipe(8, Role.REGULAR, recipe) is False
        assert can_mutate_recipe(None, Role.REGULAR, recipe) is False
        assert can_mutate_recipe(1, Role.ADMIN, recipe) is True

    def test_mutate_agrees_with_can_edit(self) -> None:
        recipe = RecipeFactory.build(author_id=7)

        for actor_id, role in [(7, Role.REGULAR), (8, Role.REGULAR), (2, Role.ADMIN)]:
            assert can_mutate_recipe(actor_id, role, recipe) is recipe.can_edit(
                actor_id, role
            )

    def test_manage_user(self) -> None:
        assert can_manage_user(7, Role.REGULAR, 7) is True
        assert can_manage_user(7, Role.REGULAR, 8) is False
        assert can_manage_user(1, Role.ADMIN, 8) is True


class TestRequire:
    def test_passes_when_allowed(self) -> None:
        require(True)

    def test_raises_with_message(self) -> None:
        with pytest.raises(PermissionDeniedError, match="Only admins") as exc_info:
            require(False, "Only admins")

        assert exc_info.value.code == "PERMISSION_DENIED"
