"""Application services.

Each service enforces the authorization policy for an ``Actor`` and then
delegates to the entity repositories.
"""

from recipe_portal.services.accounts import AccountService
from recipe_portal.services.categories import CategoryService
from recipe_portal.services.recipes import RecipeService


__all__ = ["AccountService", "CategoryService", "RecipeService"]
