"""Database repositories."""

from recipe_portal.database.repositories.categories import CategoryRepository
from recipe_portal.database.repositories.recipes import RecipeRepository
from recipe_portal.database.repositories.users import UserRepository


__all__ = ["CategoryRepository", "RecipeRepository", "UserRepository"]
