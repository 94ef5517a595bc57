"""Domain entities and their write models."""

from recipe_portal.models.category import (
    Category,
    CategoryCreate,
    CategoryFilters,
    CategoryUpdate,
)
from recipe_portal.models.enums import Difficulty, Role
from recipe_portal.models.recipe import (
    Recipe,
    RecipeCreate,
    RecipeFilters,
    RecipeUpdate,
)
from recipe_portal.models.user import User, UserCreate, UserFilters, UserUpdate


__all__ = [
    "Category",
    "CategoryCreate",
    "CategoryFilters",
    "CategoryUpdate",
    "Difficulty",
    "Recipe",
    "RecipeCreate",
    "RecipeFilters",
    "RecipeUpdate",
    "Role",
    "User",
    "UserCreate",
    "UserFilters",
    "UserUpdate",
]
