"""Recipe service package."""

from recipe_portal.services.recipes.service import RecipeService


__all__ = ["RecipeService"]
