"""Category service package."""

from recipe_portal.services.categories.service import CategoryService


__all__ = ["CategoryService"]
