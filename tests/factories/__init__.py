"""Factory configuration and exports.

This module exports all factories for convenient importing in tests.
"""

from tests.factories.entities import (
    CategoryFactory,
    RecipeFactory,
    UserFactory,
    category_row,
    recipe_row,
    user_row,
)
from tests.factories.settings import SettingsFactory


__all__ = [
    "CategoryFactory",
    "RecipeFactory",
    "SettingsFactory",
    "UserFactory",
    "category_row",
    "recipe_row",
    "user_row",
]
