"""Shared test fixtures and configuration for the Recipe Portal tests."""

from __future__ import annotations

import os


# Settings are cached process-wide; pin the environment before anything loads them
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-minimum-32-characters-long")

from typing import TYPE_CHECKING  # noqa: E402

import pytest  # noqa: E402

from recipe_portal.auth.models import Actor  # noqa: E402
from recipe_portal.core.config import get_settings  # noqa: E402
from recipe_portal.models import Role  # noqa: E402
from tests.factories import SettingsFactory  # noqa: E402


if TYPE_CHECKING:
    from collections.abc import Generator

    from recipe_portal.core.config import Settings


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None]:
    """Drop cached settings so monkeypatched environments take effect."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with test defaults and a fixed JWT secret."""
    return SettingsFactory.build()


@pytest.fixture
def regular_actor() -> Actor:
    return Actor(user_id=7, role=Role.REGULAR)


@pytest.fixture
def other_actor() -> Actor:
    return Actor(user_id=8, role=Role.REGULAR)


@pytest.fixture
def admin_actor() -> Actor:
    return Actor(user_id=1, role=Role.ADMIN)
