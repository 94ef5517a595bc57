"""Application configuration using Pydantic Settings with YAML support.

This module provides centralized configuration management with:
- YAML-based configuration files organized by domain
- Environment-specific overrides (local, test, development, production)
- Environment variable loading for secrets
- Type validation and coercion
- Caching for performance
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_source import MultiYamlConfigSettingsSource


if TYPE_CHECKING:
    from pydantic_settings import PydanticBaseSettingsSource


# =============================================================================
# Nested Configuration Models (from YAML)
# =============================================================================


class AppSettings(BaseModel):
    """Application identity settings."""

    name: str = "Recipe Portal"
    version: str = "0.1.0"
    debug: bool = False


class DatabaseSettings(BaseModel):
    """PostgreSQL database configuration settings."""

    host: str = "localhost"
    port: int = 5432
    name: str = "recipe_portal"
    user: str | None = None  # PostgreSQL username
    min_pool_size: int = 2  # Minimum connections in pool
    max_pool_size: int = 10  # Maximum connections in pool
    command_timeout: float = 60.0  # Query timeout in seconds
    ssl: bool = False  # Enable SSL connection


class JwtSettings(BaseModel):
    """JWT token settings."""

    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60


class LockoutSettings(BaseModel):
    """Login lockout policy."""

    max_attempts: int = Field(default=5, ge=1)
    duration_minutes: int = Field(default=30, ge=1)


class PasswordSettings(BaseModel):
    """Password hashing settings."""

    bcrypt_rounds: int = Field(default=12, ge=4, le=31)


class AuthSettings(BaseModel):
    """Authentication configuration settings."""

    jwt: JwtSettings = JwtSettings()
    lockout: LockoutSettings = LockoutSettings()
    passwords: PasswordSettings = PasswordSettings()


class PaginationSettings(BaseModel):
    """Listing defaults."""

    default_limit: int = Field(default=10, ge=1)


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "json"


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """Application settings with YAML + environment variable support.

    Configuration is loaded from multiple sources with the following priority
    (highest to lowest):
    1. Environment variables
    2. .env file (secrets only)
    3. Environment-specific YAML files (config/environments/{APP_ENV}/)
    4. Base YAML files (config/base/)
    5. Default values in code

    Environment variables can override any setting using the nested delimiter '__'.
    For example: DATABASE__HOST=prod-db overrides database.host.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=False,
        env_nested_delimiter="__",
    )

    # =========================================================================
    # Environment Selection (from .env)
    # =========================================================================
    APP_ENV: str = "development"

    # =========================================================================
    # Nested Configuration Sections (from YAML)
    # =========================================================================
    app: AppSettings = AppSettings()
    database: DatabaseSettings = DatabaseSettings()
    auth: AuthSettings = AuthSettings()
    pagination: PaginationSettings = PaginationSettings()
    logging: LoggingSettings = LoggingSettings()

    # =========================================================================
    # Secrets (from .env only - never in YAML)
    # =========================================================================
    JWT_SECRET_KEY: str = ""
    DATABASE_PASSWORD: str = ""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings loading order.

        Priority (highest to lowest):
        1. init_settings - Values passed to Settings()
        2. env_settings - Environment variables
        3. dotenv_settings - .env file (secrets)
        4. yaml_settings - YAML files (base + environment)
        5. file_secret_settings - Docker secrets
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            MultiYamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    # =========================================================================
    # Computed Fields
    # =========================================================================

    @property
    def database_url(self) -> str:
        """Build PostgreSQL connection URL.

        URL format: postgresql://[user:password@]host:port/database

        Returns:
            PostgreSQL connection URL string
        """
        auth_part = ""
        if self.database.user and self.DATABASE_PASSWORD:
            auth_part = f"{self.database.user}:{self.DATABASE_PASSWORD}@"
        elif self.database.user:
            auth_part = f"{self.database.user}@"

        return (
            f"postgresql://{auth_part}{self.database.host}:"
            f"{self.database.port}/{self.database.name}"
        )

    # =========================================================================
    # Environment Helpers
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.APP_ENV == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.APP_ENV == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in test environment."""
        return self.APP_ENV == "test"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Using lru_cache ensures settings are only loaded once,
    improving performance and consistency.
    """
    return Settings()
