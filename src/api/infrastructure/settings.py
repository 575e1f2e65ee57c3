"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        COLLAB_DB_HOST: Database host (default: localhost)
        COLLAB_DB_PORT: Database port (default: 5432)
        COLLAB_DB_DATABASE: Database name (default: collab)
        COLLAB_DB_USERNAME: Database user (default: collab)
        COLLAB_DB_PASSWORD: Database password (required in production)
        COLLAB_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        COLLAB_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
    """

    model_config = SettingsConfigDict(
        env_prefix="COLLAB_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="collab", description="Database name")
    username: str = Field(default="collab", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class CacheSettings(BaseSettings):
    """Access decision cache settings.

    Environment variables:
        COLLAB_CACHE_BACKEND: "memory" (per process) or "redis" (default: memory)
        COLLAB_CACHE_TTL_SECONDS: Lifetime of cached decisions (default: 60)
        COLLAB_CACHE_REDIS_URL: Redis connection URL (default: redis://localhost:6379/0)
        COLLAB_CACHE_KEY_PREFIX: Prefix of every Redis key (default: collab)
    """

    model_config = SettingsConfigDict(
        env_prefix="COLLAB_CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    backend: Literal["memory", "redis", "none"] = Field(
        default="memory", description="Cache backend"
    )
    ttl_seconds: int = Field(
        default=60,
        description="Lifetime of cached access decisions in seconds",
        ge=1,
        le=3600,
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="Redis connection URL"
    )
    key_prefix: str = Field(default="collab", description="Redis key prefix")


class AccessSettings(BaseSettings):
    """Business defaults for groups and shares.

    Environment variables:
        COLLAB_ACCESS_DEFAULT_MAX_MEMBERS: Capacity of new groups (default: 10)
        COLLAB_ACCESS_SHARE_RETENTION_DAYS: Days an expired share is kept
            before housekeeping deletes it (default: 30)
        COLLAB_ACCESS_PUBLIC_GROUP_PAGE_SIZE: Page size of public group
            listings (default: 20)
    """

    model_config = SettingsConfigDict(
        env_prefix="COLLAB_ACCESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_max_members: int = Field(
        default=10, description="Capacity of new groups", ge=2
    )
    share_retention_days: int = Field(
        default=30, description="Days expired shares are retained", ge=0
    )
    public_group_page_size: int = Field(
        default=20, description="Public group listing page size", ge=1, le=100
    )


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Collab Access", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return get_cache_settings()

    @property
    def access(self) -> AccessSettings:
        """Get access settings."""
        return get_access_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings."""
    return DatabaseSettings()


@lru_cache
def get_cache_settings() -> CacheSettings:
    """Get cached cache settings."""
    return CacheSettings()


@lru_cache
def get_access_settings() -> AccessSettings:
    """Get cached access settings."""
    return AccessSettings()
