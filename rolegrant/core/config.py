"""
Configuration using Pydantic Settings.
"""

from functools import lru_cache
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


MERGE_STRATEGIES = ("extend", "replace", "defaults-only")


class StoreSettings(BaseSettings):
    """
    Role configuration store.

    Every backend keeps the whole RoleConfig as a single JSON record
    under one key:
    - memory: In-process dict (dev/testing)
    - redis: Redis string key
    - database: One row in the role_configs table
    """

    model_config = SettingsConfigDict(env_prefix="ROLEGRANT_STORE_")

    backend: str = Field(
        default="memory",
        description="memory, redis, database",
    )
    key: str = Field(default="rolegrant_roles", description="Record key")

    # Redis
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_prefix: str = Field(default="")

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./rolegrant.db")


class GranterSettings(BaseSettings):
    """Role granter configuration."""

    model_config = SettingsConfigDict(env_prefix="ROLEGRANT_GRANTER_")

    adapter: str = Field(
        default="persistable",
        description="Granter adapter: persistable, static",
    )
    merge_strategy: str = Field(
        default="extend",
        description="How loaded data combines with defaults",
    )
    auto_load: bool = Field(
        default=True,
        description="Load on first ensure_ready() call",
    )

    @field_validator("merge_strategy")
    @classmethod
    def validate_merge_strategy(cls, v: str) -> str:
        if v not in MERGE_STRATEGIES:
            raise ValueError(f"merge_strategy must be one of {MERGE_STRATEGIES}")
        return v


class Settings(BaseSettings):
    """Main settings."""

    model_config = SettingsConfigDict(
        env_prefix="ROLEGRANT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field(default="development")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json", description="json or text")

    # Nested settings
    store: StoreSettings = Field(default_factory=StoreSettings)
    granter: GranterSettings = Field(default_factory=GranterSettings)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "staging", "production", "testing"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v not in ("json", "text"):
            raise ValueError("log_format must be 'json' or 'text'")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
