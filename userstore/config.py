"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache): single instance per process

Design Decisions:
    - Defaults provided for all settings: a local SQLite file works out-of-the-box
    - Pool settings only apply to server databases (SQLite uses a static pool)
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """User store settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="USERSTORE_", case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./userstore.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Accounts
    password_hash_rounds: int = 12
    password_reset_token_ttl_seconds: int = 3600

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
