"""Typed settings configuration - single source of truth.

Built once at process start and injected into the app; handlers never read
the environment directly.
"""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_ORIGINS = (
    "https://quickserve.io",
    "http://localhost:5173",
    "http://localhost:3000",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", frozen=True
    )

    # Document store (Appwrite)
    appwrite_function_api_endpoint: str | None = None
    appwrite_function_project_id: str | None = None
    appwrite_api_key: SecretStr | None = None
    appwrite_database_id: str = "main_database"
    users_collection_id: str = "users"
    restaurants_collection_id: str = "restaurants"
    document_store_timeout_seconds: float = 10.0

    # Upstream inference API
    claude_api_key: SecretStr | None = None
    anthropic_base_url: str = "https://api.anthropic.com"
    anthropic_version: str = "2023-06-01"
    default_model: str = "claude-3-5-sonnet-20241022"
    default_max_tokens: int = 2000
    analytics_max_tokens: int = 1500
    upstream_timeout_seconds: float = 60.0

    # CORS
    allowed_origins: tuple[str, ...] = DEFAULT_ALLOWED_ORIGINS
    default_origin: str = "https://quickserve.io"
    reject_unknown_origins: bool = True

    # Auth
    auth_mode: Literal["header", "jwt"] = "header"

    @property
    def document_store_configured(self) -> bool:
        """True when all three document store connection parameters are set."""
        return bool(
            self.appwrite_function_api_endpoint
            and self.appwrite_function_project_id
            and self.appwrite_api_key
            and self.appwrite_api_key.get_secret_value()
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
