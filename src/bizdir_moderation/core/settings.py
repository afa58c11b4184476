"""Application settings and configuration.

This module defines all configuration options for the moderation service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Biz Directory Moderation", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(default="change-me", alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Database configuration
    database_url: str = Field(default="sqlite:///./bizdir.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Reputation thresholds (points required to unlock a capability without a role)
    reputation_publish_threshold: int = Field(default=100, alias="REPUTATION_PUBLISH_THRESHOLD")
    reputation_manage_tags_threshold: int = Field(
        default=200,
        alias="REPUTATION_MANAGE_TAGS_THRESHOLD",
    )
    reputation_moderate_threshold: int = Field(default=500, alias="REPUTATION_MODERATE_THRESHOLD")

    # Moderation queue paging
    queue_default_limit: int = Field(default=20, alias="MODERATION_QUEUE_DEFAULT_LIMIT")
    queue_max_limit: int = Field(default=100, alias="MODERATION_QUEUE_MAX_LIMIT")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling such as Alembic."""
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url

    @property
    def reputation_thresholds(self) -> dict[str, int]:
        """Return the capability to minimum-points table.

        Returns:
            Mapping of reputation-gated capability names to required points
        """
        return {
            "publish_listings": self.reputation_publish_threshold,
            "manage_tags": self.reputation_manage_tags_threshold,
            "moderate_content": self.reputation_moderate_threshold,
        }


settings = Settings()
