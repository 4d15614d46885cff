"""Application settings and configuration.

This module defines all configuration options for the Food Connect application.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Food Connect", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./food_connect.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    # Seconds a SQLite writer waits for the database lock before failing.
    sqlite_busy_timeout: float = Field(default=30.0, alias="SQLITE_BUSY_TIMEOUT")

    # JWT authentication settings
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Community passwords are hashed with bcrypt at this cost factor.
    bcrypt_rounds: int = Field(default=10, alias="BCRYPT_ROUNDS")

    # Community lifecycle
    community_default_max_members: int = Field(
        default=50,
        alias="COMMUNITY_DEFAULT_MAX_MEMBERS",
    )
    invite_code_bytes: int = Field(default=12, alias="INVITE_CODE_BYTES")
    invite_code_max_attempts: int = Field(default=5, alias="INVITE_CODE_MAX_ATTEMPTS")

    # Pagination
    message_page_size: int = Field(default=50, alias="MESSAGE_PAGE_SIZE")
    message_page_max: int = Field(default=100, alias="MESSAGE_PAGE_MAX")
    discovery_page_size: int = Field(default=20, alias="DISCOVERY_PAGE_SIZE")

    # CORS configuration for the static frontend
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return the database URL used by Alembic and the operator scripts."""
        return self.effective_database_url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
