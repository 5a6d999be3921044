"""Application configuration loaded from environment variables.

Settings for the database, the embedding provider, search defaults and the
embedding backfill. Uses pydantic-settings for validation and .env file
support.
"""

import uuid

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from smartapply.providers.config import ProviderConfig

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "smartapply_dev_password"  # nosec B105


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "smartapply"
    database_user: str = "smartapply_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD
    # Server-side cap per statement; vector scans over large job tables can stall
    database_statement_timeout_ms: int = 15000
    database_connect_timeout_seconds: float = 10.0

    # API
    # 0.0.0.0 binds to all network interfaces (required for Docker containers)
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8000
    allowed_origins: list[str] = ["http://localhost:5173"]

    # Embedding provider
    embedding_provider: str = "openai"
    openai_api_key: SecretStr = SecretStr("")
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    embedding_max_attempts: int = 3
    embedding_retry_base_delay_ms: int = 5000
    embedding_request_timeout_seconds: float = 30.0

    # Backfill: one request every 25s keeps a free-tier key under its RPM cap
    backfill_delay_seconds: float = 25.0
    backfill_page_size: int = 10

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Local-first mode: DEFAULT_USER_ID provides user context without auth
    default_user_id: uuid.UUID | None = None

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    def provider_config(self) -> ProviderConfig:
        """Build the embedding provider configuration from these settings.

        Returns:
            ProviderConfig carrying credentials and retry policy.
        """
        api_key = self.openai_api_key.get_secret_value()
        return ProviderConfig(
            embedding_provider=self.embedding_provider,
            openai_api_key=api_key or None,
            embedding_model=self.embedding_model,
            embedding_dimensions=self.embedding_dimensions,
            max_attempts=self.embedding_max_attempts,
            retry_base_delay_ms=self.embedding_retry_base_delay_ms,
            request_timeout_seconds=self.embedding_request_timeout_seconds,
        )

    @model_validator(mode="after")
    def check_settings(self) -> "Settings":
        """Validate configuration invariants.

        Checks:
        - Retry policy allows at least one attempt with a non-negative delay
        - Backfill delay is non-negative and page size positive
        - CORS must not use wildcard origin
        - Database password must not be the default in production
        """
        if self.embedding_max_attempts < 1:
            msg = (
                "EMBEDDING_MAX_ATTEMPTS must be at least 1. "
                f"Got: {self.embedding_max_attempts}"
            )
            raise ValueError(msg)
        if self.embedding_retry_base_delay_ms < 0:
            msg = "EMBEDDING_RETRY_BASE_DELAY_MS cannot be negative."
            raise ValueError(msg)
        if self.backfill_delay_seconds < 0:
            msg = "BACKFILL_DELAY_SECONDS cannot be negative."
            raise ValueError(msg)
        if self.database_statement_timeout_ms < 0:
            msg = "DATABASE_STATEMENT_TIMEOUT_MS cannot be negative."
            raise ValueError(msg)
        if self.backfill_page_size < 1:
            msg = f"BACKFILL_PAGE_SIZE must be at least 1. Got: {self.backfill_page_size}"
            raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = "ALLOWED_ORIGINS must not contain '*' (wildcard)."
            raise ValueError(msg)

        if (
            self.environment == "production"
            and self.database_password == _INSECURE_DEFAULT_PASSWORD
        ):
            msg = (
                "Cannot use default database password in production. "
                "Set DATABASE_PASSWORD environment variable to a secure value."
            )
            raise ValueError(msg)

        return self


settings = Settings()
