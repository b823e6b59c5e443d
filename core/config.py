"""
Migration configuration using Pydantic Settings
"""

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings
from typing import Optional

from core.exceptions import ConfigurationError
from core.retry import RetryPolicy


class Settings(BaseSettings):
    """
    Immutable migration settings with environment variable support.

    Built once by an entry point and handed to every component; nothing in
    the engine reads the process environment on its own.
    """

    # Source (PostgreSQL)
    DATABASE_URL: str

    # Destination (Cloudflare D1)
    CLOUDFLARE_API_TOKEN: str = Field(..., min_length=1)
    CLOUDFLARE_ACCOUNT_ID: str = Field(..., min_length=1)
    D1_DATABASE_ID: str = Field(..., min_length=1)
    D1_API_BASE_URL: str = "https://api.cloudflare.com/client/v4"
    MAX_SQL_VARIABLES: int = Field(99, gt=0)

    # Migration
    TABLE_NAME: str = "coordinate_speed_new"
    CHECKPOINT_SIZE: int = Field(100_000, gt=0)
    BATCH_SIZE: Optional[int] = Field(None, gt=0)
    RESUME_MODE: bool = True
    FAILURE_POLICY: str = "abort"

    # Retry / pacing
    MAX_RETRIES: int = Field(3, ge=1)
    RETRY_BASE_DELAY: float = Field(1.0, ge=0)
    RETRY_BACKOFF_MULTIPLIER: float = Field(2.0, ge=1)
    RETRY_MAX_DELAY: float = Field(10.0, ge=0)
    INTER_BATCH_DELAY: float = Field(0.2, ge=0)
    KEEPALIVE_INTERVAL_BATCHES: int = Field(100, gt=0)
    REQUEST_TIMEOUT: float = Field(30.0, gt=0)

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    SCHEDULER_ENABLED: bool = False
    SCHEDULE_INTERVAL_MINUTES: int = Field(30, gt=0)

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"
        frozen = True

    @field_validator("DATABASE_URL")
    @classmethod
    def use_async_driver(cls, v: str) -> str:
        """Rewrite plain postgres URLs to the asyncpg driver form"""
        for prefix in ("postgres://", "postgresql://"):
            if v.startswith(prefix):
                return "postgresql+asyncpg://" + v[len(prefix):]
        return v

    @field_validator("FAILURE_POLICY")
    @classmethod
    def check_failure_policy(cls, v: str) -> str:
        v = v.lower()
        if v not in ("abort", "continue"):
            raise ValueError("FAILURE_POLICY must be 'abort' or 'continue'")
        return v

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.MAX_RETRIES,
            base_delay=self.RETRY_BASE_DELAY,
            multiplier=self.RETRY_BACKOFF_MULTIPLIER,
            max_delay=self.RETRY_MAX_DELAY,
        )

    @property
    def masked_database_url(self) -> str:
        """DATABASE_URL with the password replaced, safe for logs"""
        if "@" not in self.DATABASE_URL or "://" not in self.DATABASE_URL:
            return self.DATABASE_URL
        scheme, rest = self.DATABASE_URL.split("://", 1)
        credentials, host = rest.rsplit("@", 1)
        user = credentials.split(":", 1)[0]
        return f"{scheme}://{user}:***@{host}"


def load_settings(**overrides) -> Settings:
    """
    Build the settings once at startup.

    Raises:
        ConfigurationError: Missing or invalid values (lists every field)
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        fields = [".".join(str(part) for part in error["loc"]) for error in e.errors()]
        raise ConfigurationError(
            f"Invalid configuration: {', '.join(fields)}",
            context={"fields": fields},
            original_exception=e
        )
