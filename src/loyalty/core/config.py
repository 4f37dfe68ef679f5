"""Application configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEV_SECRET_KEY = "dev-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="loyalty-backend", description="Application name")
    environment: Literal["development", "testing", "staging", "production"] = Field(
        default="development", description="Runtime environment"
    )
    debug: bool = Field(default=False, description="Debug mode flag")
    secret_key: str = Field(
        default=DEV_SECRET_KEY,
        description="Secret key for signing authentication tokens",
    )

    # API
    api_v1_prefix: str = Field(default="/api/v1", description="API v1 prefix")
    allowed_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="CORS allowed origins",
    )

    # Database
    db_host: str = Field(default="localhost", description="PostgreSQL host")
    db_port: int = Field(default=5432, description="PostgreSQL port")
    db_user: str = Field(default="postgres", description="PostgreSQL user")
    db_password: str = Field(default="postgres", description="PostgreSQL password")
    db_name: str = Field(default="loyalty", description="PostgreSQL database name")
    db_url_override: str | None = Field(
        default=None,
        description="Full async database URL (takes precedence over db_* fields)",
    )
    db_create_tables: bool = Field(
        default=False, description="Create missing tables on startup"
    )
    db_operation_timeout: float = Field(
        default=3.0, gt=0, description="Deadline in seconds for one unit of work"
    )

    # Redis (Celery broker)
    redis_host: str = Field(default="localhost", description="Redis host")
    redis_port: int = Field(default=6379, description="Redis port")
    redis_db: int = Field(default=0, description="Redis database number")
    redis_password: str | None = Field(default=None, description="Redis password")

    # JWT Authentication
    access_token_expire_minutes: int = Field(
        default=60 * 24, description="Access token expiration in minutes"
    )
    bcrypt_rounds: int = Field(
        default=12, ge=4, le=31, description="bcrypt cost factor for password hashes"
    )

    # Vouchers
    voucher_code_attempts: int = Field(
        default=3, ge=1, description="Generated code attempts before giving up"
    )
    exchange_voucher_valid_days: int = Field(
        default=30, ge=1, description="Validity of vouchers bought with points"
    )
    redeem_default_uses: int = Field(
        default=1, ge=1, description="Uses granted when redeeming without a count"
    )
    refresh_attempts: int = Field(
        default=3, ge=1, description="Retries for the entitlement refresh on conflict"
    )
    expiry_sweep_interval_seconds: int = Field(
        default=300, ge=1, description="Period of the voucher expiry sweep"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    @model_validator(mode="after")
    def _check_production_secret(self) -> "Settings":
        if self.environment == "production" and self.secret_key == DEV_SECRET_KEY:
            raise ValueError("secret_key must be set in production")
        return self

    @computed_field
    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        if self.db_url_override:
            return self.db_url_override
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @computed_field
    @property
    def redis_url(self) -> str:
        """Construct Redis URL from components."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
