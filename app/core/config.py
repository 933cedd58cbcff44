"""Application settings with Pydantic validation and environment loading."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "StockSense API"
    app_version: str = "1.0.0"
    debug: bool = Field(
        default=False, description="Enable debug mode (disable in production)"
    )
    root_path: str = Field(default="", description="Root path for reverse proxy")
    environment: str = Field(
        default="production",
        description="Environment: development, staging, production",
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/stocksense.sqlite",
        description="SQLAlchemy database URL (SQLite or PostgreSQL)",
    )
    db_pool_min_size: int = Field(
        default=5, ge=1, le=20, description="Minimum database pool connections"
    )
    db_pool_max_size: int = Field(
        default=20, ge=5, le=100, description="Maximum database pool connections"
    )
    db_echo: bool = Field(default=False, description="Log emitted SQL statements")

    # Security
    auth_secret: str = Field(
        default="dev-secret-please-change-in-production-min-32-chars",
        description="Secret key for JWT signing (min 32 chars in production)",
    )
    access_token_expire_minutes: int = Field(
        default=60 * 24 * 7, ge=1, description="JWT expiration in minutes"
    )
    bcrypt_rounds: int = Field(
        default=12, ge=4, le=16, description="bcrypt cost factor"
    )

    # Admin seeding (skipped unless both are set)
    admin_email: Optional[str] = Field(default=None, alias="ADMIN_EMAIL")
    admin_password: Optional[str] = Field(default=None, alias="ADMIN_PASSWORD")
    admin_name: str = Field(default="Administrator", alias="ADMIN_NAME")

    # CORS
    # Comma separated in the environment
    cors_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins (no wildcards with credentials)",
    )

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True, description="Enable rate limiting")
    rate_limit_auth: str = Field(
        default="10/hour",
        description="Rate limit for signup and login, per client IP",
    )
    rate_limit_api: str = Field(
        default="100/15minutes",
        description="Rate limit for other API requests, per user or client IP",
    )

    # Cache
    cache_backend: str = Field(
        default="memory", description="Cache backend: memory or valkey"
    )
    valkey_url: str = Field(
        default="redis://localhost:6379/0", description="Valkey connection URL"
    )
    valkey_max_connections: int = Field(default=10, ge=1, le=100)
    cache_default_ttl: int = Field(
        default=300, ge=1, description="Default cache TTL in seconds"
    )
    quote_cache_ttl: int = Field(
        default=300, ge=1, description="Live quote cache TTL in seconds"
    )
    news_cache_ttl: int = Field(
        default=1200, ge=1, description="News feed cache TTL in seconds"
    )

    # Market data and news providers
    alpha_vantage_api_key: str = Field(
        default="", description="Alpha Vantage API key (empty uses fallback quotes)"
    )
    alpha_vantage_base_url: str = Field(default="https://www.alphavantage.co/query")
    marketaux_api_key: str = Field(
        default="", description="Marketaux API key (empty uses fallback news)"
    )
    marketaux_base_url: str = Field(default="https://api.marketaux.com/v1")

    # External API timeouts
    external_api_timeout: int = Field(
        default=30, ge=1, le=120, description="External API timeout in seconds"
    )

    # Logging
    log_level: str = Field(
        default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR"
    )
    log_format: str = Field(default="json", description="Log format: json or text")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("database_url")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        if v.startswith("postgres://"):
            v = "postgresql://" + v[len("postgres://"):]
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith("sqlite://") and not v.startswith("sqlite+aiosqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @field_validator("cache_backend")
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"memory", "valkey"}:
            raise ValueError("cache_backend must be 'memory' or 'valkey'")
        return lower

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return upper

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Cached settings factory."""
    return Settings()


settings = get_settings()
