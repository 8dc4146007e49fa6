"""Application configuration using Pydantic settings."""

from typing import Optional
from pydantic import Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Database Configuration
    DATABASE_URL: str = Field(default="sqlite:///./visitrack.db", description="Database connection URL")

    # Application Configuration
    APP_NAME: str = Field(default="Visitrack API", description="Application name")
    APP_VERSION: str = Field(default="0.1.0", description="Application version")
    DEBUG: bool = Field(default=False, description="Debug mode")

    # CORS Configuration
    CORS_ORIGINS: list[str] = Field(default=["*"], description="Origins allowed to post tracking events")

    # Admin access (stats sessions, maintenance endpoints)
    ADMIN_USERNAME: str = Field(default="admin", description="Basic auth user for admin endpoints")
    ADMIN_PASSWORD: str = Field(default="change-me", description="Basic auth password for admin endpoints")

    # Session token cookies
    SESSION_DURATION_HOURS: int = Field(default=24, description="Lifetime of a visitor session token, measured from creation")
    SESSION_COOKIE_MAX_AGE_DAYS: int = Field(default=365, description="Max-Age of the persisted session token cookie")
    SESSION_COOKIE_SECURE: bool = Field(default=False, description="Mark tracking cookies as Secure")

    # Tracking
    TRACKING_EXCLUDED_PATH_PREFIXES: list[str] = Field(default=["/admin"], description="Page paths that are never tracked")

    # Retention maintenance
    MAINTENANCE_ENABLED: bool = Field(default=True, description="Run the retention maintainer on startup")
    MAINTENANCE_INTERVAL_SECONDS: int = Field(default=24 * 60 * 60, description="Seconds between maintenance passes")
    SESSION_RETENTION_DAYS: int = Field(default=30, description="Visitor sessions idle longer than this are deleted")
    MAX_SESSIONS: int = Field(default=10000, description="Maximum number of stored visitor sessions")
    SESSION_SAMPLE_MARGIN: int = Field(default=500, description="Extra rows sampled when checking the session cap")
    OLD_SESSION_BATCH_SIZE: int = Field(default=100, description="Old sessions deleted per query")
    DAILY_STATS_RETENTION_DAYS: int = Field(default=90, description="Daily aggregates older than this are deleted")
    DAILY_STATS_BATCH_SIZE: int = Field(default=50, description="Daily aggregates deleted per query")

    # Geolocation
    GEOLOCATION_URL: str = Field(default="https://ipapi.co/json/", description="Geolocation endpoint for the caller's own address")
    GEOLOCATION_IP_URL: str = Field(default="https://ipapi.co/{ip}/json/", description="Geolocation endpoint for an explicit IP")
    GEOLOCATION_TIMEOUT_SECONDS: float = Field(default=5.0, description="Timeout for geolocation lookups")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @validator("DATABASE_URL")
    def validate_database_url(cls, v: str) -> str:
        """Ensure database URL is properly formatted."""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+psycopg2://", 1)
        return v

    @validator("MAX_SESSIONS", "OLD_SESSION_BATCH_SIZE", "DAILY_STATS_BATCH_SIZE")
    def validate_positive(cls, v: int) -> int:
        """Caps and batch sizes must be positive."""
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @property
    def session_duration_ms(self) -> int:
        return self.SESSION_DURATION_HOURS * 60 * 60 * 1000


# Global settings instance
settings = Settings()
