"""Application settings loaded from the environment.

Every field can be overridden through an environment variable of the same
name or through a ``.env`` file next to the process working directory.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from evohub.core.config.enums import Environment, KeyValueBackend


class Settings(BaseSettings):
    """Runtime configuration for the metering API."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Evohub Metering"
    ENVIRONMENT: Environment = Environment.LOCAL
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"

    # Key-value persistence
    KV_BACKEND: KeyValueBackend = KeyValueBackend.MEMORY
    KV_CLEANUP_INTERVAL_SECONDS: float = 60.0
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: Optional[str] = None
    REDIS_DB: int = 0

    # Request guards
    ALLOWED_ORIGINS: str = ""
    AUTH_CSRF_RELAXED: bool = False
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_CLEANUP_INTERVAL_SECONDS: float = 60.0

    # Tool limits not derived from plan entitlements
    PROMPT_USER_LIMIT: int = Field(default=20, ge=0)
    PROMPT_GUEST_LIMIT: int = Field(default=5, ge=0)

    # Guest ownership
    GUEST_COOKIE_NAME: str = "guest_id"
    GUEST_COOKIE_MAX_AGE_DAYS: int = 180

    # Credit packs
    CREDIT_PACK_VALIDITY_MONTHS: int = 6
    CREDIT_PACK_GRACE_DAYS: int = 14
    INTERNAL_CREDIT_GRANT: bool = False

    # Prometheus
    METRICS_ENABLED: bool = False
    METRICS_HOST: str = "0.0.0.0"
    METRICS_PORT: int = 9090

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def _strip_origins(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @property
    def allowed_origins(self) -> list[str]:
        """Return the configured CSRF origins as a list."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        """Whether the service runs in production."""
        return self.ENVIRONMENT == Environment.PRD

    @property
    def is_development(self) -> bool:
        """Whether relaxed development presets apply."""
        return self.ENVIRONMENT in (Environment.LOCAL, Environment.DEV)

    @property
    def redis_url(self) -> str:
        """Connection URL for the Redis key-value backend."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
