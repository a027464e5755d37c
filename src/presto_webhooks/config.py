"""Configuration management for Presto webhooks."""

import logging
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Delivery engine configuration loaded from environment variables.

    All settings can be overridden via environment variables with
    the PRESTO_ prefix. For example:
        PRESTO_DEFAULT_MAX_ATTEMPTS=5
        PRESTO_BACKOFF_CAP_SECONDS=60

    Per-subscription timeout and attempt budgets always win over the
    defaults here; the defaults only apply to subscriptions that do not
    set their own.
    """

    # Environment
    env: Literal["development", "production", "test"] = Field(
        default="development",
        description="Environment: development, production, or test",
    )

    # Delivery defaults
    default_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        le=300.0,
        description="Per-attempt timeout for subscriptions that do not set one",
    )
    default_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempt budget for subscriptions that do not set one",
    )

    # Backoff
    backoff_base_seconds: float = Field(
        default=1.0,
        gt=0.0,
        description="Base unit for exponential backoff between attempts",
    )
    backoff_cap_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Upper bound on any single backoff delay",
    )

    # Transport
    max_response_bytes: int = Field(
        default=65536,
        ge=0,
        le=10 * 1024 * 1024,
        description="Receiver response bytes kept per attempt; the rest is discarded",
    )
    user_agent: str = Field(
        default="Presto-Webhooks/1.0",
        min_length=1,
        description="User-Agent header sent with every delivery",
    )

    # Fan-out
    max_concurrent_deliveries: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Maximum delivery sequences running at once during fan-out",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format",
    )

    # CORS Configuration
    cors_enabled: bool = Field(
        default=False,
        description="Enable CORS middleware on the trigger API",
    )
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="List of allowed CORS origins",
    )

    model_config = {
        "env_prefix": "PRESTO_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @model_validator(mode="after")
    def validate_backoff_bounds(self) -> "Settings":
        """The cap must not be below the base unit.

        A cap below the base would clamp every delay to the cap and
        silently turn exponential backoff into a fixed delay.
        """
        if self.backoff_cap_seconds < self.backoff_base_seconds:
            raise ValueError(
                f"backoff_cap_seconds ({self.backoff_cap_seconds}) must be at least "
                f"backoff_base_seconds ({self.backoff_base_seconds})"
            )
        if self.env == "production" and self.cors_enabled and self.cors_allow_origins == ["*"]:
            logger.warning("CORS allows every origin in production")
        return self


# Global settings instance
settings = Settings()
