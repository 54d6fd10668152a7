"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"

BROADCAST_BACKENDS = ("sns", "websocket", "log")
QUEUE_BACKENDS = ("sqs", "log")


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding=ENV_FILE_ENCODING,
        extra="ignore",
    )

    app_name: str = Field(
        default="notification-service",
        description="Service name reported by the health endpoint",
    )
    database_url: str = Field(
        default="sqlite:///./notifications.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        default="change-me",
        description="Secret key for signing JWT tokens",
        min_length=1,
    )
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(
        default=60,
        description="Number of minutes before access tokens expire",
        gt=0,
    )
    log_level: str = Field(default="INFO")
    app_timezone: str = Field(default="UTC")
    allowed_origins: str = Field(
        default="http://localhost:3000",
        description="Comma separated list of origins allowed by CORS",
    )

    persist_notifications: bool = Field(
        default=True,
        description="Persist a notification record per recipient when dispatching",
    )
    broadcast_backend: str = Field(default="log")
    queue_backend: str = Field(default="log")
    dispatch_timeout_seconds: float = Field(default=10.0, gt=0)

    aws_region: str = Field(default="eu-north-1")
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    sns_topic_arn_task: str | None = None
    sns_topic_arn_alarm: str | None = None
    sns_topic_arn_visit: str | None = None
    sns_topic_arn_medicine: str | None = None
    sqs_queue_url: str | None = None

    retention_days: int = Field(default=90, gt=0)
    expiry_sweep_interval_seconds: int = Field(
        default=0,
        description="Seconds between sweeps of expired notifications; 0 disables the sweep",
        ge=0,
    )

    @model_validator(mode="after")
    def _validate_backends(self) -> "Settings":
        if self.broadcast_backend not in BROADCAST_BACKENDS:
            raise ValueError(
                f"BROADCAST_BACKEND must be one of {', '.join(BROADCAST_BACKENDS)}"
            )
        if self.queue_backend not in QUEUE_BACKENDS:
            raise ValueError(f"QUEUE_BACKEND must be one of {', '.join(QUEUE_BACKENDS)}")
        return self

    @property
    def topics(self) -> dict[str, str | None]:
        """Return the SNS topic ARN configured for each routing category."""

        return {
            "TASK": self.sns_topic_arn_task,
            "ALARM": self.sns_topic_arn_alarm,
            "VISIT": self.sns_topic_arn_visit,
            "MEDICINE": self.sns_topic_arn_medicine,
        }

    @property
    def origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
