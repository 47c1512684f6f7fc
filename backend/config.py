"""Application configuration using pydantic-settings."""

from typing import Any

from pydantic import field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from services.credential_manager import CREDENTIAL_KEYS, get_credential


class KeychainSettingsSource(PydanticBaseSettingsSource):
    """Load secret fields from the OS keychain via ``keyring``.

    Only fields whose uppercase name appears in
    :data:`~services.credential_manager.CREDENTIAL_KEYS` are looked up.
    All other fields return ``None`` so the next source in the chain
    handles them.
    """

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        env_name = field_name.upper()
        if env_name not in CREDENTIAL_KEYS:
            return None, field_name, False
        value = get_credential(env_name)
        return value, field_name, False

    def __call__(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        for field_name, field_info in self.settings_cls.model_fields.items():
            value, key, _ = self.get_field_value(field_info, field_name)
            if value is not None:
                d[key] = value
        return d


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            KeychainSettingsSource(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    # Database
    DATABASE_URL: str = "sqlite:///./ad_sync.db"

    # Automation credential required by the worker/cron trigger endpoints
    INTEGRATIONS_CRON_SECRET: str = ""

    # Alerting (optional - alerts are skipped when the URL is empty)
    SCHEDULER_ALERT_WEBHOOK_URL: str = ""
    SCHEDULER_ALERT_TIMEOUT_SECONDS: float = 10.0
    SCHEDULER_FAILURE_THRESHOLD: int = 3

    # Metrics gateway that fetches and normalizes provider metrics
    METRICS_GATEWAY_URL: str = ""
    METRICS_GATEWAY_API_KEY: str = ""
    METRICS_GATEWAY_TIMEOUT_SECONDS: float = 60.0

    # Scheduling policy defaults
    DEFAULT_SYNC_FREQUENCY_MINUTES: int = 360
    MIN_SYNC_FREQUENCY_MINUTES: int = 15
    DEFAULT_TIMEFRAME_DAYS: int = 90
    MAX_TIMEFRAME_DAYS: int = 365

    # Worker dispatcher limits
    WORKER_DEFAULT_MAX_JOBS: int = 10
    WORKER_MAX_JOBS_CAP: int = 25
    WORKER_DEFAULT_MAX_TENANTS: int = 50
    WORKER_MAX_TENANTS_CAP: int = 100
    WORKER_JOBS_PER_TENANT: int = 3
    WORKER_JOB_DELAY_SECONDS: float = 0.1

    # Job housekeeping
    JOB_ERROR_MESSAGE_MAX_LENGTH: int = 500
    JOB_RETENTION_DAYS: int = 7
    STALE_JOB_MINUTES: int = 30

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    @field_validator("SCHEDULER_FAILURE_THRESHOLD", "WORKER_JOBS_PER_TENANT")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be at least 1, got {v}")
        return v

    # App settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]


settings = Settings()
