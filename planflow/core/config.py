"""Application configuration using Pydantic Settings.

Environment variables are loaded from .env files and system environment.
Scheduler defaults (retry curve, parallel fan-out, cost classes) live here so
hosts can tune them without touching code.
"""

from functools import lru_cache
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _split_csv(v: Any) -> Any:
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


class Settings(BaseSettings):
    """Application settings.

    All settings can be overridden via environment variables.
    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    PROJECT_NAME: str = "planflow"
    VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: str | None = None  # No file handler unless set
    LOG_JSON_FORMAT: bool = True
    LOG_SENSITIVE_FILTER: bool = True

    # Registries
    METRICS_EMA_ALPHA: float = Field(default=0.1, gt=0.0, le=1.0)

    # Validation
    ALWAYS_PRESENT_STATE_FIELDS: Annotated[list[str], NoDecode] = ["messages"]
    DISABLED_FEATURE_FLAGS: Annotated[list[str], NoDecode] = []

    # Executor
    EXECUTOR_CONTINUE_ON_ERROR: bool = True
    EXECUTOR_ENABLE_PARALLEL: bool = False
    EXECUTOR_MAX_PARALLEL_STAGES: int = Field(default=10, ge=1)
    DEFAULT_PLAN_TIMEOUT_MS: int | None = None
    EXECUTOR_EARLY_EXIT: bool = True
    EARLY_EXIT_MISSING_DATA_THRESHOLD: int = Field(default=3, ge=0)

    # Retry backoff
    RETRY_BACKOFF_MULTIPLIER: float = Field(default=2.0, ge=1.0)
    RETRY_MAX_BACKOFF_MS: int = Field(default=10_000, ge=0)
    RETRY_JITTER_RATIO: float = Field(default=0.5, ge=0.0, le=1.0)

    # Cost classes (USD per call)
    API_CALL_COST_USD: float = 0.001
    EXPENSIVE_CALL_COST_USD: float = 0.01

    @field_validator("ALWAYS_PRESENT_STATE_FIELDS", "DISABLED_FEATURE_FLAGS", mode="before")
    @classmethod
    def parse_csv_list(cls, v: Any) -> Any:
        """Parse list settings from comma-separated strings."""
        return _split_csv(v)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are cached after first load for performance.
    """
    return Settings()


# Global settings instance
settings = get_settings()
