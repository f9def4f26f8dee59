"""Application settings using Pydantic. No side effects at import time."""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .constants import (
    BACKOFF_BASE_DELAY,
    BACKOFF_MAX_DELAY,
    DATA_DIR,
    DEFAULT_PAGE_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SOURCES,
    JIRA_BASE_URL,
    MAX_FETCH_ATTEMPTS,
    MIN_REQUEST_INTERVAL,
    PROGRESS_FILE,
    RATE_LIMIT_DEFAULT_WAIT,
    RATE_LIMIT_MAX_WAIT,
)


class Settings(BaseSettings):
    """Application settings with validation.

    Settings are loaded from INGEST_* environment variables and .env file.
    No side effects at class definition time - .env is loaded only when
    Settings() is instantiated.
    """

    model_config = SettingsConfigDict(
        env_prefix="INGEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # === Remote API ===
    jira_base_url: str = JIRA_BASE_URL
    # Comma-separated in the environment, same as --sources
    sources: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_SOURCES)
    )

    # === Rate Limits ===
    request_interval: Annotated[float, Field(ge=0)] = MIN_REQUEST_INTERVAL
    request_timeout: Annotated[float, Field(gt=0)] = DEFAULT_REQUEST_TIMEOUT
    page_size: Annotated[int, Field(gt=0)] = DEFAULT_PAGE_SIZE
    max_attempts: Annotated[int, Field(gt=0)] = MAX_FETCH_ATTEMPTS
    backoff_base_delay: Annotated[float, Field(ge=0)] = BACKOFF_BASE_DELAY
    backoff_max_delay: Annotated[float, Field(ge=0)] = BACKOFF_MAX_DELAY
    rate_limit_wait: Annotated[float, Field(ge=0)] = RATE_LIMIT_DEFAULT_WAIT
    rate_limit_max_wait: Annotated[float, Field(gt=0)] = RATE_LIMIT_MAX_WAIT

    # === Paths ===
    data_dir: Path = DATA_DIR
    progress_file: Path = PROGRESS_FILE

    @field_validator("sources", mode="before")
    @classmethod
    def split_sources(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [s.strip() for s in value.split(",") if s.strip()]
        return value

    @property
    def raw_dir(self) -> Path:
        """Directory for raw ingested records."""
        return self.data_dir / "raw"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This is the recommended way to access settings to avoid
    repeated .env file parsing.
    """
    return Settings()
