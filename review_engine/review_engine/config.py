"""Review engine configuration loaded from environment variables."""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from review_engine.models.changes import GroupingParams

logger = logging.getLogger(__name__)


class ReviewEnv(str, Enum):
    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Application settings loaded from environment variables with SQLREVIEW_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="SQLREVIEW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    env: ReviewEnv = ReviewEnv.DEV
    debug: bool = False

    # Grouping
    min_run_length: int = 3
    max_group_lines: int = 12
    gap_join: int = 0
    dominant_threshold: float = 0.6
    preview_max_chars: int = 60

    # Canonicaliser
    tab_width: int = 2

    # Caller-side bounds (the engine itself never truncates)
    max_document_chars: int = 140_000
    max_document_lines: int = 5_000
    max_groups: int = 200
    explain_page_size: int = 24

    # Result cache
    cache_enabled: bool = True
    cache_max_entries: int = 256
    cache_ttl_seconds: int = 3600

    # Logging
    log_level: str = "INFO"
    structured_logging: bool = False

    @field_validator("tab_width", "max_groups", "explain_page_size", "cache_max_entries")
    @classmethod
    def at_least_one(cls, v: int) -> int:
        return max(1, v)

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def clamp_grouping(self) -> Settings:
        params = self.grouping_params().clamped()
        self.min_run_length = params.min_run_length
        self.max_group_lines = params.max_group_lines
        self.gap_join = params.gap_join
        self.dominant_threshold = params.dominant_threshold
        self.preview_max_chars = params.preview_max_chars
        return self

    def grouping_params(self) -> GroupingParams:
        """Return the grouping tunables (already clamped by validation)."""
        return GroupingParams(
            min_run_length=self.min_run_length,
            max_group_lines=self.max_group_lines,
            gap_join=self.gap_join,
            dominant_threshold=self.dominant_threshold,
            preview_max_chars=self.preview_max_chars,
        )


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info("Loaded settings for environment: %s", settings.env.value)

    return settings
