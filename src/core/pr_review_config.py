"""
PR Review Configuration

Run-level options for the review pipeline. Values come from environment
variables prefixed with ``PR_REVIEW_`` (nested groups use ``__``, e.g.
``PR_REVIEW_LIMITS__MAX_FILES=50``).
"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReviewLimits(BaseModel):
    """Hard limits applied per run."""

    max_files: int = Field(
        default=150,
        description="Maximum files summarized/reviewed per run (0 = unlimited)",
        ge=0
    )
    summary_batch_size: int = Field(
        default=10,
        description="Per-file summaries folded into the raw summary per model call",
        ge=1
    )


class ConcurrencySettings(BaseModel):
    """Sizes of the two independent concurrency pools."""

    llm_concurrency_limit: int = Field(default=6, ge=1)
    github_concurrency_limit: int = Field(default=6, ge=1)


class TimeoutSettings(BaseModel):
    """Timeouts and retry counts for outbound calls."""

    llm_timeout_seconds: float = Field(default=120.0, gt=0)
    llm_retries: int = Field(default=3, ge=0)
    github_api_timeout: float = Field(default=30.0, gt=0)


class ModelSettings(BaseModel):
    """Model selection for the light (summarize) and heavy (review) tiers."""

    provider: Literal["claude", "openai", "auto"] = "auto"
    light_model: Optional[str] = Field(default=None, description="Provider default when unset")
    heavy_model: Optional[str] = Field(default=None, description="Provider default when unset")
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)


class PRReviewSettings(BaseSettings):
    """Options for a review run."""

    model_config = SettingsConfigDict(
        env_prefix="PR_REVIEW_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    debug: bool = False
    disable_review: bool = False
    disable_release_notes: bool = False
    review_simple_changes: bool = False
    review_comment_lgtm: bool = False
    path_filters: Union[List[str], str] = Field(default_factory=list)
    system_message: str = (
        "You are `@sentinel`, a language model trained to act as a highly experienced "
        "software engineer. Provide thorough reviews of code changes focused on "
        "logic, security, performance, concurrency and maintainability. Do not comment "
        "on minor style issues or missing documentation."
    )
    language: str = "en-US"
    bot_name: str = "sentinel"
    bot_icon: str = "\U0001F6E1️"

    limits: ReviewLimits = Field(default_factory=ReviewLimits)
    concurrency: ConcurrencySettings = Field(default_factory=ConcurrencySettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    models: ModelSettings = Field(default_factory=ModelSettings)

    @field_validator("path_filters", mode="before")
    @classmethod
    def split_path_filters(cls, v):
        """Accept newline or comma separated filter strings."""
        if isinstance(v, str):
            parts = v.replace(",", "\n").splitlines()
            return [p.strip() for p in parts if p.strip()]
        return v

    @property
    def mention(self) -> str:
        return f"@{self.bot_name}"

    @property
    def ignore_keyword(self) -> str:
        return f"@{self.bot_name}: ignore"


def create_development_config() -> PRReviewSettings:
    """Settings with verbose logging and small pools."""
    config = PRReviewSettings()
    config.debug = True
    config.concurrency.llm_concurrency_limit = 2
    config.concurrency.github_concurrency_limit = 2
    return config


pr_review_settings = PRReviewSettings()
