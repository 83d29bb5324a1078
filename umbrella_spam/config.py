"""Scoring and service configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScoringConfig(BaseSettings):
    """Thresholds and switches that shape one analysis call.

    Env vars are prefixed with ``SPAM_``, e.g. ``SPAM_SPAM_THRESHOLD=5``.
    Instances are frozen; use :meth:`with_overrides` to derive a variant.
    """

    model_config = SettingsConfigDict(env_prefix="SPAM_", frozen=True)

    spam_threshold: float = Field(
        default=3.5,
        description="Aggregate score at or above which an email is spam",
    )
    probable_spam_threshold: float = Field(
        default=2.0,
        description="Aggregate score at or above which an email is probable spam",
    )
    enable_debug: bool = Field(
        default=False,
        description="Attach extracted URLs, emails, language and text stats to results",
    )

    def with_overrides(self, **changes) -> ScoringConfig:
        """Return a validated copy with *changes* applied (None values ignored)."""
        data = self.model_dump()
        data.update({k: v for k, v in changes.items() if v is not None})
        return ScoringConfig(**data)


class Settings(BaseSettings):
    """Top-level settings for the scoring service.

    All env vars are prefixed with ``UMBRELLA_SPAM_``.
    Example: ``UMBRELLA_SPAM_MAX_BATCH_SIZE=50``
    """

    model_config = SettingsConfigDict(env_prefix="UMBRELLA_SPAM_")

    # --- Analysis -----------------------------------------------------------
    default_language: str = Field(
        default="en",
        description="Dataset used when detection is disabled or inconclusive",
    )
    use_language_detection: bool = Field(
        default=True,
        description="Detect the email language and load its dataset",
    )
    max_batch_size: int = Field(
        default=100,
        ge=1,
        description="Maximum number of emails accepted by one batch request",
    )
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)

    # --- Server -------------------------------------------------------------
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(
        default=True,
        description="Use JSON log output (True for prod, False for dev)",
    )
