"""Request and response schemas for the HTTP API."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .config import ScoringConfig
from .models import Classification
from .parser import EmailInput


class ConfigOverrides(BaseModel):
    """Per-request scoring overrides. Accepts camelCase and snake_case keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    spam_threshold: float | None = Field(
        default=None, validation_alias=AliasChoices("spamThreshold", "spam_threshold")
    )
    probable_spam_threshold: float | None = Field(
        default=None,
        validation_alias=AliasChoices("probableSpamThreshold", "probable_spam_threshold"),
    )
    enable_debug: bool | None = Field(
        default=None, validation_alias=AliasChoices("enableDebug", "enable_debug")
    )

    def apply(self, base: ScoringConfig, *, debug: bool | None = None) -> ScoringConfig:
        changes = self.model_dump()
        if debug:
            changes["enable_debug"] = True
        return base.with_overrides(**changes)


class AnalyzeRequest(EmailInput):
    config: ConfigOverrides | None = None
    debug: bool | None = None

    def scoring_config(self, base: ScoringConfig) -> ScoringConfig:
        return (self.config or ConfigOverrides()).apply(base, debug=self.debug)


class CheckResponse(BaseModel):
    is_spam: bool


class ScoreResponse(BaseModel):
    score: float
    threshold: float
    classification: Classification


class BatchRequest(BaseModel):
    # Items stay untyped so one malformed email fails alone, not the request
    emails: list[Any] | None = None
    config: ConfigOverrides | None = None


class ErrorResponse(BaseModel):
    error: str
    message: str
