"""Data models shared by the parser, analyzers and scoring engine."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

MAX_EVIDENCE = 10


class RuleCategory(str, Enum):
    """Facet of the email a rule inspects."""

    HEADER = "header"
    AUTHENTICATION = "authentication"
    CONTENT = "content"
    URL = "url"
    HTML = "html"
    PATTERN = "pattern"
    BAYESIAN = "bayesian"


class Classification(str, Enum):
    """Four-way verdict derived from the aggregate score."""

    HAM = "ham"
    PROBABLE_HAM = "probable_ham"
    PROBABLE_SPAM = "probable_spam"
    SPAM = "spam"


# ----------------------------------------------------------------------
# Email record
# ----------------------------------------------------------------------


class EmailAddress(BaseModel):
    """A parsed mailbox. ``address`` and ``domain`` are lowercased."""

    model_config = {"frozen": True}

    name: str | None = Field(default=None, description="Display name, if any")
    address: str = Field(description="Full lowercased address")
    local_part: str = Field(description="Part before the @")
    domain: str = Field(description="Lowercased part after the @")


class ReceivedHop(BaseModel):
    """One ``Received:`` header, split into its relay tokens.

    Uses ``Field(alias=...)`` because ``from`` and ``with`` are reserved words.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    from_host: str | None = Field(default=None, alias="from")
    by: str | None = None
    with_protocol: str | None = Field(default=None, alias="with")
    timestamp: datetime | None = None
    raw: str


class AttachmentInfo(BaseModel):
    """Metadata about a MIME attachment (payload is not retained)."""

    model_config = {"frozen": True}

    filename: str
    content_type: str
    size: int = 0


class EmailRecord(BaseModel):
    """Normalized, read-only email snapshot consumed by every analyzer.

    Every optional field has an explicit empty representation so analyzers
    never have to guard against missing attributes.
    """

    model_config = {"frozen": True, "populate_by_name": True}

    headers: dict[str, tuple[str, ...]] = Field(
        default_factory=dict,
        description="Lowercased header name -> raw values in source order",
    )
    subject: str = ""
    from_address: EmailAddress | None = Field(default=None, alias="from")
    reply_to: EmailAddress | None = None
    to: tuple[EmailAddress, ...] = ()
    return_path: str | None = None
    message_id: str | None = None
    date: datetime | None = None
    text_body: str = ""
    html_body: str = ""
    received_chain: tuple[ReceivedHop, ...] = ()
    attachments: tuple[AttachmentInfo, ...] = ()

    @field_validator("headers", mode="before")
    @classmethod
    def _lowercase_header_names(cls, value: Any) -> Any:
        if isinstance(value, dict):
            merged: dict[str, list[str]] = {}
            for key, values in value.items():
                if isinstance(values, str):
                    values = [values]
                merged.setdefault(str(key).lower(), []).extend(values)
            return {k: tuple(v) for k, v in merged.items()}
        return value

    @field_validator("date")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def header(self, name: str) -> str:
        """First value of header *name*, or an empty string."""
        values = self.headers.get(name.lower())
        return values[0] if values else ""

    def header_values(self, name: str) -> tuple[str, ...]:
        return self.headers.get(name.lower(), ())


# ----------------------------------------------------------------------
# Rules and analyzer output
# ----------------------------------------------------------------------


class AnalysisRule(BaseModel):
    """A named, scored heuristic."""

    model_config = {"frozen": True}

    name: str = Field(description="Unique rule key")
    description: str
    score: float = Field(description="Points added to the analyzer score when matched")
    category: RuleCategory


class RuleMatch(BaseModel):
    """A rule that fired, with the literal evidence that triggered it."""

    model_config = {"frozen": True}

    rule: AnalysisRule
    matched: bool = True
    details: str | None = None
    evidence: tuple[str, ...] = ()

    @field_validator("evidence")
    @classmethod
    def _cap_evidence(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return value[:MAX_EVIDENCE]

    @property
    def score(self) -> float:
        return self.rule.score


class AnalyzerResult(BaseModel):
    """Output of one analyzer over one EmailRecord."""

    model_config = {"frozen": True}

    analyzer: str
    score: float = Field(ge=0, description="Analyzer contribution to the aggregate score")
    max_score: float = Field(description="Theoretical ceiling, informational only")
    matches: tuple[RuleMatch, ...] = ()
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_matches(
        cls,
        analyzer: str,
        matches: list[RuleMatch],
        *,
        max_score: float,
        metadata: dict[str, Any] | None = None,
    ) -> AnalyzerResult:
        """Build a result whose score is the match sum, floored at zero."""
        total = sum(m.rule.score for m in matches)
        return cls(
            analyzer=analyzer,
            score=max(0.0, total),
            max_score=max_score,
            matches=tuple(matches),
            metadata=metadata or {},
        )

    @property
    def contributed(self) -> bool:
        return len(self.matches) > 0


# ----------------------------------------------------------------------
# Aggregate result
# ----------------------------------------------------------------------


class TextStats(BaseModel):
    char_count: int = 0
    word_count: int = 0
    line_count: int = 0
    uppercase_ratio: float = 0.0
    digit_ratio: float = 0.0
    special_char_ratio: float = 0.0
    avg_word_length: float = 0.0
    short_word_ratio: float = 0.0
    long_word_ratio: float = 0.0


class DebugInfo(BaseModel):
    """Extra diagnostics attached when ``enable_debug`` is set."""

    extracted_urls: list[str] = Field(default_factory=list)
    extracted_emails: list[str] = Field(default_factory=list)
    language_detected: str
    language_confidence: float
    language_is_supported: bool
    text_stats: TextStats


class SpamAnalysisResult(BaseModel):
    """Verdict for one email. Constructed once per request, never persisted."""

    is_spam: bool
    score: float
    threshold: float
    confidence: float
    classification: Classification
    language_detected: str = "en"
    language_confidence: float = 0.0
    analyzers: list[AnalyzerResult]
    top_reasons: list[str] = Field(default_factory=list, max_length=5)
    processing_time_ms: float = 0.0
    debug: DebugInfo | None = None
