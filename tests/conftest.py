"""Shared test fixtures for the spam scoring test suite."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
import structlog
from fastapi.testclient import TestClient

from umbrella_spam.analyzers import (
    AnalyzerRegistry,
    BaseAnalyzer,
    BayesianAnalyzer,
    ContentAnalyzer,
    HeaderAnalyzer,
    HtmlAnalyzer,
    PatternAnalyzer,
    UrlAnalyzer,
)
from umbrella_spam.app import create_app
from umbrella_spam.batch import BatchAnalyzer
from umbrella_spam.config import ScoringConfig, Settings
from umbrella_spam.datasets import LanguageDataset, load_dataset
from umbrella_spam.deps import get_batch_analyzer, get_scorer
from umbrella_spam.engine import SpamScorer
from umbrella_spam.models import AnalyzerResult, EmailRecord
from umbrella_spam.parser import parse_address

NOW = datetime(2025, 6, 2, 12, 0, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return NOW


# ------------------------------------------------------------------
# Sample emails
# ------------------------------------------------------------------

LEGIT_BODY = (
    "Hi Bob,\n\n"
    "Following up on the project meeting: the agenda for Thursday is attached.\n"
    "Please review the report before the deadline.\n\n"
    "Regards,\nAlice"
)


def make_record(**overrides) -> EmailRecord:
    """Build a well-formed, authenticated business email; override any field."""
    fields = {
        "headers": {
            "received-spf": "pass (example.com: domain of alice@example.com designates 192.0.2.1)",
            "dkim-signature": "v=1; a=rsa-sha256; d=example.com; s=mail",
            "to": "bob@example.org",
        },
        "subject": "Project meeting agenda",
        "from_address": parse_address("Alice <alice@example.com>"),
        "to": (parse_address("bob@example.org"),),
        "message_id": "<abc123@example.com>",
        "date": NOW,
        "text_body": LEGIT_BODY,
    }
    fields.update(overrides)
    return EmailRecord(**fields)


def make_input(**overrides) -> dict:
    """Structured API payload for a well-formed business email."""
    payload = {
        "from": "Alice <alice@example.com>",
        "to": "bob@example.org",
        "subject": "Project meeting agenda",
        "messageId": "<abc123@example.com>",
        "date": "Mon, 02 Jun 2025 12:00:00 +0000",
        "receivedSpf": "pass",
        "dkimSignature": "v=1; a=rsa-sha256; d=example.com; s=mail",
        "textBody": LEGIT_BODY,
    }
    payload.update(overrides)
    return payload


SPAM_BODY = "V1AGRA CIALIS free money act now!!! urgent urgent urgent"


class ConstantAnalyzer(BaseAnalyzer):
    """Analyzer that always reports the same score with no matches."""

    def __init__(self, name: str = "constant", score: float = 1.5) -> None:
        self._name = name
        self._score = score

    @property
    def name(self) -> str:
        return self._name

    def analyze(self, record, dataset) -> AnalyzerResult:
        return AnalyzerResult(analyzer=self.name, score=self._score, max_score=self._score)


class ContextRecordingAnalyzer(ConstantAnalyzer):
    """Records the structlog context bound while it runs."""

    def __init__(self) -> None:
        super().__init__(name="context", score=0.0)
        self.seen: list[dict] = []

    def analyze(self, record, dataset) -> AnalyzerResult:
        self.seen.append(structlog.contextvars.get_contextvars())
        return super().analyze(record, dataset)


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------


@pytest.fixture
def dataset() -> LanguageDataset:
    return load_dataset("en")


def make_registry() -> AnalyzerRegistry:
    registry = AnalyzerRegistry()
    for analyzer in (
        HeaderAnalyzer(clock=fixed_clock),
        ContentAnalyzer(),
        UrlAnalyzer(),
        HtmlAnalyzer(),
        PatternAnalyzer(),
        BayesianAnalyzer(),
    ):
        registry.register(analyzer)
    return registry


@pytest.fixture
def scorer() -> SpamScorer:
    return SpamScorer(ScoringConfig(), registry=make_registry())


@pytest.fixture
def settings() -> Settings:
    return Settings(max_batch_size=5, log_json=False)


@pytest.fixture
def client(settings: Settings, scorer: SpamScorer) -> TestClient:
    """Sync test client whose scorer runs on the fixed test clock."""
    app = create_app(settings)
    batch = BatchAnalyzer(scorer, max_batch_size=settings.max_batch_size)
    app.dependency_overrides[get_scorer] = lambda: scorer
    app.dependency_overrides[get_batch_analyzer] = lambda: batch
    return TestClient(app)
