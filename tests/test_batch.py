"""Tests for umbrella_spam.batch."""

from __future__ import annotations

import pytest

from umbrella_spam.analyzers import AnalyzerRegistry
from umbrella_spam.batch import BatchAnalyzer
from umbrella_spam.config import ScoringConfig
from umbrella_spam.engine import SpamScorer
from umbrella_spam.exceptions import BatchTooLargeError
from umbrella_spam.parser import EmailInput
from tests.conftest import SPAM_BODY, ContextRecordingAnalyzer, make_input


@pytest.fixture
def batch(scorer) -> BatchAnalyzer:
    return BatchAnalyzer(scorer, max_batch_size=3)


class TestAnalyzeBatch:
    async def test_mixed_batch(self, batch):
        items = [make_input(), make_input(subject="", textBody=SPAM_BODY), None]
        report = await batch.analyze_batch(items)

        assert report.summary.total == 3
        assert report.summary.spam == 1
        assert report.summary.ham == 1
        assert report.summary.errors == 1
        assert [r.index for r in report.results] == [0, 1, 2]
        assert report.results[1].result.is_spam is True
        assert report.results[2].success is False
        assert report.results[2].error == "Invalid email data"

    async def test_empty_batch(self, batch):
        report = await batch.analyze_batch([])
        assert report.summary.total == 0
        assert report.results == []

    async def test_too_large(self, batch):
        with pytest.raises(BatchTooLargeError) as exc_info:
            await batch.analyze_batch([make_input()] * 4)
        assert exc_info.value.limit == 3
        assert exc_info.value.size == 4

    async def test_invalid_item_isolated(self, batch):
        report = await batch.analyze_batch(["not an email", {"subject": 123}, make_input()])
        assert report.summary.errors == 2
        assert report.results[2].success is True
        assert report.results[0].error

    async def test_unparseable_raw_item(self, batch):
        report = await batch.analyze_batch([{"raw": "just some words without any headers"}])
        assert report.summary.errors == 1
        assert "No headers" in report.results[0].error

    async def test_accepts_parsed_input(self, batch):
        report = await batch.analyze_batch([EmailInput.model_validate(make_input())])
        assert report.results[0].success is True

    async def test_config_applies_to_every_item(self, batch):
        report = await batch.analyze_batch(
            [make_input(), make_input()], ScoringConfig(spam_threshold=0.0)
        )
        assert report.summary.spam == 2

    async def test_batch_index_bound_per_item(self):
        analyzer = ContextRecordingAnalyzer()
        registry = AnalyzerRegistry()
        registry.register(analyzer)
        batch = BatchAnalyzer(SpamScorer(registry=registry), max_batch_size=3)

        await batch.analyze_batch([make_input(), make_input(), make_input()])

        assert sorted(ctx["batch_index"] for ctx in analyzer.seen) == [0, 1, 2]
