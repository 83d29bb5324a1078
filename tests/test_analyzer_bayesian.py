"""Tests for umbrella_spam.analyzers.bayesian."""

from __future__ import annotations

import pytest

from umbrella_spam.analyzers.bayesian import (
    NEUTRAL,
    BayesianAnalyzer,
    probability_to_score,
    robinson_fisher,
    tokenize,
)
from umbrella_spam.datasets import TokenProbability
from umbrella_spam.models import EmailRecord
from tests.conftest import make_record

TABLE = {
    "spammy": TokenProbability(spam=0.9, ham=0.1),
    "hammy": TokenProbability(spam=0.1, ham=0.9),
    "meh": TokenProbability(spam=0.5, ham=0.5),
}


def _rule_names(result) -> list[str]:
    return [m.rule.name for m in result.matches]


@pytest.fixture
def analyzer() -> BayesianAnalyzer:
    return BayesianAnalyzer()


class TestTokenize:
    def test_length_filter_and_repeats(self):
        assert tokenize("The cat sat on the mat, the end!") == ["the", "the", "cat", "sat", "mat", "end"]

    def test_keeps_apostrophes_and_hyphens(self):
        assert tokenize("Don't opt-out") == ["don't", "opt-out"]

    def test_underscore_splits(self):
        assert tokenize("foo_bar") == ["foo", "bar"]

    def test_long_tokens_dropped(self):
        assert tokenize("a" * 21 + " valid") == ["valid"]


class TestRobinsonFisher:
    def test_no_tokens_is_neutral(self):
        assert robinson_fisher([], TABLE) == NEUTRAL

    def test_unknown_tokens_are_neutral(self):
        assert robinson_fisher(["unknown", "words"], TABLE) == NEUTRAL

    def test_single_token(self):
        assert robinson_fisher(["spammy"], TABLE) == pytest.approx(0.9)

    def test_opposing_tokens_cancel(self):
        assert robinson_fisher(["spammy", "hammy"], TABLE) == pytest.approx(0.5)

    def test_agreement_strengthens(self):
        assert robinson_fisher(["spammy", "spammy"], TABLE) > 0.9

    def test_extreme_probabilities_stay_in_range(self):
        table = {"always": TokenProbability(spam=1.0, ham=0.0), "never": TokenProbability(spam=0.0, ham=1.0)}
        assert robinson_fisher(["always", "never"], table) == NEUTRAL
        assert robinson_fisher(["always"], table) == 1.0


class TestProbabilityToScore:
    @pytest.mark.parametrize(
        "probability,score",
        [
            (0.95, 4.0),
            (0.9, 3.0),
            (0.85, 3.0),
            (0.75, 2.0),
            (0.65, 1.0),
            (0.55, 0.5),
            (0.5, 0.0),
            (0.3, 0.0),
            (0.25, -1.0),
            (0.2, -1.0),
            (0.1, -2.0),
            (0.0, -2.0),
        ],
    )
    def test_mapping(self, probability, score):
        assert probability_to_score(probability) == score


class TestBayesianAnalyzer:
    def test_no_tokens(self, analyzer, dataset):
        result = analyzer.analyze(EmailRecord(), dataset)
        assert result.score == 0.0
        assert result.matches == ()
        assert result.metadata == {"spam_probability": NEUTRAL, "token_count": 0, "known_tokens": 0}

    def test_spam_verdict(self, analyzer, dataset):
        record = make_record(subject="", text_body="viagra cialis lottery jackpot")
        result = analyzer.analyze(record, dataset)
        names = _rule_names(result)

        assert "BAYES_SPAM" in names
        assert "BAYES_SPAM_TOKENS" in names
        assert result.score == 4.0
        assert result.metadata["spam_token_count"] == 4
        tokens = next(m for m in result.matches if m.rule.name == "BAYES_SPAM_TOKENS")
        assert tokens.score == pytest.approx(1.2)

    def test_ham_verdict_floored(self, analyzer, dataset):
        record = make_record(subject="Project meeting agenda", text_body="commit merge branch review")
        result = analyzer.analyze(record, dataset)
        names = _rule_names(result)

        assert "BAYES_HAM" in names
        assert "BAYES_HAM_TOKENS" in names
        assert result.metadata["spam_probability"] < 0.2
        assert next(m for m in result.matches if m.rule.name == "BAYES_HAM").score == -2.0
        assert result.score == 0.0

    def test_spam_token_bonus_capped(self, analyzer, dataset):
        body = "viagra cialis lottery jackpot prize inheritance nigerian enlargement"
        result = analyzer.analyze(make_record(subject="", text_body=body), dataset)
        tokens = next(m for m in result.matches if m.rule.name == "BAYES_SPAM_TOKENS")
        assert tokens.score == 2.0

    def test_influential_tokens_sorted(self, analyzer, dataset):
        record = make_record(subject="", text_body="viagra offer agenda")
        influential = analyzer.analyze(record, dataset).metadata["most_influential_tokens"]
        distances = [abs(item["spam_prob"] - 0.5) for item in influential]
        assert distances == sorted(distances, reverse=True)
        assert influential[0]["token"] == "viagra"

    def test_unknown_words_are_neutral(self, analyzer, dataset):
        record = make_record(subject="", text_body="zorblax quindle frobnicate")
        result = analyzer.analyze(record, dataset)
        assert result.metadata["spam_probability"] == NEUTRAL
        assert result.metadata["known_tokens"] == 0
        assert result.matches == ()
