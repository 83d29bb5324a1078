"""Tests for umbrella_spam.analyzers.content."""

from __future__ import annotations

import pytest

from umbrella_spam.analyzers.content import ContentAnalyzer
from umbrella_spam.datasets import LanguageDataset
from umbrella_spam.models import EmailRecord
from tests.conftest import make_record


def _rule_names(result) -> list[str]:
    return [m.rule.name for m in result.matches]


@pytest.fixture
def analyzer() -> ContentAnalyzer:
    return ContentAnalyzer()


class TestStructure:
    def test_clean_email_scores_zero(self, analyzer, dataset):
        result = analyzer.analyze(make_record(), dataset)
        assert result.score == 0.0
        assert all(m.score < 0 for m in result.matches)
        assert "HAM_PHRASE_MATCH" in _rule_names(result)
        assert result.metadata["language"] == "en"

    def test_empty_subject_and_body(self, analyzer, dataset):
        result = analyzer.analyze(EmailRecord(subject="", text_body=""), dataset)
        names = _rule_names(result)
        assert "EMPTY_BODY" in names
        assert "SUBJECT_EMPTY" in names
        assert result.score == 2.0

    def test_html_only_body(self, analyzer, dataset):
        record = make_record(text_body="", html_body="<p>Please find the notes from today below.</p>")
        names = _rule_names(analyzer.analyze(record, dataset))
        assert "BODY_HTML_ONLY" in names
        assert "EMPTY_BODY" not in names

    def test_longer_representation_is_used(self, analyzer, dataset):
        record = make_record(
            text_body="See HTML version.",
            html_body="<p>You have won! Claim your prize before it expires.</p>",
        )
        names = _rule_names(analyzer.analyze(record, dataset))
        assert "SPAM_PHRASE_LOTTERY" in names
        assert "BODY_HTML_ONLY" not in names


class TestSubject:
    def test_all_caps_subject(self, analyzer, dataset):
        names = _rule_names(analyzer.analyze(make_record(subject="AMAZING OFFER TODAY"), dataset))
        assert "SUBJECT_ALL_CAPS" in names

    def test_short_caps_subject_ignored(self, analyzer, dataset):
        names = _rule_names(analyzer.analyze(make_record(subject="FYI"), dataset))
        assert "SUBJECT_ALL_CAPS" not in names

    def test_subject_patterns_are_additive(self, analyzer, dataset):
        result = analyzer.analyze(make_record(subject="Urgent: you are the winner"), dataset)
        names = _rule_names(result)
        assert "SUBJECT_PATTERN_URGENT" in names
        assert "SUBJECT_PATTERN_WINNER" in names

    def test_case_sensitive_subject_pattern(self, analyzer, dataset):
        loud = _rule_names(analyzer.analyze(make_record(subject="Earn $$$ fast"), dataset))
        assert "SUBJECT_PATTERN_DOLLAR_SIGNS" in loud


class TestPhrases:
    def test_each_matching_phrase_scores(self, analyzer, dataset):
        record = make_record(subject="Notice", text_body="You have won! Click here to claim your prize.")
        result = analyzer.analyze(record, dataset)
        evidence = {m.evidence[0] for m in result.matches if m.rule.name.startswith("SPAM_PHRASE_")}
        assert evidence == {"you have won", "click here", "claim your prize"}
        assert result.score == pytest.approx(4.8)
        assert result.metadata["matched_phrases"] == 3

    def test_phrase_matched_across_whitespace_and_case(self, analyzer, dataset):
        record = make_record(subject="Notice", text_body="Please CLICK\n\n   HERE now")
        names = _rule_names(analyzer.analyze(record, dataset))
        assert "SPAM_PHRASE_MARKETING" in names

    def test_case_sensitive_phrase(self, analyzer):
        dataset = LanguageDataset.model_validate(
            {
                "language": "xx",
                "language_name": "Test",
                "spam_words": [
                    {"word": "FREE", "score": 1.0, "category": "money", "case_sensitive": True}
                ],
            }
        )
        quiet = analyzer.analyze(make_record(text_body="this is free for everyone"), dataset)
        loud = analyzer.analyze(make_record(text_body="this is FREE for everyone"), dataset)
        assert "SPAM_PHRASE_MONEY" not in _rule_names(quiet)
        assert "SPAM_PHRASE_MONEY" in _rule_names(loud)

    def test_single_word_credited_once(self, analyzer, dataset):
        record = make_record(subject="Notice", text_body="v1agra v1agra v1agra for sale")
        words = [m for m in analyzer.analyze(record, dataset).matches if m.rule.name == "SPAM_WORD_MATCH"]
        assert len(words) == 1
        assert words[0].score == 3.0

    def test_ham_phrases_offset_spam(self, analyzer, dataset):
        spam_only = make_record(subject="Notice", text_body="Act now, this offer is waiting.")
        with_ham = make_record(
            subject="Notice",
            text_body="Act now, this offer is waiting. As discussed in the meeting.",
        )
        assert analyzer.analyze(with_ham, dataset).score < analyzer.analyze(spam_only, dataset).score

    def test_score_floored_at_zero(self, analyzer, dataset):
        record = make_record(
            subject="Meeting agenda",
            text_body="As discussed, the meeting agenda and project schedule are attached. Regards.",
        )
        result = analyzer.analyze(record, dataset)
        assert sum(m.score for m in result.matches) < 0
        assert result.score == 0.0


class TestMonotonicity:
    @pytest.mark.parametrize("phrase", ["click here", "act now", "wire transfer", "cialis"])
    def test_adding_spam_phrase_never_decreases(self, analyzer, dataset, phrase):
        before = make_record(text_body="Hello team, status is green. " * 3)
        after = make_record(text_body=before.text_body + phrase)
        assert analyzer.analyze(after, dataset).score >= analyzer.analyze(before, dataset).score

    @pytest.mark.parametrize("phrase", ["meeting", "as discussed", "pull request", "regards"])
    def test_adding_ham_phrase_never_increases(self, analyzer, dataset, phrase):
        before = make_record(subject="Notice", text_body="Act now and earn money from home today.")
        after = make_record(subject="Notice", text_body=before.text_body + " " + phrase)
        assert analyzer.analyze(after, dataset).score <= analyzer.analyze(before, dataset).score


class TestTextShape:
    def test_high_caps_ratio(self, analyzer, dataset):
        body = "PLEASE READ THIS CAREFULLY AND RESPOND TO US VERY SOON. " * 3
        names = _rule_names(analyzer.analyze(make_record(text_body=body), dataset))
        assert "HIGH_CAPS_RATIO" in names

    def test_caps_in_short_text_ignored(self, analyzer, dataset):
        names = _rule_names(analyzer.analyze(make_record(text_body="NASA AND ESA REPORT"), dataset))
        assert "HIGH_CAPS_RATIO" not in names

    def test_special_characters(self, analyzer, dataset):
        body = "Deals @@## $$%% ^^&& **(( )) ~~ here"
        names = _rule_names(analyzer.analyze(make_record(text_body=body), dataset))
        assert "HIGH_SPECIAL_CHAR_RATIO" in names

    def test_exclamations(self, analyzer, dataset):
        many = _rule_names(analyzer.analyze(make_record(text_body="Wow!!!!!! really good"), dataset))
        few = _rule_names(analyzer.analyze(make_record(text_body="Wow!!!!! really good"), dataset))
        assert "MULTIPLE_EXCLAMATIONS" in many
        assert "MULTIPLE_EXCLAMATIONS" not in few

    def test_money_references(self, analyzer, dataset):
        body = "Pay $100, then $200, then $300 and finally 400 dollars today."
        result = analyzer.analyze(make_record(text_body=body), dataset)
        money = next(m for m in result.matches if m.rule.name == "EXCESSIVE_MONEY_REFS")
        assert money.details == "4 money references"
