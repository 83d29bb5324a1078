"""Body and subject content analyzer driven by the active language dataset."""

from __future__ import annotations

import re

from ..datasets import LanguageDataset
from ..models import AnalysisRule, AnalyzerResult, EmailRecord, RuleCategory, RuleMatch
from ..rules import RuleCatalog
from ..text import calculate_text_stats, html_to_text, normalize_text
from .base import BaseAnalyzer

CONTENT_RULES = RuleCatalog.build(
    RuleCategory.CONTENT,
    [
        ("HIGH_CAPS_RATIO", "Too much uppercase text", 0.5),
        ("HIGH_SPECIAL_CHAR_RATIO", "Too many special characters", 0.5),
        ("EMPTY_BODY", "Empty or very short body", 1.0),
        ("BODY_HTML_ONLY", "HTML-only body with no text alternative", 0.5),
        ("SUBJECT_EMPTY", "Empty subject line", 1.0),
        ("SUBJECT_ALL_CAPS", "Subject line is all caps", 1.0),
        ("MULTIPLE_EXCLAMATIONS", "Multiple exclamation marks", 0.5),
        ("EXCESSIVE_MONEY_REFS", "Multiple money references", 0.5),
    ],
)

MAX_SCORE = 30.0

_MONEY = re.compile(r"\$\s*[\d,]+(?:\.\d{2})?|\d+\s*(?:dollars?|USD|EUR|GBP)", re.IGNORECASE)


def _dynamic(name: str, description: str, score: float) -> AnalysisRule:
    return AnalysisRule(name=name, description=description, score=score, category=RuleCategory.CONTENT)


class ContentAnalyzer(BaseAnalyzer):
    """Lexical spam/ham signals in the subject and body."""

    rules = CONTENT_RULES

    @property
    def name(self) -> str:
        return "content"

    def analyze(self, record: EmailRecord, dataset: LanguageDataset) -> AnalyzerResult:
        subject = record.subject
        text_body = record.text_body
        html_text = html_to_text(record.html_body)

        body = text_body if len(text_body) > len(html_text) else html_text
        all_text = f"{subject} {body}"
        normalized = normalize_text(all_text)
        stats = calculate_text_stats(body)

        matches: list[RuleMatch] = []

        if len(body.strip()) < 10:
            matches.append(self.match("EMPTY_BODY", f"Body length: {len(body)}"))
        if record.html_body and not text_body:
            matches.append(self.match("BODY_HTML_ONLY", "No plain text alternative"))

        matches.extend(self._check_subject(subject, dataset))

        phrase_matches = self._check_phrases(all_text, normalized, dataset)
        word_matches = self._check_single_words(normalized, dataset)
        matches.extend(phrase_matches)
        matches.extend(word_matches)
        matches.extend(self._check_ham(normalized, dataset))

        if stats.uppercase_ratio > 0.3 and stats.word_count > 20:
            matches.append(
                self.match("HIGH_CAPS_RATIO", f"{stats.uppercase_ratio * 100:.1f}% uppercase")
            )
        if stats.special_char_ratio > 0.15:
            matches.append(
                self.match(
                    "HIGH_SPECIAL_CHAR_RATIO",
                    f"{stats.special_char_ratio * 100:.1f}% special chars",
                )
            )

        exclamations = all_text.count("!")
        if exclamations > 5:
            matches.append(self.match("MULTIPLE_EXCLAMATIONS", f"{exclamations} exclamation marks"))

        money = _MONEY.findall(all_text)
        if len(money) > 3:
            matches.append(
                self.match("EXCESSIVE_MONEY_REFS", f"{len(money)} money references", money[:5])
            )

        return AnalyzerResult.from_matches(
            self.name,
            matches,
            max_score=MAX_SCORE,
            metadata={
                "language": dataset.language,
                "language_name": dataset.language_name,
                "word_count": stats.word_count,
                "caps_ratio": stats.uppercase_ratio,
                "matched_phrases": len(phrase_matches),
                "matched_words": len(word_matches),
            },
        )

    # ------------------------------------------------------------------

    def _check_subject(self, subject: str, dataset: LanguageDataset) -> list[RuleMatch]:
        matches: list[RuleMatch] = []

        if not subject.strip():
            matches.append(self.match("SUBJECT_EMPTY"))

        if len(subject) > 5:
            letters = [c for c in subject if c.isascii() and c.isalpha()]
            upper = [c for c in letters if c.isupper()]
            if len(letters) > 5 and len(upper) / len(letters) > 0.8:
                matches.append(self.match("SUBJECT_ALL_CAPS", subject))

        for pattern in dataset.subject_patterns:
            if pattern.regex.search(subject):
                rule = _dynamic(
                    f"SUBJECT_PATTERN_{pattern.name}",
                    f"Subject matches spam pattern: {pattern.name}",
                    pattern.score,
                )
                matches.append(RuleMatch(rule=rule, details=subject))

        return matches

    def _check_phrases(
        self, all_text: str, normalized: str, dataset: LanguageDataset
    ) -> list[RuleMatch]:
        matches: list[RuleMatch] = []
        for entry in dataset.spam_words:
            if entry.case_sensitive:
                found = entry.word in all_text
            else:
                found = entry.word.lower() in normalized
            if found:
                rule = _dynamic(
                    f"SPAM_PHRASE_{entry.category.upper()}",
                    f'Spam phrase: "{entry.word}"',
                    entry.score,
                )
                matches.append(
                    RuleMatch(rule=rule, details=f"Category: {entry.category}", evidence=(entry.word,))
                )
        return matches

    def _check_single_words(self, normalized: str, dataset: LanguageDataset) -> list[RuleMatch]:
        matches: list[RuleMatch] = []
        seen: set[str] = set()
        for word in normalized.split():
            score = dataset.spam_single_words.get(word)
            if score is None or word in seen:
                continue
            seen.add(word)
            rule = _dynamic("SPAM_WORD_MATCH", f'Spam word: "{word}"', score)
            matches.append(RuleMatch(rule=rule, evidence=(word,)))
        return matches

    def _check_ham(self, normalized: str, dataset: LanguageDataset) -> list[RuleMatch]:
        matches: list[RuleMatch] = []
        for phrase, adjustment in dataset.ham_words.items():
            if phrase in normalized:
                rule = _dynamic("HAM_PHRASE_MATCH", f'Legitimate phrase: "{phrase}"', adjustment)
                matches.append(RuleMatch(rule=rule, evidence=(phrase,)))
        return matches
