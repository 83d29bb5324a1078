"""Obfuscation, entropy and structural spam-signature analyzer."""

from __future__ import annotations

import re

from ..data.patterns import (
    ALL_PATTERNS,
    BRACKETED_TAG,
    GREETING_RULES,
    NOTIFICATION_OPENERS,
    REPLY_SUBJECT,
)
from ..datasets import LanguageDataset
from ..models import AnalysisRule, AnalyzerResult, EmailRecord, RuleCategory, RuleMatch
from ..rules import RuleCatalog
from ..text import (
    calculate_entropy,
    has_invisible_chars,
    has_mixed_scripts,
    html_to_text,
    normalize_text,
)
from .base import BaseAnalyzer

CATALOG_RULES = RuleCatalog(
    AnalysisRule(name=p.name, description=p.description, score=p.score, category=RuleCategory.PATTERN)
    for p in ALL_PATTERNS
)

HEURISTIC_RULES = RuleCatalog.build(
    RuleCategory.PATTERN,
    [
        ("INVISIBLE_CHARS", "Zero-width or invisible characters detected", 1.0),
        ("MIXED_SCRIPTS", "Multiple Unicode scripts detected (possible homograph attack)", 1.0),
        ("WORD_SALAD", "High ratio of unique words (possible Bayesian poisoning)", 0.5),
        ("CHAR_STUFFING", "Character repetition detected", 0.5),
        ("HIGH_ENTROPY_FOOTER", "High entropy text at footer", 0.5),
        ("MULTIPLE_URGENCY", "Multiple urgency phrases", 1.0),
        ("GENERIC_GREETING_LOCALIZED", "Generic impersonal greeting in message language", 1.2),
    ],
)

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_FOOTER_SPLIT = re.compile(r"\n{3,}")


class PatternAnalyzer(BaseAnalyzer):
    """Runs the regex catalog plus entropy and repetition heuristics."""

    rules = CATALOG_RULES.merged(HEURISTIC_RULES)

    @property
    def name(self) -> str:
        return "pattern"

    def analyze(self, record: EmailRecord, dataset: LanguageDataset) -> AnalyzerResult:
        html_text = html_to_text(record.html_body)
        all_text = f"{record.subject} {record.text_body} {html_text}"
        body_text = (record.text_body or html_text).strip()
        first_line = body_text.split("\n")[0].strip()

        matches: list[RuleMatch] = []

        for entry in ALL_PATTERNS:
            target = body_text if entry.name in GREETING_RULES else all_text
            if entry.name == "NO_GREETING" and self._greeting_exempt(
                record.subject, first_line, dataset
            ):
                continue
            if entry.min_count > 1:
                hits = entry.pattern.findall(target)
                if len(hits) >= entry.min_count:
                    matches.append(
                        self.match(
                            entry.name,
                            f"{entry.description} ({len(hits)})",
                            [h[:100] for h in hits[:5]],
                        )
                    )
                continue
            found = entry.pattern.search(target)
            if found:
                snippet = found.group(0)[:100]
                matches.append(self.match(entry.name, entry.description, (snippet,) if snippet else ()))

        generic = dataset.generic_greeting_pattern
        if generic is not None:
            found = generic.search(first_line)
            if found:
                matches.append(
                    self.match(
                        "GENERIC_GREETING_LOCALIZED",
                        f"Greeting: {found.group(0)}",
                        (found.group(0),),
                    )
                )

        if has_invisible_chars(all_text):
            matches.append(
                self.match("INVISIBLE_CHARS", "Text contains invisible Unicode characters")
            )
        if has_mixed_scripts(all_text):
            matches.append(
                self.match("MIXED_SCRIPTS", "Latin mixed with Cyrillic or Greek characters")
            )

        long_words = [w for w in all_text.split() if len(w) > 5]
        unique_words: set[str] = set()
        high_entropy = 0
        for word in long_words[:100]:
            lowered = word.lower()
            unique_words.add(lowered)
            if calculate_entropy(lowered) > 4.5:
                high_entropy += 1
        if len(long_words) > 20 and high_entropy / len(long_words) > 0.4:
            matches.append(
                self.match(
                    "WORD_SALAD",
                    f"{len(unique_words)} unique words out of {len(long_words)} total",
                )
            )

        duplicates, sentence_count = self._count_duplicate_sentences(all_text)
        if sentence_count > 5 and duplicates / sentence_count > 0.3:
            matches.append(self.match("CHAR_STUFFING", f"{duplicates} repeated sentences detected"))

        parts = _FOOTER_SPLIT.split(all_text)
        if len(parts) > 1:
            footer = parts[-1].strip()
            if len(footer) > 100 and calculate_entropy(footer) > 5.0:
                matches.append(
                    self.match("HIGH_ENTROPY_FOOTER", "Footer matches high entropy patterns")
                )

        urgency = dataset.urgency_pattern
        if urgency is not None:
            hits = [m.group(0) for m in urgency.finditer(all_text)]
            if len(hits) >= 3:
                matches.append(
                    self.match("MULTIPLE_URGENCY", f"{len(hits)} urgency phrases", hits[:5])
                )

        return AnalyzerResult.from_matches(
            self.name,
            matches,
            max_score=CATALOG_RULES.total_score + 15,
            metadata={
                "unique_word_ratio": len(unique_words) / max(len(long_words), 1),
                "high_entropy_ratio": high_entropy / len(long_words) if long_words else 0.0,
                "duplicate_sentences": duplicates,
            },
        )

    # ------------------------------------------------------------------

    @staticmethod
    def _greeting_exempt(subject: str, first_line: str, dataset: LanguageDataset) -> bool:
        """Replies, notifications and title-like openers need no greeting."""
        if REPLY_SUBJECT.search(subject) or BRACKETED_TAG.search(subject):
            return True
        if first_line.startswith("@"):
            return True
        if any(p.search(first_line) for p in NOTIFICATION_OPENERS):
            return True
        greeting = dataset.greeting_pattern
        if greeting is not None and greeting.search(first_line):
            return True
        return 0 < len(first_line) < 50 and "," not in first_line

    @staticmethod
    def _count_duplicate_sentences(text: str) -> tuple[int, int]:
        """(repeated, total) over sentences longer than 20 characters."""
        sentences = [s for s in _SENTENCE_SPLIT.split(text) if len(s.strip()) > 20]
        seen: set[str] = set()
        duplicates = 0
        for sentence in sentences:
            key = normalize_text(sentence)
            if key in seen:
                duplicates += 1
            else:
                seen.add(key)
        return duplicates, len(sentences)
