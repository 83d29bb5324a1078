"""Token-probability classifier using Robinson-Fisher combination."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Mapping

from ..datasets import LanguageDataset, TokenProbability
from ..models import AnalysisRule, AnalyzerResult, EmailRecord, RuleCategory, RuleMatch
from ..text import html_to_text
from .base import BaseAnalyzer

MAX_SCORE = 5.0
SIGNIFICANT_TOKENS = 15
NEUTRAL = 0.5

_NON_TOKEN = re.compile(r"[^\w\s'-]|_")

# (exclusive lower bound, score), checked top-down
_SPAM_SCALE = ((0.9, 4.0), (0.8, 3.0), (0.7, 2.0), (0.6, 1.0), (0.5, 0.5))
# (exclusive upper bound, score), checked top-down
_HAM_SCALE = ((0.2, -2.0), (0.3, -1.0))


def tokenize(text: str) -> list[str]:
    """Lowercased 3-20 character tokens, each once, twice if seen 3+ times."""
    words = _NON_TOKEN.sub(" ", text.lower()).split()
    counts = Counter(w for w in words if 3 <= len(w) <= 20)
    tokens: list[str] = []
    for token, count in counts.items():
        tokens.append(token)
        if count >= 3:
            tokens.append(token)
    return tokens


def token_spam_probability(entry: TokenProbability) -> float:
    return entry.spam / (entry.spam + entry.ham)


def robinson_fisher(tokens: list[str], table: Mapping[str, TokenProbability]) -> float:
    """Combine the most opinionated known token probabilities into one."""
    probabilities = [token_spam_probability(table[t]) for t in tokens if t in table]
    if not probabilities:
        return NEUTRAL

    significant = sorted(probabilities, key=lambda p: abs(p - 0.5), reverse=True)[:SIGNIFICANT_TOKENS]
    product_spam = 1.0
    product_ham = 1.0
    for p in significant:
        product_spam *= p
        product_ham *= 1 - p

    if product_spam == 0 and product_ham == 0:
        return NEUTRAL
    return max(0.0, min(1.0, product_spam / (product_spam + product_ham)))


def probability_to_score(probability: float) -> float:
    """Map a spam probability onto the analyzer's -2..4 scale."""
    for bound, score in _SPAM_SCALE:
        if probability > bound:
            return score
    for bound, score in _HAM_SCALE:
        if probability < bound:
            return score
    return 0.0


def _rule(name: str, description: str, score: float) -> AnalysisRule:
    return AnalysisRule(name=name, description=description, score=score, category=RuleCategory.BAYESIAN)


class BayesianAnalyzer(BaseAnalyzer):
    """Scores the email from the dataset's token spam/ham frequencies."""

    @property
    def name(self) -> str:
        return "bayesian"

    def analyze(self, record: EmailRecord, dataset: LanguageDataset) -> AnalyzerResult:
        html_text = html_to_text(record.html_body)
        tokens = tokenize(f"{record.subject} {record.text_body} {html_text}")

        if not tokens:
            return AnalyzerResult(
                analyzer=self.name,
                score=0.0,
                max_score=MAX_SCORE,
                metadata={"spam_probability": NEUTRAL, "token_count": 0, "known_tokens": 0},
            )

        table = dataset.bayesian_tokens
        known: list[tuple[str, float]] = []
        spam_tokens: list[str] = []
        ham_tokens: list[str] = []
        for token in tokens:
            entry = table.get(token)
            if entry is None:
                continue
            p = token_spam_probability(entry)
            known.append((token, p))
            if p > 0.7:
                spam_tokens.append(token)
            elif p < 0.3:
                ham_tokens.append(token)

        probability = robinson_fisher(tokens, table)
        score = probability_to_score(probability)

        matches: list[RuleMatch] = []
        if spam_tokens:
            matches.append(
                RuleMatch(
                    rule=_rule(
                        "BAYES_SPAM_TOKENS",
                        "Tokens with high spam probability",
                        min(len(spam_tokens) * 0.3, 2.0),
                    ),
                    details=f"{len(spam_tokens)} high-probability spam tokens",
                    evidence=tuple(dict.fromkeys(spam_tokens)),
                )
            )
        if ham_tokens:
            matches.append(
                RuleMatch(
                    rule=_rule(
                        "BAYES_HAM_TOKENS",
                        "Tokens with high ham probability",
                        -min(len(ham_tokens) * 0.2, 1.5),
                    ),
                    details=f"{len(ham_tokens)} high-probability ham tokens",
                    evidence=tuple(dict.fromkeys(ham_tokens)),
                )
            )

        if probability > 0.7:
            matches.append(
                RuleMatch(
                    rule=_rule(
                        "BAYES_SPAM",
                        f"Bayesian classifier indicates spam ({probability * 100:.1f}%)",
                        score,
                    ),
                    details=f"Spam probability: {probability * 100:.1f}%",
                )
            )
        elif probability < 0.3:
            matches.append(
                RuleMatch(
                    rule=_rule(
                        "BAYES_HAM",
                        f"Bayesian classifier indicates ham ({(1 - probability) * 100:.1f}%)",
                        score,
                    ),
                    details=f"Ham probability: {(1 - probability) * 100:.1f}%",
                )
            )

        influential = sorted(known, key=lambda item: abs(item[1] - 0.5), reverse=True)
        return AnalyzerResult(
            analyzer=self.name,
            score=max(0.0, score),
            max_score=MAX_SCORE,
            matches=tuple(matches),
            metadata={
                "spam_probability": probability,
                "token_count": len(tokens),
                "known_tokens": len(known),
                "spam_token_count": len(spam_tokens),
                "ham_token_count": len(ham_tokens),
                "most_influential_tokens": [
                    {"token": token, "spam_prob": p} for token, p in influential[:SIGNIFICANT_TOKENS]
                ],
            },
        )
