"""Abstract base class for email analyzers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from ..datasets import LanguageDataset
from ..models import AnalyzerResult, EmailRecord, RuleMatch
from ..rules import RuleCatalog


class BaseAnalyzer(ABC):
    """Inspect one facet of an EmailRecord and score it."""

    rules: RuleCatalog = RuleCatalog(())

    @property
    @abstractmethod
    def name(self) -> str:
        """Key this analyzer reports its results under."""

    @abstractmethod
    def analyze(self, record: EmailRecord, dataset: LanguageDataset) -> AnalyzerResult:
        """Score *record* against the rules of this analyzer.

        Synchronous and side-effect free: analyzers share no state, so the
        scorer may run them in any order or in parallel.
        """

    def match(
        self,
        rule_name: str,
        details: str | None = None,
        evidence: Iterable[str] = (),
    ) -> RuleMatch:
        """Build a match for a rule from this analyzer's catalog."""
        return RuleMatch(rule=self.rules[rule_name], details=details, evidence=tuple(evidence))
