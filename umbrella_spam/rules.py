"""Immutable rule catalogs indexed by rule name."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from .models import AnalysisRule, RuleCategory


class RuleCatalog(Mapping[str, AnalysisRule]):
    """Read-only ``name -> AnalysisRule`` table built once at import time.

    Analyzers hold a module-level catalog and look rules up by name when
    they fire; nothing mutates a catalog after construction.
    """

    def __init__(self, rules: Iterable[AnalysisRule]) -> None:
        table: dict[str, AnalysisRule] = {}
        for rule in rules:
            if rule.name in table:
                raise ValueError(f"Duplicate rule name: {rule.name}")
            table[rule.name] = rule
        self._rules = MappingProxyType(table)

    @classmethod
    def build(
        cls,
        category: RuleCategory,
        entries: Iterable[tuple[str, str, float]],
    ) -> RuleCatalog:
        """Build a catalog from ``(name, description, score)`` triples."""
        return cls(
            AnalysisRule(name=name, description=description, score=score, category=category)
            for name, description, score in entries
        )

    def __getitem__(self, name: str) -> AnalysisRule:
        return self._rules[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def total_score(self) -> float:
        """Sum of every rule's base score."""
        return sum(rule.score for rule in self._rules.values())

    def merged(self, other: RuleCatalog) -> RuleCatalog:
        return RuleCatalog([*self._rules.values(), *other.values()])
