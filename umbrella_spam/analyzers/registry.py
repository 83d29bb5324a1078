"""Analyzer registry: maps analyzer names to analyzer instances."""

from __future__ import annotations

import structlog

from .base import BaseAnalyzer

logger = structlog.get_logger()


class AnalyzerRegistry:
    """Ordered registry of analyzers, keyed by analyzer name.

    Registration order is the order results are reported in.
    """

    def __init__(self) -> None:
        self._analyzers: dict[str, BaseAnalyzer] = {}

    def register(self, analyzer: BaseAnalyzer) -> None:
        """Register an analyzer under its name, replacing any previous one."""
        self._analyzers[analyzer.name] = analyzer
        logger.info("analyzer_registered", analyzer=analyzer.name, rules=len(analyzer.rules))

    def get(self, name: str) -> BaseAnalyzer | None:
        """Look up an analyzer by name. Returns None if unknown."""
        return self._analyzers.get(name)

    @property
    def analyzers(self) -> list[BaseAnalyzer]:
        return list(self._analyzers.values())

    @property
    def names(self) -> list[str]:
        return list(self._analyzers.keys())

    def __len__(self) -> int:
        return len(self._analyzers)


def default_registry() -> AnalyzerRegistry:
    """Registry holding the six built-in analyzers."""
    from .bayesian import BayesianAnalyzer
    from .content import ContentAnalyzer
    from .header import HeaderAnalyzer
    from .html import HtmlAnalyzer
    from .pattern import PatternAnalyzer
    from .url import UrlAnalyzer

    registry = AnalyzerRegistry()
    for analyzer in (
        HeaderAnalyzer(),
        ContentAnalyzer(),
        UrlAnalyzer(),
        HtmlAnalyzer(),
        PatternAnalyzer(),
        BayesianAnalyzer(),
    ):
        registry.register(analyzer)
    return registry
