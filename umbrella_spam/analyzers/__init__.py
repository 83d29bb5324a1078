"""Email analyzers for the scoring engine."""

from .base import BaseAnalyzer
from .bayesian import BayesianAnalyzer
from .content import ContentAnalyzer
from .header import HeaderAnalyzer
from .html import HtmlAnalyzer
from .pattern import PatternAnalyzer
from .registry import AnalyzerRegistry, default_registry
from .url import UrlAnalyzer

__all__ = [
    "AnalyzerRegistry",
    "BaseAnalyzer",
    "BayesianAnalyzer",
    "ContentAnalyzer",
    "HeaderAnalyzer",
    "HtmlAnalyzer",
    "PatternAnalyzer",
    "UrlAnalyzer",
    "default_registry",
]
