"""Umbrella spam scoring engine and service."""

from __future__ import annotations

from .engine import SpamScorer
from .logging import setup_logging

__version__ = "0.1.0"

__all__ = ["SpamScorer", "__version__", "setup_logging"]
