"""FastAPI dependency-injection helpers for the scoring service."""

from __future__ import annotations

from fastapi import Request

from .batch import BatchAnalyzer
from .config import Settings
from .engine import SpamScorer


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_scorer(request: Request) -> SpamScorer:
    return request.app.state.scorer


def get_batch_analyzer(request: Request) -> BatchAnalyzer:
    return request.app.state.batch
