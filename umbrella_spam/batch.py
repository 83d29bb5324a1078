"""Concurrent batch scoring with per-item error isolation."""

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from .config import ScoringConfig
from .engine import SpamScorer
from .exceptions import BatchTooLargeError, SpamScoringError
from .models import SpamAnalysisResult
from .parser import EmailInput, build_record

logger = structlog.get_logger()


class BatchItemResult(BaseModel):
    index: int
    success: bool
    result: SpamAnalysisResult | None = None
    error: str | None = None


class BatchSummary(BaseModel):
    total: int
    spam: int
    ham: int
    errors: int


class BatchReport(BaseModel):
    summary: BatchSummary
    results: list[BatchItemResult]


class BatchAnalyzer:
    """Runs many emails through a shared SpamScorer.

    Every item is scored in a worker thread. A failing item is recorded
    as an error entry and never affects its siblings.
    """

    def __init__(self, scorer: SpamScorer, max_batch_size: int = 100) -> None:
        self._scorer = scorer
        self._max_batch_size = max_batch_size

    async def analyze_batch(
        self,
        items: list[Any],
        config: ScoringConfig | None = None,
    ) -> BatchReport:
        if len(items) > self._max_batch_size:
            raise BatchTooLargeError(len(items), self._max_batch_size)

        results = await asyncio.gather(
            *(asyncio.to_thread(self._analyze_one, i, item, config) for i, item in enumerate(items))
        )

        succeeded = [r for r in results if r.success]
        spam = sum(1 for r in succeeded if r.result is not None and r.result.is_spam)
        summary = BatchSummary(
            total=len(items),
            spam=spam,
            ham=len(succeeded) - spam,
            errors=len(results) - len(succeeded),
        )
        logger.info("batch_completed", **summary.model_dump())
        return BatchReport(summary=summary, results=list(results))

    def _analyze_one(self, index: int, item: Any, config: ScoringConfig | None) -> BatchItemResult:
        with structlog.contextvars.bound_contextvars(batch_index=index):
            return self._score_item(index, item, config)

    def _score_item(self, index: int, item: Any, config: ScoringConfig | None) -> BatchItemResult:
        if item is None:
            logger.warning("batch_item_failed", error="empty item")
            return BatchItemResult(index=index, success=False, error="Invalid email data")

        try:
            data = item if isinstance(item, EmailInput) else EmailInput.model_validate(item)
            result = self._scorer.analyze(build_record(data), config)
        except (ValidationError, SpamScoringError) as exc:
            logger.warning("batch_item_failed", error=str(exc))
            return BatchItemResult(index=index, success=False, error=str(exc))
        except Exception as exc:
            logger.exception("batch_item_failed")
            return BatchItemResult(index=index, success=False, error=str(exc))

        return BatchItemResult(index=index, success=True, result=result)
