"""Spam analysis endpoints: single, check, score, batch and raw MIME."""

from __future__ import annotations

import asyncio
import json
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from ..batch import BatchAnalyzer, BatchReport
from ..config import ScoringConfig
from ..deps import get_batch_analyzer, get_scorer
from ..engine import SpamScorer
from ..exceptions import BatchTooLargeError, EmailParseError
from ..models import SpamAnalysisResult
from ..parser import MimeParser, build_record
from ..schemas import AnalyzeRequest, BatchRequest, CheckResponse, ErrorResponse, ScoreResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["analysis"])

_RAW_JSON_KEYS = ("raw", "email", "message")

_ERROR_RESPONSES = {
    status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=error, message=message)
    return JSONResponse(body.model_dump(), status_code=status_code)


def _run(scorer: SpamScorer, body: AnalyzeRequest) -> SpamAnalysisResult | JSONResponse:
    """Score one request body, mapping failures onto HTTP error responses."""
    try:
        config = body.scoring_config(scorer.get_config())
        return scorer.analyze(build_record(body), config)
    except EmailParseError as exc:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid email", str(exc))
    except Exception as exc:
        logger.exception("analysis_failed", message_id=body.message_id)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Analysis failed", str(exc))


@router.post("/analyze", response_model=SpamAnalysisResult, responses=_ERROR_RESPONSES)
def analyze(
    body: AnalyzeRequest,
    scorer: Annotated[SpamScorer, Depends(get_scorer)],
):
    """Full analysis with per-analyzer breakdown."""
    return _run(scorer, body)


@router.post("/check", response_model=CheckResponse, responses=_ERROR_RESPONSES)
def check(
    body: AnalyzeRequest,
    scorer: Annotated[SpamScorer, Depends(get_scorer)],
):
    """Spam / not spam only."""
    result = _run(scorer, body)
    if isinstance(result, JSONResponse):
        return result
    return CheckResponse(is_spam=result.is_spam)


@router.post("/score", response_model=ScoreResponse, responses=_ERROR_RESPONSES)
def score(
    body: AnalyzeRequest,
    scorer: Annotated[SpamScorer, Depends(get_scorer)],
):
    result = _run(scorer, body)
    if isinstance(result, JSONResponse):
        return result
    return ScoreResponse(
        score=result.score,
        threshold=result.threshold,
        classification=result.classification,
    )


@router.post("/batch", response_model=BatchReport)
async def batch(
    body: BatchRequest,
    scorer: Annotated[SpamScorer, Depends(get_scorer)],
    analyzer: Annotated[BatchAnalyzer, Depends(get_batch_analyzer)],
):
    """Score up to ``max_batch_size`` emails; failures are reported per item."""
    if body.emails is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="emails array is required")

    config: ScoringConfig | None = None
    if body.config is not None:
        config = body.config.apply(scorer.get_config())

    try:
        return await analyzer.analyze_batch(body.emails, config)
    except BatchTooLargeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


@router.post("/analyze/raw", response_model=SpamAnalysisResult, responses=_ERROR_RESPONSES)
async def analyze_raw(
    request: Request,
    scorer: Annotated[SpamScorer, Depends(get_scorer)],
):
    """Analyze an RFC 822 message sent as text/plain, message/rfc822 or JSON."""
    payload = await request.body()
    content_type = request.headers.get("content-type", "")

    raw: object = payload
    if content_type.startswith("application/json"):
        try:
            data = json.loads(payload or b"{}")
        except json.JSONDecodeError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON") from exc
        raw = next((data[k] for k in _RAW_JSON_KEYS if isinstance(data, dict) and data.get(k)), None)

    if not isinstance(raw, (str, bytes)) or not raw.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Raw email content required")

    try:
        record = MimeParser().parse(raw)
    except EmailParseError as exc:
        return _error(status.HTTP_422_UNPROCESSABLE_ENTITY, "Invalid email", str(exc))

    try:
        return await asyncio.to_thread(scorer.analyze, record)
    except Exception as exc:
        logger.exception("analysis_failed", message_id=record.message_id)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Analysis failed", str(exc))
