"""FastAPI application factory."""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import Depends, FastAPI

from . import __version__
from .batch import BatchAnalyzer
from .config import Settings
from .datasets import available_languages
from .deps import get_scorer, get_settings
from .engine import SpamScorer
from .logging import SERVICE_NAME
from .middleware import RequestContextMiddleware

logger = structlog.get_logger()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build and return the FastAPI application."""
    if settings is None:
        settings = Settings()

    app = FastAPI(title="Umbrella Spam Scoring", version=__version__)
    app.state.settings = settings
    app.add_middleware(RequestContextMiddleware)

    scorer = SpamScorer(
        settings.scoring,
        default_language=settings.default_language,
        use_language_detection=settings.use_language_detection,
    )
    app.state.scorer = scorer
    app.state.batch = BatchAnalyzer(scorer, max_batch_size=settings.max_batch_size)
    logger.info("scorer_created", analyzers=scorer.registry.names)

    from .routers.analysis import router as analysis_router

    app.include_router(analysis_router)

    @app.get("/")
    async def index(current: Annotated[Settings, Depends(get_settings)]):
        return {
            "service": SERVICE_NAME,
            "version": __version__,
            "max_batch_size": current.max_batch_size,
            "languages": sorted(available_languages()),
            "endpoints": {
                "analyze": "POST /api/v1/analyze",
                "check": "POST /api/v1/check",
                "score": "POST /api/v1/score",
                "batch": "POST /api/v1/batch",
                "raw": "POST /api/v1/analyze/raw",
                "config": "GET /config",
                "health": "GET /health",
            },
        }

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": SERVICE_NAME}

    @app.get("/config")
    async def config(current: Annotated[SpamScorer, Depends(get_scorer)]):
        return current.get_config().model_dump()

    return app
