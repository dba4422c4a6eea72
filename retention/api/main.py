"""
FastAPI application for the retention scheduling API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from retention.config import APIConfig
from retention.scheduling.errors import SchedulingError
from retention.skills.review_service import ReviewService
from .routes import router


logger = logging.getLogger(__name__)


def create_app(
    config: Optional[APIConfig] = None,
    review_service: Optional[ReviewService] = None,
) -> FastAPI:
    config = config or APIConfig()

    app = FastAPI(
        title=config.title,
        description="SM-2 spaced repetition scheduling for flashcards",
        version="0.1.0",
    )
    app.state.config = config
    app.state.review_service = review_service or ReviewService()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(SchedulingError)
    async def _scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
        logger.warning("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc)},
        )

    @app.get("/api/health")
    async def health() -> dict:
        return {"status": "ok"}

    app.include_router(router)
    return app


app = create_app()
