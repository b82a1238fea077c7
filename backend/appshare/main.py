"""FastAPI application — apps/gallery API, admin routes, health and metrics."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    generate_latest,
    multiprocess,
)
from starlette.responses import PlainTextResponse, Response

from appshare.api.admin import router as admin_router
from appshare.api.apps import router as apps_router
from appshare.config import settings
from appshare.container import build_services
from appshare.db import async_session_factory, init_models
from appshare.errors import register_exception_handlers
from appshare.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan — setup / teardown."""
    setup_logging()
    if settings.DB_CREATE_TABLES:
        await init_models()
    if getattr(app.state, "services", None) is None:
        app.state.services = build_services(async_session_factory)
    logger.info("App gallery API starting", extra={"env": settings.APP_ENV})
    yield
    logger.info("App gallery API shutting down")


def create_app() -> FastAPI:
    app = FastAPI(
        title="App Gallery",
        version="0.1.0",
        description="Publish HTML apps by session/version, list them in a gallery and upvote them",
        lifespan=lifespan,
    )

    # ── CORS ──
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.APP_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(apps_router)
    app.include_router(admin_router)

    # ── Health ──
    @app.get("/health", tags=["ops"])
    async def health() -> dict[str, str]:
        """Liveness probe."""
        return {"status": "ok", "service": "appshare"}

    # ── Prometheus Metrics ──
    @app.get("/metrics", tags=["ops"])
    async def metrics() -> Response:
        """Prometheus scrape endpoint."""
        try:
            registry = CollectorRegistry()
            multiprocess.MultiProcessCollector(registry)
            data = generate_latest(registry)
        except ValueError:
            # Not running in multiprocess mode
            data = generate_latest()
        return PlainTextResponse(content=data, media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
