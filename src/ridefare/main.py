"""FastAPI application entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import health, mapbox, reservations
from .config import settings
from .errors import ProviderNotConfigured
from .services.notifications.dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.email_self_test:
        await NotificationDispatcher().send_self_test()
    logger.info(f"{settings.app_name} ready on port {settings.port}")
    yield


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title=settings.app_name, root_path="", lifespan=lifespan)
    if settings.frontend_allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.frontend_allowed_origins),
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(ProviderNotConfigured)
    async def provider_not_configured(request: Request, exc: ProviderNotConfigured) -> JSONResponse:
        logger.error(f"{request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Service cartographique non configuré."},
        )

    @app.exception_handler(httpx.TransportError)
    async def provider_unreachable(request: Request, exc: httpx.TransportError) -> JSONResponse:
        logger.warning(f"{request.url.path}: upstream provider unreachable: {exc!r}")
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": "Service cartographique injoignable."},
        )

    # Root endpoint for diagnostics
    @app.get("/")
    def root():
        return {
            "service": settings.app_name,
            "status": "running",
            "api_prefix": settings.api_prefix,
            "health": f"{settings.api_prefix}/health",
            "docs": "/docs",
        }

    app.include_router(health.router, prefix=settings.api_prefix)
    app.include_router(reservations.router, prefix=settings.api_prefix)
    app.include_router(mapbox.router, prefix=settings.api_prefix)
    return app


app = create_app()
