# src/gridledger/main.py
# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""
Application Entry (Adapters Bootstrap)

Synopsis:
    FastAPI bootstrap that wires middleware, exception handlers and routers.
    Provides an application factory (``create_app``) and a module-level eager
    app (``app``) for uvicorn and tests.

Design:
    * Bootstrap only (no business logic): routers + middleware + handlers.
    * Lifespan creates the shared upstream HTTP pool and the site directory
      cache on ``app.state`` and closes the pool on shutdown.
    * Root JSON logging configured at import time.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.responses import Response as StarletteResponse

from gridledger import __version__
from gridledger.adapters.routers.metrics_router import router as metrics_router
from gridledger.adapters.routers.reports_router import router as reports_router
from gridledger.config.settings import Settings, get_settings
from gridledger.dependencies.reports import get_energy_api_settings
from gridledger.domain.exceptions.base import DomainError
from gridledger.infrastructure.caching.site_directory import SiteDirectoryCache
from gridledger.infrastructure.http.errors import (
    handle_domain_error,
    handle_http_exception,
    handle_unhandled_exception,
    handle_validation_error,
)
from gridledger.infrastructure.http.middleware.request_id import RequestIdMiddleware
from gridledger.infrastructure.logging.logger import configure_root_logging, get_json_logger

configure_root_logging()
logger = get_json_logger(__name__)


@asynccontextmanager
async def runtime_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create and tear down process-wide upstream resources."""
    settings = get_settings()
    api_settings = get_energy_api_settings()
    app.state.http_client = httpx.AsyncClient(
        timeout=api_settings.timeout_s,
        headers={"Accept": "application/json"},
    )
    app.state.site_directory = SiteDirectoryCache(ttl_s=settings.site_cache_ttl_s)
    logger.info(
        "runtime_started",
        extra={"extra": {"upstream": api_settings.base_url, "site_cache_ttl_s": settings.site_cache_ttl_s}},
    )
    try:
        yield
    finally:
        await app.state.http_client.aclose()
        app.state.http_client = None
        logger.info("runtime_stopped")


def _attach_cors(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["ETag", "X-Request-ID", "X-Report-Superseded"],
    )


def _patch_exception_handlers(app: FastAPI) -> None:
    """Replace default exception handlers with ErrorEnvelope equivalents."""

    async def _domain_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        if not isinstance(exc, DomainError):
            raise exc
        return await handle_domain_error(request, exc)

    async def _http_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        if not isinstance(exc, HTTPException):
            raise exc
        return await handle_http_exception(request, exc)

    async def _validation_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        if not isinstance(exc, RequestValidationError):
            raise exc
        return await handle_validation_error(request, exc)

    async def _unhandled_error_handler(request: Request, exc: Exception) -> StarletteResponse:
        return await handle_unhandled_exception(request, exc)

    app.add_exception_handler(DomainError, _domain_error_handler)
    app.add_exception_handler(HTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings: Settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Monthly energy aggregation and reconciliation reports.",
        lifespan=runtime_lifespan,
    )

    _patch_exception_handlers(app)
    app.add_middleware(RequestIdMiddleware)
    _attach_cors(app, settings)

    app.include_router(reports_router, prefix=settings.api_prefix)
    app.include_router(metrics_router)

    @app.get("/healthz", include_in_schema=False)
    async def healthz() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    logger.info(
        "service_startup",
        extra={"extra": {"env": settings.environment.value, "version": __version__}},
    )
    return app


app: FastAPI = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run(
        "gridledger.main:create_app",
        factory=True,
        host="127.0.0.1",
        port=int(os.getenv("PORT", "8080")),
        reload=True,
    )
