# src/gridledger/infrastructure/http/errors.py
# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Exception handlers rendering every error as an ``ErrorEnvelope`` body."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.responses import Response

from gridledger.domain.exceptions.base import DomainError
from gridledger.domain.exceptions.reporting import (
    MalformedFinancialYear,
    UnknownDataSource,
    UpstreamFetchFailure,
    UpstreamSchemaError,
    UpstreamUnauthorized,
)
from gridledger.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)

# Most specific class first.
_DOMAIN_STATUS: tuple[tuple[type[DomainError], int], ...] = (
    (MalformedFinancialYear, 422),
    (UnknownDataSource, 404),
    (UpstreamUnauthorized, 401),
    (UpstreamSchemaError, 502),
    (UpstreamFetchFailure, 503),
)


def _request_id(request: Request) -> str | None:
    return getattr(getattr(request, "state", None), "request_id", None)


def status_for(exc: DomainError) -> int:
    for exc_type, status in _DOMAIN_STATUS:
        if isinstance(exc, exc_type):
            return status
    return 500


def error_envelope(
    *,
    code: str,
    http_status: int,
    message: str,
    details: dict[str, Any] | None = None,
    trace_id: str | None = None,
) -> dict[str, Any]:
    err: dict[str, Any] = {
        "code": code,
        "http_status": http_status,
        "message": message,
    }
    if details is not None:
        err["details"] = details
    if trace_id is not None:
        err["trace_id"] = trace_id
    return {"error": err}


async def handle_domain_error(request: Request, exc: DomainError) -> Response:
    status = status_for(exc)
    log = logger.warning if status < 500 else logger.error
    log("domain_error", extra={"extra": {"code": exc.code, "status": status, "path": request.url.path}})
    payload = error_envelope(
        code=exc.code,
        http_status=status,
        message=str(exc) or exc.code.lower(),
        details=exc.details or None,
        trace_id=_request_id(request),
    )
    return JSONResponse(status_code=status, content=payload)


async def handle_validation_error(request: Request, exc: RequestValidationError) -> Response:
    payload = error_envelope(
        code="VALIDATION_ERROR",
        http_status=422,
        message="Request validation failed",
        details={"errors": exc.errors()},
        trace_id=_request_id(request),
    )
    return JSONResponse(status_code=422, content=payload)


async def handle_http_exception(request: Request, exc: HTTPException) -> Response:
    payload = error_envelope(
        code="HTTP_ERROR",
        http_status=exc.status_code,
        message=exc.detail if isinstance(exc.detail, str) else "HTTP error",
        details=None if isinstance(exc.detail, str) else {"detail": exc.detail},
        trace_id=_request_id(request),
    )
    return JSONResponse(status_code=exc.status_code, content=payload)


async def handle_unhandled_exception(request: Request, exc: Exception) -> Response:
    logger.exception("unhandled_exception", extra={"extra": {"path": request.url.path}})
    payload = error_envelope(
        code="INTERNAL_ERROR",
        http_status=500,
        message="Internal server error",
        details=None,
        trace_id=_request_id(request),
    )
    return JSONResponse(status_code=500, content=payload)
