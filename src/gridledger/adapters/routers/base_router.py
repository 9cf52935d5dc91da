# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""
Base Router (Adapters Layer)

Purpose:
    Canonical APIRouter wrapper for Gridledger HTTP endpoints:
      - Versioned routing with stable prefixes (e.g., "/v1/reports").
      - Standard error response mapping using ErrorEnvelope.
      - Helper to emit presenter results with headers (ETag, X-Request-ID).

Layer:
    adapters/routers
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from fastapi import APIRouter, Response

from gridledger.adapters.presenters.base_presenter import PresentResult
from gridledger.adapters.schemas.http.envelopes import ErrorEnvelope
from gridledger.infrastructure.logging.logger import get_json_logger

_LOGGER = get_json_logger(__name__)

TagType = str | Enum


class BaseRouter(APIRouter):
    """Router with a ``/{version}/{resource}`` prefix and shared error docs.

    Args:
        version: API version segment (e.g., "v1").
        resource: Plural resource segment (e.g., "reports").
        prefix: Optional explicit prefix (overrides version/resource).
        tags: Default tags applied to all routes mounted on this router.
        **kwargs: Additional APIRouter kwargs.
    """

    def __init__(
        self,
        *,
        version: str,
        resource: str,
        prefix: str | None = None,
        tags: Sequence[TagType] | None = None,
        **kwargs: Any,
    ) -> None:
        computed_prefix = prefix or f"/{version}/{resource}"
        super().__init__(
            prefix=computed_prefix,
            tags=list(tags) if tags is not None else None,
            **kwargs,
        )
        _LOGGER.debug(
            "router_initialized",
            extra={"extra": {"prefix": computed_prefix, "tags": [str(t) for t in tags or []]}},
        )

    @staticmethod
    def send(response: Response, result: PresentResult[Any]) -> Any:
        """Apply presenter headers/status to ``response`` and return the body.

        A 304 result yields an empty ``Response`` carrying the same headers.
        """
        if result.status_code == 304:
            return Response(status_code=304, headers=dict(result.headers))
        response.headers.update(dict(result.headers))
        if result.status_code is not None:
            response.status_code = result.status_code
        return result.body

    @staticmethod
    def std_error_responses() -> dict[int | str, dict[str, Any]]:
        """Canonical error response mapping for ``responses=``."""
        return {
            401: {"model": ErrorEnvelope, "description": "Upstream rejected the caller's credentials."},
            404: {"model": ErrorEnvelope, "description": "Unknown report source."},
            422: {"model": ErrorEnvelope, "description": "Malformed financial year or parameters."},
            500: {"model": ErrorEnvelope, "description": "Internal server error."},
            502: {"model": ErrorEnvelope, "description": "Upstream returned an unexpected payload."},
            503: {"model": ErrorEnvelope, "description": "Upstream unavailable."},
        }
