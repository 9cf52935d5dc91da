# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""HTTP Envelopes (Adapters Layer).

Purpose:
    Transport-facing envelopes:
      - ErrorEnvelope: ``{"error": ErrorObject}``
      - SuccessEnvelope[T]: ``{"data": T}``
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from gridledger.adapters.schemas.http.base import BaseHTTPSchema

__all__ = ["ErrorEnvelope", "ErrorObject", "SuccessEnvelope"]


class ErrorObject(BaseModel):
    """Structured error object inside ErrorEnvelope.

    Codes are UPPER_SNAKE_CASE and stable, e.g. ``MALFORMED_FINANCIAL_YEAR``,
    ``UPSTREAM_UNAUTHORIZED``, ``VALIDATION_ERROR``.
    """

    model_config = ConfigDict(
        title="ErrorObject",
        extra="forbid",
        json_schema_extra={
            "examples": [
                {
                    "code": "MALFORMED_FINANCIAL_YEAR",
                    "http_status": 422,
                    "message": "financial_year must look like 2024-2025",
                    "details": {"financial_year": "2024"},
                    "trace_id": "req-123",
                }
            ]
        },
    )

    code: str = Field(..., description="Stable machine-readable error code.")
    http_status: int = Field(..., description="Associated HTTP status.")
    message: str = Field(..., description="Human-readable error description.")
    details: dict[str, Any] | None = Field(default=None, description="Optional structured details.")
    trace_id: str | None = Field(default=None, description="Request correlation identifier.")


class ErrorEnvelope(BaseHTTPSchema):
    """Canonical error envelope."""

    model_config = ConfigDict(title="ErrorEnvelope", extra="forbid")

    error: ErrorObject = Field(..., description="Structured error details.")


class SuccessEnvelope[T](BaseHTTPSchema):
    """Success envelope for non-paginated responses."""

    model_config = ConfigDict(title="SuccessEnvelope", extra="forbid")

    data: T = Field(..., description="Returned resource or value.")
