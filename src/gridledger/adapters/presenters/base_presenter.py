# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Presenter utilities and canonical envelope helpers.

Responsibilities:
    * Build SuccessEnvelope instances.
    * Compute strong, quoted ETags from canonical JSON material.
    * Apply standard headers such as X-Request-ID.

Layer:
    adapters/presenters
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from fastapi import Response
from pydantic import BaseModel

from gridledger.adapters.schemas.http.envelopes import SuccessEnvelope
from gridledger.infrastructure.logging.logger import get_json_logger

_LOGGER = get_json_logger(__name__)


def _json_default(value: Any) -> str:
    """Serialize non-JSON-native types deterministically for hashing."""
    if isinstance(value, Decimal):
        v = value.normalize()
        if v == 0:
            return "0"
        return format(v, "f")
    raise TypeError(f"unsupported type for JSON hashing: {type(value)!r}")


def compute_quoted_etag(payload: Mapping[str, Any]) -> str:
    """Return a quoted strong ETag (SHA-256 of canonical JSON for ``payload``)."""
    material = json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        default=_json_default,
    ).encode("utf-8")
    return f'"{hashlib.sha256(material).hexdigest()}"'


@dataclass(slots=True)
class PresentResult[T]:
    """Presentation result envelope.

    Attributes:
        body: A Pydantic envelope instance, or ``None`` for 304.
        headers: Extra HTTP headers to apply.
        status_code: Optional HTTP status override.
    """

    body: T | None
    headers: Mapping[str, str]
    status_code: int | None = None


class BasePresenter:
    """Assemble standard envelopes and headers; no business decisions."""

    def present_success(
        self,
        *,
        data: Any,
        trace_id: str | None = None,
        if_none_match: str | None = None,
    ) -> PresentResult[SuccessEnvelope[Any]]:
        """Build a SuccessEnvelope and attach headers.

        Behavior:
            * Echoes ``X-Request-ID`` when provided.
            * Sets a quoted strong ``ETag`` computed from the envelope body.
            * Returns an empty 304 result when ``if_none_match`` equals it.
        """
        envelope = SuccessEnvelope[type(data)] if isinstance(data, BaseModel) else SuccessEnvelope[Any]
        body = envelope(data=data)
        etag = compute_quoted_etag(body.model_dump(mode="json"))

        headers: dict[str, str] = {"ETag": etag}
        if trace_id:
            headers["X-Request-ID"] = trace_id
        if if_none_match is not None and if_none_match.strip() == etag:
            return PresentResult(body=None, headers=headers, status_code=304)
        return PresentResult(body=body, headers=headers)

    @staticmethod
    def apply_headers(result: PresentResult[Any], response: Response) -> None:
        """Apply headers and optional status code to the outgoing response."""
        response.headers.update(dict(result.headers))
        if result.status_code is not None:
            response.status_code = result.status_code
