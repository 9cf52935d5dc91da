# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Request ID Middleware.

Summary:
    Guarantees every request carries a correlation id. An inbound
    ``X-Request-ID`` is reused when sane, otherwise a UUIDv4 is generated. The
    id is stored on ``request.state.request_id``, bound to the logging
    contextvar, forwarded on upstream calls, and echoed on the response.

Layer:
    infrastructure/http/middleware
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from gridledger.infrastructure.logging.logger import set_request_context

REQUEST_ID_HEADER = "X-Request-ID"

_MAX_ID_LEN = 128


def _sanitize_inbound(raw: str | None) -> str | None:
    if raw is None:
        return None
    value = raw.strip()
    if not value or len(value) > _MAX_ID_LEN:
        return None
    return value


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach and echo a correlation id for every request."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = _sanitize_inbound(request.headers.get(REQUEST_ID_HEADER)) or str(uuid.uuid4())
        request.state.request_id = request_id
        set_request_context(request_id=request_id)

        response = await call_next(request)

        if REQUEST_ID_HEADER not in response.headers:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response


__all__ = ["REQUEST_ID_HEADER", "RequestIdMiddleware"]
