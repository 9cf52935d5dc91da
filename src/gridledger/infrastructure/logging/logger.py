# src/gridledger/infrastructure/logging/logger.py
# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Structured JSON logging utilities.

This module exposes an idempotent root configurator and a per-module logger
factory that produce one JSON object per line.

Features:
    * Stable keys: ``ts``, ``level``, ``logger``, ``message``.
    * ``request_id`` enrichment from a contextvar set by the HTTP middleware,
      falling back to a record attribute or the ``REQUEST_ID`` env var.
    * An ``extra={"extra": {...}}`` dict is merged into the line.

Typical usage:
    configure_root_logging()
    log = get_json_logger(__name__)
    log.warning("upstream_fetch_failed", extra={"extra": {"endpoint": "/banking"}})
"""

from __future__ import annotations

import json
import logging
import os
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

__all__ = [
    "configure_root_logging",
    "get_json_logger",
    "get_request_id",
    "set_request_context",
]

_REQUEST_ID_ENV_KEY = "REQUEST_ID"

_REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("gridledger_request_id", default=None)


def set_request_context(*, request_id: str | None = None) -> None:
    """Bind a correlation id to the current task context."""
    if request_id is not None:
        _REQUEST_ID_CTX.set(request_id)


def get_request_id() -> str | None:
    """Return the current request id from contextvars, if any."""
    return _REQUEST_ID_CTX.get(None)


class _JsonFormatter(logging.Formatter):
    """JSON log formatter emitting stable keys and optional extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.now(tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = get_request_id() or getattr(record, "request_id", None) or os.getenv(_REQUEST_ID_ENV_KEY)
        if rid:
            payload["request_id"] = rid

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            if exc_type is not None:
                payload["exc_type"] = exc_type.__name__
            if exc_value is not None:
                payload["exc_message"] = str(exc_value)

        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False, default=str)


def configure_root_logging(level: str | int | None = None) -> None:
    """Initialize the root logger with a JSON stream handler (idempotent).

    Args:
        level: Logging level or level name. If ``None``, use env ``LOG_LEVEL`` or ``INFO``.
    """
    root = logging.getLogger()

    env_level = os.getenv("LOG_LEVEL")
    resolved: int | str = (
        level if level is not None else (env_level.upper() if env_level else "INFO")
    )
    root.setLevel(resolved)

    if root.handlers:
        # Already configured (hot reload, test runner).
        return

    handler = logging.StreamHandler()
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)


def get_json_logger(name: str) -> logging.Logger:
    """Return a module logger that propagates to the JSON root handler.

    This does *not* configure the root logger; call
    :func:`configure_root_logging` once at startup.
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.propagate = True
    return logger
