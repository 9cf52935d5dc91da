# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Prometheus scrape endpoint (``/metrics``).

Collectors are created lazily on first use; the scrape handler creates the
report-level ones so their metadata is present on a cold start.

Layer:
    adapters/routers
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from gridledger.infrastructure.observability.metrics import (
    get_failsoft_cells_total,
    get_report_build_seconds,
)

router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def metrics_probe() -> Response:
    """Expose Prometheus metrics in text format."""
    get_report_build_seconds()
    get_failsoft_cells_total()
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
