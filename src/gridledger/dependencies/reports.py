# src/gridledger/dependencies/reports.py
# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Dependency wiring for reports (client, gateway, collector, use cases).

Overview:
    FastAPI dependency providers consumed by ``reports_router``. Process-wide
    objects (the shared ``httpx.AsyncClient`` and the site directory cache)
    live on ``app.state`` and are created by the application lifespan; a
    per-request :class:`EnergyApiClient` wraps the shared pool with the
    caller's bearer token.

Layer:
    dependencies

Design:
    * Always return the real use case types.
    * Tests override ``get_report_collector`` (or the gateway) via
      ``app.dependency_overrides`` instead of patching transport code.
    * ``get_settings`` is a module-level shim so tests can monkeypatch it.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from functools import lru_cache
from typing import Annotated, Any

from fastapi import Depends, Request

from gridledger.adapters.gateways.energy_api_gateway import EnergyApiGateway
from gridledger.application.interfaces.site_data_gateway import SiteDataGateway
from gridledger.application.services.fetch_plan import FetchCell
from gridledger.application.services.report_collector import ReportCollector
from gridledger.application.services.report_session import ReportSession
from gridledger.application.use_cases.reports.build_combined_report import BuildCombinedReport
from gridledger.application.use_cases.reports.build_source_report import BuildSourceReport
from gridledger.application.use_cases.reports.build_total_report import BuildTotalReport
from gridledger.infrastructure.caching.site_directory import SiteDirectoryCache
from gridledger.infrastructure.external_apis.energy_api.client import EnergyApiClient
from gridledger.infrastructure.external_apis.energy_api.settings import EnergyApiSettings
from gridledger.infrastructure.observability.metrics import get_failsoft_cells_total


def get_settings() -> Any:
    """Shim for tests to patch settings resolution in this module."""
    from gridledger.config.settings import get_settings as core_get_settings

    return core_get_settings()


@lru_cache
def get_energy_api_settings() -> EnergyApiSettings:
    return EnergyApiSettings()


@lru_cache
def get_report_session() -> ReportSession:
    """Process-wide stale-response guard shared by all report routes."""
    return ReportSession()


def bearer_token(request: Request) -> str | None:
    """Return the caller's bearer token, if any."""
    raw = request.headers.get("Authorization") or ""
    scheme, _, token = raw.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_site_directory(request: Request) -> SiteDirectoryCache:
    """Return the app-wide site cache, creating it on first use."""
    cache = getattr(request.app.state, "site_directory", None)
    if cache is None:
        cache = SiteDirectoryCache(ttl_s=get_settings().site_cache_ttl_s)
        request.app.state.site_directory = cache
    return cache


async def get_energy_client(request: Request) -> AsyncIterator[EnergyApiClient]:
    """Per-request client over the shared pool, carrying the caller's token.

    Without a shared pool (no lifespan) the client owns its own pool and is
    closed when the request ends.
    """
    shared = getattr(request.app.state, "http_client", None)
    client = EnergyApiClient(get_energy_api_settings(), http=shared, token=bearer_token(request))
    try:
        yield client
    finally:
        await client.aclose()


def get_gateway(
    client: Annotated[EnergyApiClient, Depends(get_energy_client)],
) -> SiteDataGateway:
    return EnergyApiGateway(client)


def record_failsoft_cell(cell: FetchCell, exc: BaseException) -> None:
    """Failure hook: count a fetch cell that contributed zero."""
    get_failsoft_cells_total().labels(cell.source.value).inc()


def get_report_collector(
    gateway: Annotated[SiteDataGateway, Depends(get_gateway)],
    cache: Annotated[SiteDirectoryCache, Depends(get_site_directory)],
) -> ReportCollector:
    settings = get_settings()
    return ReportCollector(
        gateway,
        site_directory=cache.get,
        policy=settings.empty_access_policy,
        concurrency=settings.fetch_concurrency,
        on_failure=record_failsoft_cell,
    )


def get_build_source_report(
    collector: Annotated[ReportCollector, Depends(get_report_collector)],
) -> BuildSourceReport:
    return BuildSourceReport(collector, selection_size=get_settings().default_selection_size)


def get_build_combined_report(
    collector: Annotated[ReportCollector, Depends(get_report_collector)],
) -> BuildCombinedReport:
    return BuildCombinedReport(collector)


def get_build_total_report(
    collector: Annotated[ReportCollector, Depends(get_report_collector)],
) -> BuildTotalReport:
    return BuildTotalReport(collector)
