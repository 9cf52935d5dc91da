# src/gridledger/infrastructure/external_apis/energy_api/client.py
# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Energy API Transport Client: resilient, instrumented, async.

This transport is framework-agnostic and provides:

* Async HTTP (httpx) with a per-request timeout.
* Jittered exponential retries on network errors, 429 and 5xx; honors
  ``Retry-After`` seconds.
* Deterministic mapping of HTTP statuses to domain errors.
* Prometheus latency/error/retry metrics.

Every list endpoint returns ``list[dict]``. The upstream answers either with a
bare JSON array or with ``{"data": [...]}``; any other shape is an
:class:`UpstreamSchemaError`. 404 means "no records" and yields ``[]``.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from contextlib import suppress
from typing import Any, Final
from urllib.parse import quote

import httpx

from gridledger.domain.exceptions.reporting import (
    UpstreamFetchFailure,
    UpstreamRateLimited,
    UpstreamSchemaError,
    UpstreamUnauthorized,
)
from gridledger.infrastructure.external_apis.energy_api.settings import EnergyApiSettings
from gridledger.infrastructure.logging.logger import get_json_logger, get_request_id
from gridledger.infrastructure.observability.metrics import (
    get_upstream_errors_total,
    get_upstream_latency_seconds,
    get_upstream_retries_total,
)
from gridledger.infrastructure.resilience.retry import RetryPolicy, retry_async

logger = get_json_logger(__name__)

_DEFAULT_HEADERS: Final[dict[str, str]] = {
    "Accept": "application/json",
    "User-Agent": "gridledger-energy-client/1.0",
}

_MAX_RETRY_AFTER_S: Final[float] = 5.0


def _parse_retry_after(val: str | None) -> float | None:
    """Parse the HTTP ``Retry-After`` header (seconds form only)."""
    if not val:
        return None
    try:
        return max(0.0, float(val))
    except ValueError:
        return None


def _segment(value: object) -> str:
    return quote(str(value), safe="")


class EnergyApiClient:
    """Transport client for the upstream energy-accounting API."""

    def __init__(
        self,
        settings: EnergyApiSettings,
        *,
        http: httpx.AsyncClient | None = None,
        token: str | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        """Initialize the transport client.

        Args:
            settings: Base URL, timeout and retry budget.
            http: Optional shared ``httpx.AsyncClient``. If omitted, a client
                is created and owned by this instance.
            token: Bearer token forwarded on every request.
            retry_policy: Override for the policy built from ``settings``.
        """
        self._settings = settings
        self._base_url = str(settings.base_url).rstrip("/")
        self._timeout = float(settings.timeout_s)
        self._owns_client = http is None
        self._client = http or httpx.AsyncClient(timeout=self._timeout, headers=_DEFAULT_HEADERS.copy())
        self._token = token
        self._retry = retry_policy or RetryPolicy(
            total=settings.max_retries,
            base=settings.backoff_base_s,
            cap=settings.backoff_cap_s,
            jitter=True,
        )

    def with_token(self, token: str | None) -> EnergyApiClient:
        """Return a client sharing this one's connection pool but sending ``token``."""
        return EnergyApiClient(self._settings, http=self._client, token=token, retry_policy=self._retry)

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance owns it."""
        if self._owns_client and not self._client.is_closed:
            await self._client.aclose()

    # ---------------------------- Public API ----------------------------- #

    async def production_sites(self) -> list[dict[str, Any]]:
        return await self._get_list("/production-site/all", endpoint="production_sites")

    async def consumption_sites(self) -> list[dict[str, Any]]:
        return await self._get_list("/consumption-site/all", endpoint="consumption_sites")

    async def production_units(self, company_id: str, site_id: str) -> list[dict[str, Any]]:
        path = f"/production-unit/{_segment(company_id)}/{_segment(site_id)}/all"
        return await self._get_list(path, endpoint="production_units")

    async def consumption_units(self, company_id: str, site_id: str) -> list[dict[str, Any]]:
        path = f"/consumption-unit/{_segment(company_id)}/{_segment(site_id)}/all"
        return await self._get_list(path, endpoint="consumption_units")

    async def allocations_for_month(self, month: str) -> list[dict[str, Any]]:
        return await self._get_list(f"/allocation/month/{_segment(month)}", endpoint="allocations")

    async def banking(self, site_key: str) -> list[dict[str, Any]]:
        return await self._get_list(f"/banking/{_segment(site_key)}", endpoint="banking")

    async def lapse(self, site_key: str) -> list[dict[str, Any]]:
        return await self._get_list(f"/lapse/{_segment(site_key)}", endpoint="lapse")

    async def my_accessible_sites(self) -> Mapping[str, Any]:
        """Raw accessible-sites document for the caller identified by the token."""
        payload = await self._observe_call("/site-access/my-accessible-sites", endpoint="site_access")
        if payload is None:
            return {}
        if isinstance(payload, Mapping):
            data = payload.get("data", payload)
            return data if isinstance(data, Mapping) else {"sites": data}
        if isinstance(payload, list):
            return {"sites": payload}
        raise UpstreamSchemaError("bad_shape", details={"endpoint": "site_access"})

    # --------------------------- Internal helpers ------------------------- #

    async def _get_list(self, path: str, *, endpoint: str) -> list[dict[str, Any]]:
        payload = await self._observe_call(path, endpoint=endpoint)
        if payload is None:
            return []
        return self.extract_rows(payload, endpoint=endpoint)

    @staticmethod
    def extract_rows(payload: Any, *, endpoint: str) -> list[dict[str, Any]]:
        """Return the row list of a payload (bare list or ``{"data": list}``)."""
        rows = payload.get("data") if isinstance(payload, Mapping) else payload
        if not isinstance(rows, list):
            raise UpstreamSchemaError(
                "bad_shape",
                details={"endpoint": endpoint, "expected": "list | {data: list}"},
            )
        return [row for row in rows if isinstance(row, dict)]

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        request_id = get_request_id()
        if request_id:
            headers["X-Request-ID"] = request_id
        return headers

    async def _observe_call(self, path: str, *, endpoint: str) -> Any:
        """GET ``path`` under retry and metrics. Returns parsed JSON, or None on 404."""
        url = f"{self._base_url}{path}"
        headers = self._headers()

        async def _call() -> Any:
            try:
                response = await self._client.get(url, headers=headers, timeout=self._timeout)
            except httpx.RequestError as exc:
                raise UpstreamFetchFailure(
                    "transport_error",
                    details={"endpoint": endpoint, "error": type(exc).__name__},
                ) from exc

            if response.status_code == 404:
                return None

            try:
                self._map_errors(response.status_code)
            except UpstreamFetchFailure:
                retry_after = _parse_retry_after(response.headers.get("Retry-After"))
                if retry_after:
                    await asyncio.sleep(min(retry_after, _MAX_RETRY_AFTER_S))
                raise

            try:
                return response.json()
            except ValueError as exc:
                raise UpstreamSchemaError(
                    "non_json", details={"endpoint": endpoint, "error": str(exc)}
                ) from exc

        def _retryable(exc: Exception) -> bool:
            return isinstance(exc, UpstreamFetchFailure)

        def _on_retry(attempt: int, exc: Exception) -> None:
            with suppress(Exception):
                get_upstream_retries_total().labels(endpoint, type(exc).__name__).inc()
            logger.debug(
                "upstream_retry",
                extra={"extra": {"endpoint": endpoint, "attempt": attempt + 1, "error": type(exc).__name__}},
            )

        start = time.perf_counter()
        error_reason: str | None = None
        try:
            return await retry_async(_call, policy=self._retry, retry_on=_retryable, on_retry=_on_retry)
        except (UpstreamFetchFailure, UpstreamSchemaError, UpstreamUnauthorized) as exc:
            error_reason = type(exc).__name__
            raise
        finally:
            elapsed = time.perf_counter() - start
            with suppress(Exception):
                outcome = "error" if error_reason else "success"
                get_upstream_latency_seconds().labels(endpoint=endpoint, outcome=outcome).observe(elapsed)
                if error_reason:
                    get_upstream_errors_total().labels(endpoint=endpoint, reason=error_reason).inc()

    @staticmethod
    def _map_errors(status: int) -> None:
        """Raise domain exceptions for retryable and terminal HTTP statuses."""
        if status in (401, 403):
            raise UpstreamUnauthorized("upstream_rejected_credentials", details={"status": status})
        if status == 429:
            raise UpstreamRateLimited("rate_limited", details={"status": status})
        if status >= 500:
            raise UpstreamFetchFailure("upstream_unavailable", details={"status": status})
        if status >= 400:
            raise UpstreamSchemaError("bad_request", details={"status": status})
