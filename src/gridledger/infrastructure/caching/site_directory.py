# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Site Directory Cache.

Purpose:
    Read-through TTL cache for the production/consumption site lists. It is
    the only mutable state shared across aggregation passes, so it is an
    explicit object owned by the application and injected where needed.

Behavior:
    * Entries live for ``ttl_s`` seconds (default 300).
    * At most one refresh per site type is in flight; concurrent callers
      await the same task instead of issuing duplicate fetches.
    * When a refresh fails and a previous value exists, the stale value is
      returned and the failure is logged. Without a previous value the error
      propagates.

Layer:
    infrastructure/caching
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from gridledger.domain.entities.site_identity import SiteRecord
from gridledger.domain.enums.access import SiteType
from gridledger.infrastructure.logging.logger import get_json_logger
from gridledger.infrastructure.observability.metrics import (
    get_site_cache_hits_total,
    get_site_cache_misses_total,
)

logger = get_json_logger(__name__)

SiteLoader = Callable[[SiteType], Awaitable[Sequence[SiteRecord]]]


def _retrieve_exception(task: asyncio.Future[tuple[SiteRecord, ...]]) -> None:
    # Marks a refresh failure as seen when every waiter was cancelled.
    if not task.cancelled():
        task.exception()


@dataclass(frozen=True, slots=True)
class _Entry:
    sites: tuple[SiteRecord, ...]
    loaded_at: float


class SiteDirectoryCache:
    """TTL cache with single-flight refresh per site type."""

    def __init__(self, ttl_s: float = 300.0, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl_s = float(ttl_s)
        self._clock = clock
        self._entries: dict[SiteType, _Entry] = {}
        self._inflight: dict[SiteType, asyncio.Future[tuple[SiteRecord, ...]]] = {}

    @property
    def ttl_s(self) -> float:
        return self._ttl_s

    def _fresh(self, entry: _Entry) -> bool:
        return (self._clock() - entry.loaded_at) < self._ttl_s

    async def get(self, site_type: SiteType, loader: SiteLoader) -> list[SiteRecord]:
        """Return the cached site list for ``site_type``, refreshing when stale.

        Args:
            site_type: Which directory to read.
            loader: Coroutine function fetching the list from upstream. Only
                called when no fresh entry exists and no refresh is running.
        """
        entry = self._entries.get(site_type)
        if entry is not None and self._fresh(entry):
            get_site_cache_hits_total().labels(site_type.value).inc()
            return list(entry.sites)

        get_site_cache_misses_total().labels(site_type.value).inc()
        task = self._inflight.get(site_type)
        if task is None:
            task = asyncio.ensure_future(self._refresh(site_type, loader))
            task.add_done_callback(_retrieve_exception)
            self._inflight[site_type] = task

        try:
            # Shielded so a cancelled caller does not cancel the shared refresh.
            sites = await asyncio.shield(task)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            if entry is None:
                raise
            logger.warning(
                "site_cache_stale_served",
                extra={
                    "extra": {
                        "site_type": site_type.value,
                        "error": type(exc).__name__,
                        "age_s": round(self._clock() - entry.loaded_at, 3),
                    }
                },
            )
            return list(entry.sites)
        return list(sites)

    async def _refresh(self, site_type: SiteType, loader: SiteLoader) -> tuple[SiteRecord, ...]:
        try:
            sites = tuple(await loader(site_type))
            self._entries[site_type] = _Entry(sites=sites, loaded_at=self._clock())
            logger.info(
                "site_cache_refreshed",
                extra={"extra": {"site_type": site_type.value, "count": len(sites)}},
            )
            return sites
        finally:
            self._inflight.pop(site_type, None)

    def invalidate(self, site_type: SiteType | None = None) -> None:
        """Drop one cached directory, or all of them."""
        if site_type is None:
            self._entries.clear()
        else:
            self._entries.pop(site_type, None)
