# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Report collector: one aggregation pass over the upstream gateway.

Purpose:
    Resolve the caller's accessible sites, read the site directories through
    the shared cache, fan out per-site and per-month fetches as one
    :class:`FetchPlan`, and fold the rows into per-source aggregates.

Layer:
    application/services

Notes:
    - All state lives on the :class:`CollectedSources` returned by
      :meth:`ReportCollector.collect`; the collector itself holds only
      collaborators.
    - Failed cells are counted and skipped. A failed site is absent from its
      source's aggregates; a failed allocation month is zero for every pair.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from functools import partial
from typing import Any

from gridledger.application.interfaces.site_data_gateway import SiteDataGateway
from gridledger.application.services.fetch_plan import (
    CellResult,
    FailureHook,
    FetchPlan,
    run_fetch_plan,
)
from gridledger.domain.entities.access import AccessibleSiteSet
from gridledger.domain.entities.monthly_aggregate import MonthlyAggregate
from gridledger.domain.entities.raw_record import RawRecord
from gridledger.domain.entities.site_identity import AllocationPairKey, SiteRecord
from gridledger.domain.enums.access import EmptyAccessPolicy, SiteType
from gridledger.domain.enums.reporting import DataSource
from gridledger.domain.services.access_filter import build_access, is_site_visible
from gridledger.domain.services.aggregator import aggregate, constant_entity_key, pair_entity_key
from gridledger.domain.services.reconciler import SourceAggregates
from gridledger.domain.services.record_normalizer import belongs_to_site, extract_month

logger = logging.getLogger(__name__)

SiteDirectory = Callable[[SiteType, Callable[[SiteType], Awaitable[Sequence[SiteRecord]]]], Awaitable[list[SiteRecord]]]

ALL_SOURCES: tuple[DataSource, ...] = (
    DataSource.PRODUCTION,
    DataSource.CONSUMPTION,
    DataSource.ALLOCATION,
    DataSource.BANKING,
    DataSource.LAPSE,
)


@dataclass(slots=True)
class CollectedSources:
    """Output of one pass: aggregates per source plus pass bookkeeping."""

    months: list[str]
    access: AccessibleSiteSet
    sources: dict[DataSource, SourceAggregates] = field(default_factory=dict)
    failed_cells: int = 0

    def ordered(self, order: Sequence[DataSource] = ALL_SOURCES) -> list[SourceAggregates]:
        return [self.sources[s] for s in order if s in self.sources]


def pair_display_name(pair_key: str, production_names: Mapping[str, str], consumption_names: Mapping[str, str]) -> str:
    """``"<production name> → <consumption name>"``, falling back to raw ids."""
    pair = AllocationPairKey.parse(pair_key)
    if pair is None:
        return pair_key
    prod = production_names.get(pair.production_site_id, pair.production_site_id)
    cons = consumption_names.get(pair.consumption_site_id, pair.consumption_site_id)
    return f"{prod} → {cons}"


class ReportCollector:
    """Collects aggregates for the requested sources in one bounded fan-out.

    Args:
        gateway: Upstream port.
        site_directory: ``cache.get``-compatible callable. When None the
            gateway's ``fetch_sites`` is called directly.
        policy: Empty-access interpretation applied to every site iteration
            and filter in the pass.
        concurrency: Worker pool size for the fetch plan.
        on_failure: Optional hook per failed cell (metrics).
    """

    def __init__(
        self,
        gateway: SiteDataGateway,
        *,
        site_directory: SiteDirectory | None = None,
        policy: EmptyAccessPolicy = EmptyAccessPolicy.UNRESTRICTED,
        concurrency: int = 8,
        on_failure: FailureHook | None = None,
    ) -> None:
        self._gateway = gateway
        self._site_directory = site_directory
        self._policy = policy
        self._concurrency = concurrency
        self._on_failure = on_failure

    async def resolve_access(self, user: Mapping[str, Any] | None) -> AccessibleSiteSet:
        """Build the caller's accessible set. Failures here propagate."""
        production = await self._gateway.fetch_accessible_site_ids(user, SiteType.PRODUCTION)
        consumption = await self._gateway.fetch_accessible_site_ids(user, SiteType.CONSUMPTION)
        return build_access(production, consumption, self._policy)

    async def _directory(self, site_type: SiteType) -> list[SiteRecord]:
        if self._site_directory is not None:
            return list(await self._site_directory(site_type, self._gateway.fetch_sites))
        return list(await self._gateway.fetch_sites(site_type))

    async def visible_sites(
        self, site_type: SiteType, access: AccessibleSiteSet
    ) -> tuple[list[SiteRecord], bool]:
        """Directory sites visible under ``access``; the flag is False when the read failed."""
        try:
            sites = await self._directory(site_type)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "site_directory_unavailable",
                extra={"extra": {"site_type": site_type.value, "error": type(exc).__name__}},
            )
            return [], False
        seen: set[str] = set()
        visible: list[SiteRecord] = []
        for site in sites:
            key = site.identity.key
            if key in seen or not is_site_visible(site.identity.site_id, site_type, access):
                continue
            seen.add(key)
            visible.append(site)
        return visible, True

    async def collect(
        self,
        months: Sequence[str],
        user: Mapping[str, Any] | None,
        sources: Sequence[DataSource] = ALL_SOURCES,
    ) -> CollectedSources:
        """Run one aggregation pass for ``sources`` over ``months``."""
        if not months:
            return CollectedSources(months=[], access=AccessibleSiteSet(policy=self._policy))
        access = await self.resolve_access(user)
        result = CollectedSources(months=list(months), access=access)

        wanted = set(sources)
        need_production = wanted & {DataSource.PRODUCTION, DataSource.BANKING, DataSource.LAPSE, DataSource.ALLOCATION}
        need_consumption = wanted & {DataSource.CONSUMPTION, DataSource.ALLOCATION}

        production_sites: list[SiteRecord] = []
        consumption_sites: list[SiteRecord] = []
        if need_production:
            production_sites, ok = await self.visible_sites(SiteType.PRODUCTION, access)
            result.failed_cells += 0 if ok else 1
        if need_consumption:
            consumption_sites, ok = await self.visible_sites(SiteType.CONSUMPTION, access)
            result.failed_cells += 0 if ok else 1

        plan = FetchPlan()
        gw = self._gateway
        for source in sources:
            if source is DataSource.PRODUCTION:
                for site in production_sites:
                    plan.add(source, site.identity.key, partial(
                        gw.fetch_units_for_site, SiteType.PRODUCTION, site.identity.company_id, site.identity.site_id
                    ))
            elif source is DataSource.CONSUMPTION:
                for site in consumption_sites:
                    plan.add(source, site.identity.key, partial(
                        gw.fetch_units_for_site, SiteType.CONSUMPTION, site.identity.company_id, site.identity.site_id
                    ))
            elif source is DataSource.ALLOCATION:
                for month in months:
                    plan.add(source, "*", partial(gw.fetch_allocations_for_month, month), month=month)
            elif source is DataSource.BANKING:
                for site in production_sites:
                    plan.add(source, site.identity.key, partial(gw.fetch_banking_for_site, site.identity.key))
            elif source is DataSource.LAPSE:
                for site in production_sites:
                    plan.add(source, site.identity.key, partial(gw.fetch_lapse_for_site, site.identity.key))

        cells = await run_fetch_plan(plan, concurrency=self._concurrency, on_failure=self._on_failure)
        result.failed_cells += sum(1 for c in cells if not c.ok)

        prod_names = {s.identity.site_id: s.display_name for s in production_sites}
        cons_names = {s.identity.site_id: s.display_name for s in consumption_sites}
        sites_by_key = {s.identity.key: s for s in (*production_sites, *consumption_sites)}

        for source in sources:
            source_cells = [c for c in cells if c.cell.source is source and c.ok]
            if source is DataSource.ALLOCATION:
                aggregates = self._fold_allocations(source_cells, months, access)
                names = {key: pair_display_name(key, prod_names, cons_names) for key in aggregates}
            else:
                aggregates = self._fold_per_site(source, source_cells, months, sites_by_key)
                names = {key: sites_by_key[key].display_name for key in aggregates if key in sites_by_key}
            result.sources[source] = SourceAggregates(source=source, aggregates=aggregates, names=names)

        logger.info(
            "aggregation_pass_completed",
            extra={
                "extra": {
                    "sources": [s.value for s in sources],
                    "cells": len(cells),
                    "failed_cells": result.failed_cells,
                }
            },
        )
        return result

    @staticmethod
    def _fold_per_site(
        source: DataSource,
        cells: Sequence[CellResult],
        months: Sequence[str],
        sites_by_key: Mapping[str, SiteRecord],
    ) -> dict[str, MonthlyAggregate]:
        aggregates: dict[str, MonthlyAggregate] = {}
        for cell in cells:
            site = sites_by_key.get(cell.cell.entity)
            if site is None:
                continue
            records = [RawRecord(source=source, fields=row) for row in cell.rows]
            if source in (DataSource.PRODUCTION, DataSource.CONSUMPTION):
                records = [
                    r for r in records
                    if belongs_to_site(r.fields, site.identity.company_id, site.identity.site_id, source)
                ]
            aggregates.update(aggregate(records, constant_entity_key(site.identity.key), months))
        return aggregates

    @staticmethod
    def _fold_allocations(
        cells: Sequence[CellResult],
        months: Sequence[str],
        access: AccessibleSiteSet,
    ) -> dict[str, MonthlyAggregate]:
        records: list[RawRecord] = []
        for cell in cells:
            for row in cell.rows:
                row_month = extract_month(row)
                if not row_month:
                    row = {**row, "sk": cell.cell.month}
                elif row_month != cell.cell.month:
                    # Rows for another month belong to that month's fetch.
                    continue
                records.append(RawRecord(source=DataSource.ALLOCATION, fields=row))
        return aggregate(records, pair_entity_key, months, access=access)
