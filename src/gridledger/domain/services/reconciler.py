# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Cross-source reconciliation.

Purpose:
    Merge per-source aggregates into one keyed series set for combined charts,
    and into one series per source for the totals chart.

Layer:
    domain/services

Notes:
    - Series keys are ``"{entity_id}:{source}"`` built from stable ids.
      Display names only ever reach :attr:`Series.display_name`, so two
      entities sharing a name never merge.
    - An entity whose fetch failed is simply missing from its source's
      aggregates; reconciliation carries on with the rest.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from gridledger.domain.entities.access import AccessibleSiteSet
from gridledger.domain.entities.monthly_aggregate import MonthlyAggregate
from gridledger.domain.enums.access import SiteType
from gridledger.domain.enums.reporting import DataSource
from gridledger.domain.services.access_filter import is_pair_visible, is_site_visible


@dataclass(frozen=True, slots=True)
class SourceAggregates:
    """Aggregates of one source plus the display names of its entities."""

    source: DataSource
    aggregates: Mapping[str, MonthlyAggregate]
    names: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Series:
    """One chart series: an entity (or a whole source) over the financial year."""

    key: str
    source: DataSource
    entity_id: str
    display_name: str
    aggregate: MonthlyAggregate

    def value(self, month: str) -> Decimal:
        return self.aggregate.contribution(month)


@dataclass(frozen=True, slots=True)
class SourceTotals:
    """One summed series per source, in source order."""

    series: tuple[Series, ...]
    has_data: bool


def series_key(entity_id: str, source: DataSource) -> str:
    return f"{entity_id}:{source.value}"


def _visible(entity_id: str, source: DataSource, access: AccessibleSiteSet | None) -> bool:
    if access is None:
        return True
    if source is DataSource.ALLOCATION:
        return is_pair_visible(entity_id, access)
    return is_site_visible(entity_id, source.site_type or SiteType.PRODUCTION, access)


def reconcile(
    sources: Sequence[SourceAggregates],
    *,
    access: AccessibleSiteSet | None = None,
) -> list[Series]:
    """Build the combined series list.

    Sources keep the order given; entities keep their discovery order. Series
    whose twelve months are all zero are dropped.
    """
    result: list[Series] = []
    seen: set[str] = set()
    for src in sources:
        for entity_id, agg in src.aggregates.items():
            if agg.is_empty or not _visible(entity_id, src.source, access):
                continue
            key = series_key(entity_id, src.source)
            if key in seen:
                continue
            seen.add(key)
            result.append(
                Series(
                    key=key,
                    source=src.source,
                    entity_id=entity_id,
                    display_name=src.names.get(entity_id, entity_id),
                    aggregate=agg,
                )
            )
    return result


def total_by_source(
    sources: Sequence[SourceAggregates],
    months: Sequence[str],
    *,
    access: AccessibleSiteSet | None = None,
) -> SourceTotals:
    """Sum every visible entity of each source into a single series.

    Every source passed in gets a series, even an all-zero one; ``has_data``
    is False only when all of them are zero.
    """
    series: list[Series] = []
    for src in sources:
        total = MonthlyAggregate.empty(months)
        for entity_id, agg in src.aggregates.items():
            if _visible(entity_id, src.source, access):
                total = total + agg
        series.append(
            Series(
                key=src.source.value,
                source=src.source,
                entity_id=src.source.value,
                display_name=src.source.value.capitalize(),
                aggregate=total,
            )
        )
    return SourceTotals(series=tuple(series), has_data=any(not s.aggregate.is_empty for s in series))
