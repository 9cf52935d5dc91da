# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Monthly aggregation of normalized records.

Purpose:
    Fold raw records of one source into per-entity :class:`MonthlyAggregate`
    tables over a financial year, and derive the selectable entity list.

Layer:
    domain/services

Notes:
    - Sums are Decimal, so the per-entity result does not depend on input
      order. Entity order is first-discovery order.
    - Every aggregate spans all twelve months (zero-filled).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from decimal import Decimal

from gridledger.domain.entities.access import AccessibleSiteSet
from gridledger.domain.entities.category_vector import ZERO, CategoryVector
from gridledger.domain.entities.monthly_aggregate import MonthlyAggregate
from gridledger.domain.entities.raw_record import RawRecord
from gridledger.domain.entities.site_identity import AllocationPairKey
from gridledger.domain.services.access_filter import is_visible
from gridledger.domain.services.record_normalizer import normalize

EntityKeyFn = Callable[[RawRecord], str | None]


def pair_entity_key(record: RawRecord) -> str | None:
    """Canonical ``"prod_cons"`` key of an allocation record, or None."""
    pair = AllocationPairKey.parse(record.get("pk"))
    return pair.canonical if pair is not None else None


def constant_entity_key(key: str) -> EntityKeyFn:
    """Entity key function for records already fetched per site."""
    return lambda _record: key


def aggregate(
    records: Iterable[RawRecord],
    entity_key: EntityKeyFn,
    months: Sequence[str],
    *,
    access: AccessibleSiteSet | None = None,
) -> dict[str, MonthlyAggregate]:
    """Group records by entity and month and sum them.

    Args:
        records:
            Raw records of a single source.
        entity_key:
            Maps a record to its entity id; None drops the record.
        months:
            Financial-year month keys; records outside them are dropped.
        access:
            When given, records failing :func:`is_visible` are dropped.

    Returns:
        Entity id -> aggregate, in first-discovery order. Entities appear only
        when at least one of their records normalized to a valid month.
    """
    vectors: dict[str, dict[str, CategoryVector]] = {}
    contributions: dict[str, dict[str, Decimal]] = {}
    for record in records:
        if access is not None and not is_visible(record, access):
            continue
        key = entity_key(record)
        if not key:
            continue
        entry = normalize(record, months)
        if entry is None:
            continue
        entity_vectors = vectors.setdefault(key, {})
        entity_contrib = contributions.setdefault(key, {})
        entity_vectors[entry.month] = entity_vectors.get(entry.month, CategoryVector.zero()) + entry.vector
        entity_contrib[entry.month] = entity_contrib.get(entry.month, ZERO) + entry.contribution

    month_span = tuple(months)
    return {
        key: MonthlyAggregate(months=month_span, vectors=vectors[key], contributions=contributions[key])
        for key in vectors
    }


def non_empty_entities(aggregates: Mapping[str, MonthlyAggregate]) -> list[str]:
    """Entity ids whose aggregate is not all-zero, in mapping order."""
    return [key for key, agg in aggregates.items() if not agg.is_empty]


def default_selection(
    available: Sequence[str],
    previous: Sequence[str] | None = None,
    limit: int = 5,
) -> list[str]:
    """Series to pre-select.

    With no prior selection, the first ``limit`` available keys. Otherwise the
    prior selection minus keys that are no longer available.
    """
    if not previous:
        return list(available[:limit])
    still_there = set(available)
    return [key for key in previous if key in still_there]
