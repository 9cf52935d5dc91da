# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Access filtering.

Purpose:
    Decide which sites, allocation pairs and raw records a caller may see,
    given the accessible site ids resolved for that caller.

Layer:
    domain/services

Notes:
    - Access denials are silent: callers simply skip invisible items.
    - Allocation pairs need BOTH endpoints to be accessible.
    - The empty-set reading comes from ``AccessibleSiteSet.policy`` only, so
      every call site treats an empty list the same way.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from gridledger.domain.entities.access import AccessibleSiteSet
from gridledger.domain.entities.raw_record import RawRecord
from gridledger.domain.entities.site_identity import AllocationPairKey
from gridledger.domain.enums.access import EmptyAccessPolicy, SiteType
from gridledger.domain.enums.reporting import DataSource

_LIST_KEYS: dict[SiteType, str] = {
    SiteType.PRODUCTION: "productionSites",
    SiteType.CONSUMPTION: "consumptionSites",
}


def strip_company(raw_id: object) -> str:
    """``"companyId_siteId"`` -> ``"siteId"``; ids without ``_`` are kept whole."""
    text = "" if raw_id is None else str(raw_id).strip()
    if "_" in text:
        return text.split("_")[1]
    return text


def accessible_ids(raw_ids: Iterable[object] | None) -> frozenset[str]:
    """Site ids (company id stripped) from raw ``"companyId_siteId"`` strings."""
    if not raw_ids:
        return frozenset()
    return frozenset(sid for sid in (strip_company(r) for r in raw_ids) if sid)


def _flatten_site_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, Mapping):
        if "L" in value:
            return _flatten_site_list(value["L"])
        if "S" in value:
            return _flatten_site_list(value["S"])
        return []
    if isinstance(value, Iterable):
        keys: list[str] = []
        for item in value:
            keys.extend(_flatten_site_list(item))
        return keys
    return [str(value)]


def accessible_site_keys(user_metadata: Mapping[str, Any] | None, site_type: SiteType) -> list[str]:
    """Raw ``"companyId_siteId"`` keys for ``site_type`` from a user object.

    Accepts the user object itself or its ``metadata`` mapping. The site list
    under ``accessibleSites.{productionSites,consumptionSites}`` may be a
    plain list, a comma-separated string, or an attribute-value list such as
    ``{"L": [{"S": "1_10"}]}``.
    """
    if not isinstance(user_metadata, Mapping):
        return []
    metadata = user_metadata.get("metadata", user_metadata)
    if not isinstance(metadata, Mapping):
        return []
    sites = metadata.get("accessibleSites")
    if not isinstance(sites, Mapping):
        return []
    seen: dict[str, None] = {}
    for key in _flatten_site_list(sites.get(_LIST_KEYS[site_type])):
        seen.setdefault(key, None)
    return list(seen)


def build_access(
    production_ids: Iterable[object] | None,
    consumption_ids: Iterable[object] | None,
    policy: EmptyAccessPolicy = EmptyAccessPolicy.UNRESTRICTED,
) -> AccessibleSiteSet:
    """Build an :class:`AccessibleSiteSet` from raw composite ids."""
    return AccessibleSiteSet(
        production=accessible_ids(production_ids),
        consumption=accessible_ids(consumption_ids),
        policy=policy,
    )


def is_site_visible(site_id: object, site_type: SiteType, access: AccessibleSiteSet) -> bool:
    """Whether a plain site is visible. ``site_id`` may carry a company prefix."""
    return access.allows(strip_company(site_id), site_type)


def is_pair_visible(pair_key: object, access: AccessibleSiteSet) -> bool:
    """Two-sided check: both the production and consumption ends must be visible."""
    pair = pair_key if isinstance(pair_key, AllocationPairKey) else AllocationPairKey.parse(pair_key)
    if pair is None:
        return False
    return access.allows(pair.production_site_id, SiteType.PRODUCTION) and access.allows(
        pair.consumption_site_id, SiteType.CONSUMPTION
    )


def _record_site_id(record: RawRecord) -> object:
    if record.source is DataSource.CONSUMPTION:
        site_id = record.get("consumptionSiteId")
    else:
        site_id = record.get("productionSiteId")
    return site_id if site_id is not None else record.get("pk")


def is_visible(record: RawRecord, access: AccessibleSiteSet) -> bool:
    """Dispatch on the record's source: pair check for allocations, site check otherwise."""
    if record.source is DataSource.ALLOCATION:
        return is_pair_visible(record.get("pk"), access)
    site_type = record.source.site_type or SiteType.PRODUCTION
    site_id = _record_site_id(record)
    if site_id is None:
        return access.allows("", site_type)
    return is_site_visible(site_id, site_type, access)
