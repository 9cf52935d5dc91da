# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Adapter Gateway: energy API -> application ``SiteDataGateway`` port.

Design principles:
    * All transport concerns (retry, status mapping, metrics) stay in
      :class:`EnergyApiClient`; this adapter only maps shapes.
    * Site directory rows become :class:`SiteRecord` values. Rows without a
      company or site id are skipped.
    * Accessible sites come from the user object when it carries
      ``metadata.accessibleSites``; otherwise from the upstream
      ``/site-access/my-accessible-sites`` document, fetched once per gateway.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from gridledger.application.interfaces.site_data_gateway import SiteDataGateway
from gridledger.domain.entities.site_identity import SiteIdentity, SiteRecord
from gridledger.domain.enums.access import SiteType
from gridledger.domain.services.access_filter import accessible_site_keys
from gridledger.infrastructure.external_apis.energy_api.client import EnergyApiClient
from gridledger.infrastructure.logging.logger import get_json_logger

logger = get_json_logger(__name__)

_SITE_ID_FIELDS: dict[SiteType, str] = {
    SiteType.PRODUCTION: "productionSiteId",
    SiteType.CONSUMPTION: "consumptionSiteId",
}
_ACCESS_LIST_FIELDS: dict[SiteType, str] = {
    SiteType.PRODUCTION: "productionSites",
    SiteType.CONSUMPTION: "consumptionSites",
}


def _has_access_metadata(user: Mapping[str, Any] | None) -> bool:
    if not isinstance(user, Mapping):
        return False
    metadata = user.get("metadata", user)
    return isinstance(metadata, Mapping) and "accessibleSites" in metadata


def _access_entry_key(entry: Any, site_type: SiteType) -> str | None:
    if isinstance(entry, str):
        return entry.strip() or None
    if isinstance(entry, Mapping):
        company = entry.get("companyId")
        site = entry.get("siteId", entry.get(_SITE_ID_FIELDS[site_type]))
        if company is not None and site is not None:
            return f"{company}_{site}"
        ident = entry.get("id") or entry.get("S")
        return str(ident) if ident else None
    return None


def to_site_record(row: Mapping[str, Any], site_type: SiteType) -> SiteRecord | None:
    """Map one directory row; None when ids are missing."""
    company = row.get("companyId")
    site = row.get(_SITE_ID_FIELDS[site_type], row.get("siteId"))
    if company is None or site is None or str(company).strip() == "" or str(site).strip() == "":
        return None
    name = row.get("name") or row.get("siteName") or ""
    return SiteRecord(
        identity=SiteIdentity(company_id=str(company), site_id=str(site), site_type=site_type),
        name=str(name),
    )


class EnergyApiGateway(SiteDataGateway):
    """``SiteDataGateway`` over the upstream energy API."""

    def __init__(self, client: EnergyApiClient) -> None:
        self._client = client
        self._access_doc: Mapping[str, Any] | None = None

    async def fetch_accessible_site_ids(
        self, user: Mapping[str, Any] | None, site_type: SiteType
    ) -> list[str]:
        if _has_access_metadata(user):
            return accessible_site_keys(user, site_type)
        if self._access_doc is None:
            self._access_doc = await self._client.my_accessible_sites()
        entries = self._access_doc.get(_ACCESS_LIST_FIELDS[site_type]) or []
        if isinstance(entries, Mapping | str):
            return accessible_site_keys({"accessibleSites": self._access_doc}, site_type)
        keys: dict[str, None] = {}
        for entry in entries:
            key = _access_entry_key(entry, site_type)
            if key:
                keys.setdefault(key, None)
        return list(keys)

    async def fetch_sites(self, site_type: SiteType) -> list[SiteRecord]:
        if site_type is SiteType.PRODUCTION:
            rows = await self._client.production_sites()
        else:
            rows = await self._client.consumption_sites()
        records = [to_site_record(row, site_type) for row in rows]
        skipped = sum(1 for r in records if r is None)
        if skipped:
            logger.debug(
                "site_rows_skipped",
                extra={"extra": {"site_type": site_type.value, "skipped": skipped}},
            )
        return [r for r in records if r is not None]

    async def fetch_units_for_site(
        self, site_type: SiteType, company_id: str, site_id: str
    ) -> list[dict[str, Any]]:
        if site_type is SiteType.PRODUCTION:
            return await self._client.production_units(company_id, site_id)
        return await self._client.consumption_units(company_id, site_id)

    async def fetch_allocations_for_month(self, month: str) -> list[dict[str, Any]]:
        return await self._client.allocations_for_month(month)

    async def fetch_banking_for_site(self, site_key: str) -> list[dict[str, Any]]:
        return await self._client.banking(site_key)

    async def fetch_lapse_for_site(self, site_key: str) -> list[dict[str, Any]]:
        return await self._client.lapse(site_key)
