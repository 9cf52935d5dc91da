# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Application-level Site Data Gateway interface.

Synopsis:
    The collaborator port through which report use cases read upstream
    energy records. Implemented by
    ``gridledger.adapters.gateways.energy_api_gateway.EnergyApiGateway``;
    tests use in-memory stubs.

Contract:
    Every list-returning method returns a ``list``. Implementations raise
    ``UpstreamFetchFailure`` for transport failures and ``UpstreamSchemaError``
    when the upstream answers with something other than a list. Callers
    treat both as a zero contribution for the failed entity or month.

Layer:
    application/interfaces
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from gridledger.domain.entities.site_identity import SiteRecord
from gridledger.domain.enums.access import SiteType


class SiteDataGateway(Protocol):
    """Read access to sites, unit records, allocations, banking and lapse."""

    async def fetch_accessible_site_ids(
        self, user: Mapping[str, Any] | None, site_type: SiteType
    ) -> list[str]:
        """Return the caller's accessible ``"companyId_siteId"`` keys."""
        ...

    async def fetch_sites(self, site_type: SiteType) -> list[SiteRecord]:
        """Return the site directory (ids and display names) for ``site_type``."""
        ...

    async def fetch_units_for_site(
        self, site_type: SiteType, company_id: str, site_id: str
    ) -> list[dict[str, Any]]:
        """Return raw production or consumption unit rows for one site."""
        ...

    async def fetch_allocations_for_month(self, month: str) -> list[dict[str, Any]]:
        """Return raw allocation rows for one ``MMYYYY`` month."""
        ...

    async def fetch_banking_for_site(self, site_key: str) -> list[dict[str, Any]]:
        """Return raw banking rows for a ``"companyId_siteId"`` production site."""
        ...

    async def fetch_lapse_for_site(self, site_key: str) -> list[dict[str, Any]]:
        """Return raw lapse rows for a ``"companyId_siteId"`` production site."""
        ...
