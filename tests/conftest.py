# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any

import pytest

from gridledger.domain.entities.site_identity import SiteIdentity, SiteRecord
from gridledger.domain.enums.access import SiteType
from gridledger.domain.exceptions.reporting import UpstreamFetchFailure
from gridledger.domain.services.period_calculator import months_of_financial_year


class StubGateway:
    """In-memory ``SiteDataGateway`` with call recording and failure injection.

    Sites are given as ``(company_id, site_id, name)`` tuples. Keys of
    ``units`` are ``(site_type, "company_site")``; ``allocations`` is keyed by
    ``MMYYYY``; ``banking``/``lapse`` by ``"company_site"``. Any key listed in
    ``fail`` raises ``UpstreamFetchFailure``.
    """

    def __init__(
        self,
        *,
        production_sites: Sequence[tuple[str, str, str]] = (),
        consumption_sites: Sequence[tuple[str, str, str]] = (),
        accessible: Mapping[SiteType, list[str]] | None = None,
        units: Mapping[tuple[SiteType, str], list[dict[str, Any]]] | None = None,
        allocations: Mapping[str, list[dict[str, Any]]] | None = None,
        banking: Mapping[str, list[dict[str, Any]]] | None = None,
        lapse: Mapping[str, list[dict[str, Any]]] | None = None,
        fail: Sequence[Any] = (),
    ) -> None:
        self.sites = {
            SiteType.PRODUCTION: [
                SiteRecord(SiteIdentity(c, s, SiteType.PRODUCTION), n) for c, s, n in production_sites
            ],
            SiteType.CONSUMPTION: [
                SiteRecord(SiteIdentity(c, s, SiteType.CONSUMPTION), n) for c, s, n in consumption_sites
            ],
        }
        self.accessible = dict(accessible or {})
        self.units = dict(units or {})
        self.allocations = dict(allocations or {})
        self.banking = dict(banking or {})
        self.lapse = dict(lapse or {})
        self.fail = set(fail)
        self.calls: list[tuple[str, Any]] = []

    def _maybe_fail(self, key: Any) -> None:
        if key in self.fail:
            raise UpstreamFetchFailure("boom", details={"key": str(key)})

    async def fetch_accessible_site_ids(
        self, user: Mapping[str, Any] | None, site_type: SiteType
    ) -> list[str]:
        self.calls.append(("access", site_type))
        return list(self.accessible.get(site_type, []))

    async def fetch_sites(self, site_type: SiteType) -> list[SiteRecord]:
        self.calls.append(("sites", site_type))
        self._maybe_fail(("sites", site_type))
        return list(self.sites[site_type])

    async def fetch_units_for_site(
        self, site_type: SiteType, company_id: str, site_id: str
    ) -> list[dict[str, Any]]:
        key = (site_type, f"{company_id}_{site_id}")
        self.calls.append(("units", key))
        self._maybe_fail(key)
        return list(self.units.get(key, []))

    async def fetch_allocations_for_month(self, month: str) -> list[dict[str, Any]]:
        self.calls.append(("allocations", month))
        self._maybe_fail(month)
        return list(self.allocations.get(month, []))

    async def fetch_banking_for_site(self, site_key: str) -> list[dict[str, Any]]:
        self.calls.append(("banking", site_key))
        self._maybe_fail(("banking", site_key))
        return list(self.banking.get(site_key, []))

    async def fetch_lapse_for_site(self, site_key: str) -> list[dict[str, Any]]:
        self.calls.append(("lapse", site_key))
        self._maybe_fail(("lapse", site_key))
        return list(self.lapse.get(site_key, []))


@pytest.fixture
def fy_months() -> list[str]:
    """The twelve month keys of FY 2024-2025."""
    return months_of_financial_year("2024-2025")


@pytest.fixture
def make_gateway() -> Callable[..., StubGateway]:
    """Factory for :class:`StubGateway` instances."""
    return StubGateway
