from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio
import respx

from gridledger.domain.exceptions.reporting import (
    UpstreamFetchFailure,
    UpstreamRateLimited,
    UpstreamSchemaError,
    UpstreamUnauthorized,
)
from gridledger.infrastructure.external_apis.energy_api.client import EnergyApiClient
from gridledger.infrastructure.external_apis.energy_api.settings import EnergyApiSettings

BASE = "https://energy.test/api"


@pytest.fixture
def settings() -> EnergyApiSettings:
    return EnergyApiSettings(base_url=BASE, max_retries=2, backoff_base_s=0.0, backoff_cap_s=0.0)


@pytest_asyncio.fixture
async def client(settings: EnergyApiSettings) -> AsyncIterator[EnergyApiClient]:
    c = EnergyApiClient(settings, token="tkn")
    try:
        yield c
    finally:
        await c.aclose()


@pytest.mark.asyncio
async def test_bare_list_body(client: EnergyApiClient) -> None:
    with respx.mock(base_url=BASE) as mock:
        route = mock.get("/production-site/all").mock(
            return_value=httpx.Response(200, json=[{"companyId": 1, "productionSiteId": 10}, "junk"])
        )
        rows = await client.production_sites()

    assert rows == [{"companyId": 1, "productionSiteId": 10}]
    request = route.calls.last.request
    assert request.headers["Authorization"] == "Bearer tkn"


@pytest.mark.asyncio
async def test_data_wrapped_body(client: EnergyApiClient) -> None:
    with respx.mock(base_url=BASE) as mock:
        mock.get("/allocation/month/042024").mock(
            return_value=httpx.Response(200, json={"success": True, "data": [{"pk": "pair_10_20"}]})
        )
        rows = await client.allocations_for_month("042024")
    assert rows == [{"pk": "pair_10_20"}]


@pytest.mark.asyncio
async def test_unit_paths_include_company_and_site(client: EnergyApiClient) -> None:
    with respx.mock(base_url=BASE) as mock:
        prod = mock.get("/production-unit/1/10/all").mock(return_value=httpx.Response(200, json=[]))
        cons = mock.get("/consumption-unit/2/20/all").mock(return_value=httpx.Response(200, json=[]))
        bank = mock.get("/banking/1_10").mock(return_value=httpx.Response(200, json=[]))
        lapse = mock.get("/lapse/1_10").mock(return_value=httpx.Response(200, json=[]))
        await client.production_units("1", "10")
        await client.consumption_units("2", "20")
        await client.banking("1_10")
        await client.lapse("1_10")
    assert prod.called and cons.called and bank.called and lapse.called


@pytest.mark.asyncio
async def test_404_means_no_records(client: EnergyApiClient) -> None:
    with respx.mock(base_url=BASE) as mock:
        mock.get("/banking/1_10").mock(return_value=httpx.Response(404, json={"message": "none"}))
        assert await client.banking("1_10") == []


@pytest.mark.asyncio
async def test_unexpected_shape_is_schema_error(client: EnergyApiClient) -> None:
    with respx.mock(base_url=BASE) as mock:
        mock.get("/lapse/1_10").mock(return_value=httpx.Response(200, json={"unexpected": True}))
        with pytest.raises(UpstreamSchemaError):
            await client.lapse("1_10")


@pytest.mark.asyncio
async def test_non_json_is_schema_error(client: EnergyApiClient) -> None:
    with respx.mock(base_url=BASE) as mock:
        mock.get("/lapse/1_10").mock(return_value=httpx.Response(200, text="<html>"))
        with pytest.raises(UpstreamSchemaError):
            await client.lapse("1_10")


@pytest.mark.asyncio
async def test_5xx_is_retried_then_succeeds(client: EnergyApiClient) -> None:
    with respx.mock(base_url=BASE) as mock:
        route = mock.get("/consumption-site/all").mock(
            side_effect=[httpx.Response(503), httpx.Response(200, json=[{"companyId": 2}])]
        )
        rows = await client.consumption_sites()
    assert rows == [{"companyId": 2}]
    assert route.call_count == 2


@pytest.mark.asyncio
async def test_retries_exhausted(client: EnergyApiClient) -> None:
    with respx.mock(base_url=BASE) as mock:
        route = mock.get("/consumption-site/all").mock(return_value=httpx.Response(500))
        with pytest.raises(UpstreamFetchFailure):
            await client.consumption_sites()
    assert route.call_count == 3


@pytest.mark.asyncio
async def test_transport_error_maps_to_fetch_failure(client: EnergyApiClient) -> None:
    with respx.mock(base_url=BASE) as mock:
        mock.get("/production-site/all").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(UpstreamFetchFailure):
            await client.production_sites()


@pytest.mark.asyncio
async def test_unauthorized_is_not_retried(client: EnergyApiClient) -> None:
    with respx.mock(base_url=BASE) as mock:
        route = mock.get("/site-access/my-accessible-sites").mock(return_value=httpx.Response(401))
        with pytest.raises(UpstreamUnauthorized):
            await client.my_accessible_sites()
    assert route.call_count == 1


@pytest.mark.asyncio
async def test_accessible_sites_document_is_unwrapped(client: EnergyApiClient) -> None:
    body = {"success": True, "data": {"productionSites": [{"companyId": 1, "siteId": 10}], "consumptionSites": []}}
    with respx.mock(base_url=BASE) as mock:
        mock.get("/site-access/my-accessible-sites").mock(return_value=httpx.Response(200, json=body))
        doc = await client.my_accessible_sites()
    assert doc["productionSites"] == [{"companyId": 1, "siteId": 10}]


@pytest.mark.parametrize(
    ("status", "exc"),
    [
        (401, UpstreamUnauthorized),
        (403, UpstreamUnauthorized),
        (429, UpstreamRateLimited),
        (500, UpstreamFetchFailure),
        (502, UpstreamFetchFailure),
        (400, UpstreamSchemaError),
    ],
)
def test_map_errors(status: int, exc: type[Exception]) -> None:
    with pytest.raises(exc):
        EnergyApiClient._map_errors(status)


def test_map_errors_passes_success() -> None:
    EnergyApiClient._map_errors(200)


def test_rate_limited_is_a_fetch_failure() -> None:
    assert issubclass(UpstreamRateLimited, UpstreamFetchFailure)


@pytest.mark.asyncio
async def test_with_token_shares_pool(settings: EnergyApiSettings) -> None:
    async with httpx.AsyncClient() as http:
        base = EnergyApiClient(settings, http=http)
        scoped = base.with_token("other")
        await scoped.aclose()
        assert not http.is_closed
