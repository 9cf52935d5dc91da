from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest
from fastapi.testclient import TestClient

from gridledger.application.services.report_collector import ReportCollector
from gridledger.application.services.report_session import ReportSession
from gridledger.dependencies.reports import get_report_collector, get_report_session
from gridledger.domain.enums.access import SiteType
from gridledger.main import create_app


@pytest.fixture
def gateway(make_gateway: Callable[..., Any]) -> Any:
    return make_gateway(
        production_sites=[("1", "10", "Solar A"), ("1", "11", "Solar B")],
        consumption_sites=[("2", "20", "Mill")],
        units={
            (SiteType.PRODUCTION, "1_10"): [{"sk": "042024", "c1": 10, "c2": 20}],
            (SiteType.PRODUCTION, "1_11"): [{"sk": "052024", "c1": 4}],
        },
        allocations={"042024": [{"pk": "pair_10_20", "sk": "042024", "c1": 6}]},
        banking={"1_10": [{"sk": "042024", "bankingEnabled": True, "totalBanking": 12, "c1": 12}]},
    )


@pytest.fixture
def session() -> ReportSession:
    return ReportSession()


@pytest.fixture
def client(gateway: Any, session: ReportSession) -> Iterator[TestClient]:
    app = create_app()
    app.dependency_overrides[get_report_collector] = lambda: ReportCollector(gateway)
    app.dependency_overrides[get_report_session] = lambda: session
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_financial_years(client: TestClient) -> None:
    resp = client.get("/v1/reports/financial-years")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["options"][0] == {"value": "2020-2021", "label": "April 2020 - March 2021"}
    assert data["default"] in {o["value"] for o in data["options"]}
    assert resp.headers["ETag"].startswith('"')


def test_total_report(client: TestClient) -> None:
    resp = client.get("/v1/reports/total", params={"financial_year": "2024-2025"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["financial_year"] == "2024-2025"
    assert [s["key"] for s in data["series"]] == ["production", "consumption", "allocation", "banking", "lapse"]
    assert len(data["rows"]) == 12
    assert data["rows"][0]["values"]["production"] == 30.0
    assert data["has_data"] is True


def test_combined_report(client: TestClient) -> None:
    resp = client.get("/v1/reports/combined", params={"financial_year": "2024-2025", "label_style": "short"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert [s["key"] for s in data["series"]] == [
        "1_10:production",
        "1_11:production",
        "10_20:allocation",
        "1_10:banking",
    ]
    assert data["rows"][0]["month"] == "Apr"


def test_source_report_with_selection(client: TestClient) -> None:
    resp = client.get(
        "/v1/reports/production",
        params=[("financial_year", "2024-2025"), ("selected", "1_11")],
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["source"] == "production"
    assert data["selected"] == ["1_11"]
    assert [s["entity_id"] for s in data["available"]] == ["1_10", "1_11"]
    assert data["rows"][1]["values"] == {"1_11:production": 4.0}


def test_banking_report_defaults_to_breakdown(client: TestClient) -> None:
    data = client.get("/v1/reports/banking", params={"financial_year": "2024-2025"}).json()["data"]
    assert data["breakdown"] is True
    assert data["series"][0]["category"] == "c1"

    flat = client.get(
        "/v1/reports/banking", params={"financial_year": "2024-2025", "breakdown": "false"}
    ).json()["data"]
    assert flat["breakdown"] is False
    assert flat["rows"][0]["values"] == {"1_10:banking": 12.0}


def test_malformed_financial_year_is_rejected_before_upstream(client: TestClient, gateway: Any) -> None:
    resp = client.get("/v1/reports/total", params={"financial_year": "2024-2026"})
    assert resp.status_code == 422
    assert resp.json()["error"]["code"] == "MALFORMED_FINANCIAL_YEAR"
    assert gateway.calls == []


def test_unknown_source_is_404(client: TestClient) -> None:
    resp = client.get("/v1/reports/solar", params={"financial_year": "2024-2025"})
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "UNKNOWN_DATA_SOURCE"


def test_conditional_get_returns_304(client: TestClient) -> None:
    first = client.get("/v1/reports/total", params={"financial_year": "2024-2025"})
    etag = first.headers["ETag"]
    second = client.get(
        "/v1/reports/total", params={"financial_year": "2024-2025"}, headers={"If-None-Match": etag}
    )
    assert second.status_code == 304
    assert second.headers["ETag"] == etag


def test_superseded_build_is_flagged(gateway: Any, session: ReportSession) -> None:
    original = gateway.fetch_accessible_site_ids

    async def bump_then_fetch(user: Any, site_type: SiteType) -> list[str]:
        if site_type is SiteType.PRODUCTION:
            session.begin(("anonymous", "total"), "2025-2026")
        return await original(user, site_type)

    gateway.fetch_accessible_site_ids = bump_then_fetch

    app = create_app()
    app.dependency_overrides[get_report_collector] = lambda: ReportCollector(gateway)
    app.dependency_overrides[get_report_session] = lambda: session
    resp = TestClient(app).get("/v1/reports/total", params={"financial_year": "2024-2025"})

    assert resp.status_code == 200
    assert resp.headers["X-Report-Superseded"] == "true"
    assert session.current_generation(("anonymous", "total")) == 2


def test_metrics_and_health(client: TestClient) -> None:
    assert client.get("/healthz").json() == {"status": "ok"}
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "gridledger_report_build_seconds" in metrics.text
