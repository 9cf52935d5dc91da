# tests/unit/application/conftest.py
from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from gridledger.domain.enums.access import SiteType


@pytest.fixture
def scenario(make_gateway: Callable[..., Any]) -> Callable[..., Any]:
    """Gateway factory preloaded with a small two-company dataset for FY 2024-2025."""

    def _build(**overrides: Any) -> Any:
        data: dict[str, Any] = {
            "production_sites": [("1", "10", "Solar A"), ("1", "11", "Solar B")],
            "consumption_sites": [("2", "20", "Mill"), ("2", "21", "Plant")],
            "units": {
                (SiteType.PRODUCTION, "1_10"): [
                    {"sk": "042024", "c1": 10, "c2": 20, "c3": 0, "c4": 0, "c5": 0},
                    {"sk": "052024", "c1": 1, "productionSiteId": "99"},
                ],
                (SiteType.PRODUCTION, "1_11"): [{"sk": "062024", "c2": 3}],
                (SiteType.CONSUMPTION, "2_20"): [{"sk": "042024", "c1": 7}],
            },
            "allocations": {
                "042024": [
                    {"pk": "pair_10_20", "sk": "042024", "type": "ALLOCATION", "c1": 5},
                    {"pk": "pair_10_20", "sk": "042024", "type": "ALLOCATION", "c1": 5},
                    {"pk": "pair_11_21", "sk": "052024", "c1": 100},
                ],
                "052024": [{"pk": "pair_11_21", "c1": 2}],
            },
            "banking": {
                "1_10": [
                    {"sk": "042024", "bankingEnabled": True, "totalBanking": 50, "c1": 30, "c2": 20},
                    {"sk": "052024", "bankingEnabled": False, "totalBanking": 70, "c1": 70},
                ],
            },
            "lapse": {"1_11": [{"sk": "072024", "c4": 6}]},
        }
        data.update(overrides)
        return make_gateway(**data)

    return _build
