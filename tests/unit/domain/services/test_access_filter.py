from __future__ import annotations

import pytest

from gridledger.domain.entities.raw_record import RawRecord
from gridledger.domain.enums.access import EmptyAccessPolicy, SiteType
from gridledger.domain.enums.reporting import DataSource
from gridledger.domain.services.access_filter import (
    accessible_ids,
    accessible_site_keys,
    build_access,
    is_pair_visible,
    is_site_visible,
    is_visible,
    strip_company,
)


@pytest.mark.parametrize(("raw", "expected"), [("1_10", "10"), ("10", "10"), (" 3_7 ", "7"), (None, "")])
def test_strip_company(raw: object, expected: str) -> None:
    assert strip_company(raw) == expected


def test_accessible_ids_drop_company_and_blanks() -> None:
    assert accessible_ids(["1_10", "2_10", "11", ""]) == frozenset({"10", "11"})
    assert accessible_ids(None) == frozenset()


def test_accessible_site_keys_reads_attribute_value_lists() -> None:
    user = {
        "metadata": {
            "accessibleSites": {
                "productionSites": {"L": [{"S": "1_10"}, {"S": "1_11"}, {"S": "1_10"}]},
                "consumptionSites": "2_20, 2_21",
            }
        }
    }
    assert accessible_site_keys(user, SiteType.PRODUCTION) == ["1_10", "1_11"]
    assert accessible_site_keys(user, SiteType.CONSUMPTION) == ["2_20", "2_21"]


def test_accessible_site_keys_accepts_bare_metadata_and_missing_lists() -> None:
    metadata = {"accessibleSites": {"productionSites": ["1_10"]}}
    assert accessible_site_keys(metadata, SiteType.PRODUCTION) == ["1_10"]
    assert accessible_site_keys(metadata, SiteType.CONSUMPTION) == []
    assert accessible_site_keys(None, SiteType.PRODUCTION) == []


def test_pair_visibility_is_two_sided() -> None:
    access = build_access(["1_10"], ["2_20"])
    assert is_pair_visible("pair_10_20", access)
    assert not is_pair_visible("pair_10_99", access)
    assert not is_pair_visible("pair_99_20", access)


def test_pair_key_variants_are_equivalent() -> None:
    access = build_access(["1_10"], ["2_20"])
    assert is_pair_visible("7_10_20", access)
    assert is_pair_visible("10_20", access)
    assert not is_pair_visible("garbage", access)


def test_empty_access_policy_applies_to_every_check() -> None:
    open_access = build_access([], [], EmptyAccessPolicy.UNRESTRICTED)
    closed = build_access([], [], EmptyAccessPolicy.DENY_ALL)

    assert is_site_visible("1_10", SiteType.PRODUCTION, open_access)
    assert is_pair_visible("pair_10_20", open_access)
    assert not is_site_visible("1_10", SiteType.PRODUCTION, closed)
    assert not is_pair_visible("pair_10_20", closed)


def test_site_types_are_separate_identity_spaces() -> None:
    access = build_access(["1_10"], ["2_20"])
    assert is_site_visible("10", SiteType.PRODUCTION, access)
    assert not is_site_visible("10", SiteType.CONSUMPTION, access)


def test_is_visible_dispatches_on_source() -> None:
    access = build_access(["1_10"], ["2_20"])
    assert is_visible(RawRecord(DataSource.ALLOCATION, {"pk": "pair_10_20"}), access)
    assert not is_visible(RawRecord(DataSource.ALLOCATION, {"pk": "pair_10_99"}), access)
    assert is_visible(RawRecord(DataSource.PRODUCTION, {"productionSiteId": "10"}), access)
    assert not is_visible(RawRecord(DataSource.PRODUCTION, {"productionSiteId": "11"}), access)
    assert is_visible(RawRecord(DataSource.CONSUMPTION, {"consumptionSiteId": 20}), access)
    assert is_visible(RawRecord(DataSource.BANKING, {"pk": "1_10"}), access)
    assert not is_visible(RawRecord(DataSource.LAPSE, {}), access)
