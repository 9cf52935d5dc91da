from __future__ import annotations

from decimal import Decimal

from gridledger.domain.entities.raw_record import RawRecord
from gridledger.domain.enums.reporting import DataSource
from gridledger.domain.services.access_filter import build_access
from gridledger.domain.services.aggregator import aggregate, constant_entity_key
from gridledger.domain.services.reconciler import (
    SourceAggregates,
    reconcile,
    series_key,
    total_by_source,
)


def _site_aggregates(source: DataSource, months: list[str], values: dict[str, int]) -> dict:
    result = {}
    for site_key, c1 in values.items():
        records = [RawRecord(source, {"sk": months[0], "c1": c1})]
        result.update(aggregate(records, constant_entity_key(site_key), months))
    return result


def test_same_display_name_does_not_merge_series(fy_months: list[str]) -> None:
    aggregates = _site_aggregates(DataSource.PRODUCTION, fy_months, {"1_10": 5, "1_11": 7})
    src = SourceAggregates(DataSource.PRODUCTION, aggregates, {"1_10": "Solar", "1_11": "Solar"})

    series = reconcile([src])
    assert [s.key for s in series] == ["1_10:production", "1_11:production"]
    assert [s.display_name for s in series] == ["Solar", "Solar"]
    assert series[1].value(fy_months[0]) == Decimal(7)


def test_same_entity_in_two_sources_gives_two_series(fy_months: list[str]) -> None:
    prod = SourceAggregates(DataSource.PRODUCTION, _site_aggregates(DataSource.PRODUCTION, fy_months, {"1_10": 1}))
    lapse = SourceAggregates(DataSource.LAPSE, _site_aggregates(DataSource.LAPSE, fy_months, {"1_10": 2}))
    keys = [s.key for s in reconcile([prod, lapse])]
    assert keys == [series_key("1_10", DataSource.PRODUCTION), series_key("1_10", DataSource.LAPSE)]


def test_all_zero_series_are_dropped(fy_months: list[str]) -> None:
    aggregates = _site_aggregates(DataSource.CONSUMPTION, fy_months, {"2_20": 0, "2_21": 3})
    series = reconcile([SourceAggregates(DataSource.CONSUMPTION, aggregates)])
    assert [s.entity_id for s in series] == ["2_21"]
    assert series[0].display_name == "2_21"


def test_reconcile_respects_access(fy_months: list[str]) -> None:
    aggregates = _site_aggregates(DataSource.PRODUCTION, fy_months, {"1_10": 1, "1_11": 1})
    access = build_access(["1_10"], [])
    series = reconcile([SourceAggregates(DataSource.PRODUCTION, aggregates)], access=access)
    assert [s.entity_id for s in series] == ["1_10"]


def test_total_by_source_sums_entities_per_source(fy_months: list[str]) -> None:
    prod = SourceAggregates(
        DataSource.PRODUCTION, _site_aggregates(DataSource.PRODUCTION, fy_months, {"1_10": 4, "1_11": 6})
    )
    cons = SourceAggregates(DataSource.CONSUMPTION, {})
    totals = total_by_source([prod, cons], fy_months)

    assert [s.key for s in totals.series] == ["production", "consumption"]
    assert totals.series[0].display_name == "Production"
    assert totals.series[0].value(fy_months[0]) == Decimal(10)
    assert totals.series[1].aggregate.is_empty
    assert totals.has_data


def test_total_by_source_without_data(fy_months: list[str]) -> None:
    totals = total_by_source([SourceAggregates(s, {}) for s in DataSource], fy_months)
    assert len(totals.series) == 5
    assert not totals.has_data
