from __future__ import annotations

from decimal import Decimal

from gridledger.application.services.chart_builder import build_category_rows, build_rows, describe
from gridledger.domain.entities.raw_record import RawRecord
from gridledger.domain.enums.reporting import DataSource, LabelStyle
from gridledger.domain.services.aggregator import aggregate, constant_entity_key
from gridledger.domain.services.reconciler import Series


def _series(months: list[str], entity: str, **cats: int) -> Series:
    agg = aggregate(
        [RawRecord(DataSource.BANKING, {"sk": months[0], "bankingEnabled": True, "totalBanking": 9, **cats})],
        constant_entity_key(entity),
        months,
    )[entity]
    return Series(
        key=f"{entity}:banking",
        source=DataSource.BANKING,
        entity_id=entity,
        display_name=f"Site {entity}",
        aggregate=agg,
    )


def test_rows_cover_every_month_in_order(fy_months: list[str]) -> None:
    series = [_series(fy_months, "1_10", c1=4)]
    rows = build_rows(fy_months, series, label_style=LabelStyle.SHORT)

    assert [r.month_key for r in rows] == fy_months
    assert rows[0].month == "Apr"
    assert rows[0].values == {"1_10:banking": 9.0}
    assert rows[1].values == {"1_10:banking": 0.0}


def test_custom_value_picker(fy_months: list[str]) -> None:
    series = [_series(fy_months, "1_10", c1=4)]
    rows = build_rows(fy_months, series, value=lambda s, m: s.aggregate.vector(m).total)
    assert rows[0].values["1_10:banking"] == 4.0


def test_describe_assigns_stable_color_indexes(fy_months: list[str]) -> None:
    descriptors = describe([_series(fy_months, "1_10"), _series(fy_months, "1_11")])
    assert [(d.key, d.color_index) for d in descriptors] == [("1_10:banking", 0), ("1_11:banking", 1)]
    assert descriptors[0].source is DataSource.BANKING


def test_category_rows_split_each_series_into_five(fy_months: list[str]) -> None:
    rows, descriptors = build_category_rows(fy_months, [_series(fy_months, "1_10", c1=4, c3=2)])

    assert len(descriptors) == 5
    assert descriptors[0].key == "1_10:banking:c1"
    assert descriptors[0].display_name == "Site 1_10 C1"
    assert descriptors[2].category == "c3"
    assert rows[0].values["1_10:banking:c1"] == 4.0
    assert rows[0].values["1_10:banking:c3"] == 2.0
    assert rows[0].values["1_10:banking:c5"] == 0.0
    assert Decimal(str(rows[5].values["1_10:banking:c1"])) == Decimal(0)
