from __future__ import annotations

import pytest

from gridledger.application.services.report_collector import ReportCollector
from gridledger.application.use_cases.reports.build_combined_report import BuildCombinedReport
from gridledger.application.use_cases.reports.build_source_report import BuildSourceReport
from gridledger.application.use_cases.reports.build_total_report import BuildTotalReport
from gridledger.domain.enums.access import SiteType
from gridledger.domain.enums.reporting import DataSource, LabelStyle


@pytest.mark.asyncio
async def test_source_report_defaults_to_first_entities(scenario) -> None:
    uc = BuildSourceReport(ReportCollector(scenario()), selection_size=5)
    dto = await uc.execute("2024-2025", DataSource.PRODUCTION)

    assert dto.has_data
    assert dto.breakdown is False
    assert dto.selected == ["1_10", "1_11"]
    assert [d.display_name for d in dto.available] == ["Solar A", "Solar B"]
    assert len(dto.rows) == 12
    assert dto.rows[0].month == "Apr 2024"
    assert dto.rows[0].values == {"1_10:production": 30.0, "1_11:production": 0.0}
    assert dto.rows[2].values["1_11:production"] == 3.0


@pytest.mark.asyncio
async def test_source_report_keeps_previous_selection(scenario) -> None:
    uc = BuildSourceReport(ReportCollector(scenario()))
    dto = await uc.execute("2024-2025", DataSource.PRODUCTION, selected=["1_11", "9_99"])
    assert dto.selected == ["1_11"]
    assert [s.key for s in dto.series] == ["1_11:production"]
    assert len(dto.available) == 2


@pytest.mark.asyncio
async def test_selection_size_limits_default_selection(scenario) -> None:
    uc = BuildSourceReport(ReportCollector(scenario()), selection_size=1)
    dto = await uc.execute("2024-2025", DataSource.PRODUCTION)
    assert dto.selected == ["1_10"]


@pytest.mark.asyncio
async def test_banking_report_breaks_down_by_category(scenario) -> None:
    uc = BuildSourceReport(ReportCollector(scenario()))
    dto = await uc.execute("2024-2025", DataSource.BANKING)

    assert dto.breakdown is True
    assert [s.key for s in dto.series] == [f"1_10:banking:c{i}" for i in range(1, 6)]
    assert dto.rows[0].values["1_10:banking:c1"] == 30.0
    assert dto.rows[0].values["1_10:banking:c2"] == 20.0


@pytest.mark.asyncio
async def test_banking_report_without_breakdown_uses_total_banking(scenario) -> None:
    uc = BuildSourceReport(ReportCollector(scenario()))
    dto = await uc.execute("2024-2025", DataSource.BANKING, breakdown=False)
    assert dto.rows[0].values == {"1_10:banking": 50.0}
    assert dto.rows[1].values == {"1_10:banking": 0.0}


@pytest.mark.asyncio
async def test_source_report_without_data(make_gateway) -> None:
    uc = BuildSourceReport(ReportCollector(make_gateway()))
    dto = await uc.execute("2024-2025", DataSource.LAPSE)
    assert not dto.has_data
    assert dto.series == []
    assert len(dto.rows) == 12


@pytest.mark.asyncio
async def test_malformed_financial_year_gives_empty_report(scenario) -> None:
    gateway = scenario()
    dto = await BuildSourceReport(ReportCollector(gateway)).execute("2024", DataSource.PRODUCTION)
    assert dto.rows == []
    assert not dto.has_data
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_combined_report_lists_every_non_empty_series(scenario) -> None:
    uc = BuildCombinedReport(ReportCollector(scenario()))
    dto = await uc.execute("2024-2025", label_style=LabelStyle.FULL)

    assert [s.key for s in dto.series] == [
        "1_10:production",
        "1_11:production",
        "2_20:consumption",
        "10_20:allocation",
        "11_21:allocation",
        "1_10:banking",
        "1_11:lapse",
    ]
    assert dto.series[3].display_name == "Solar A → Mill"
    assert [s.color_index for s in dto.series] == list(range(7))
    assert dto.rows[0].month == "April 2024"
    assert dto.rows[0].values["10_20:allocation"] == 10.0
    assert dto.has_data


@pytest.mark.asyncio
async def test_combined_report_under_restricted_access(scenario) -> None:
    gateway = scenario(accessible={SiteType.PRODUCTION: ["1_10"], SiteType.CONSUMPTION: ["2_20"]})
    dto = await BuildCombinedReport(ReportCollector(gateway)).execute("2024-2025")
    assert [s.key for s in dto.series] == [
        "1_10:production",
        "2_20:consumption",
        "10_20:allocation",
        "1_10:banking",
    ]


@pytest.mark.asyncio
async def test_total_report_has_one_series_per_source(scenario) -> None:
    dto = await BuildTotalReport(ReportCollector(scenario())).execute("2024-2025")

    assert [s.key for s in dto.series] == ["production", "consumption", "allocation", "banking", "lapse"]
    april = dto.rows[0].values
    assert april == {"production": 30.0, "consumption": 7.0, "allocation": 10.0, "banking": 50.0, "lapse": 0.0}
    assert dto.rows[3].values["lapse"] == 6.0
    assert dto.has_data
    assert dto.failed_cells == 0


@pytest.mark.asyncio
async def test_total_report_without_data(make_gateway) -> None:
    dto = await BuildTotalReport(ReportCollector(make_gateway())).execute("2024-2025")
    assert not dto.has_data
    assert len(dto.series) == 5
    assert all(v == 0.0 for row in dto.rows for v in row.values.values())


@pytest.mark.asyncio
async def test_total_report_for_malformed_year(make_gateway) -> None:
    dto = await BuildTotalReport(ReportCollector(make_gateway())).execute("nope")
    assert dto.rows == []
    assert dto.series == []
    assert not dto.has_data
