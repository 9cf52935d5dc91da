# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Use Case: Build the totals report (one summed series per source)."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from gridledger.application.schemas.dto.reports import TotalReportDTO
from gridledger.application.services.chart_builder import build_rows, describe
from gridledger.application.services.report_collector import ALL_SOURCES, ReportCollector
from gridledger.domain.enums.reporting import LabelStyle
from gridledger.domain.services.period_calculator import months_of_financial_year
from gridledger.domain.services.reconciler import total_by_source

logger = logging.getLogger(__name__)


class BuildTotalReport:
    def __init__(self, collector: ReportCollector) -> None:
        self._collector = collector

    async def execute(
        self,
        financial_year: str,
        *,
        user: Mapping[str, Any] | None = None,
        label_style: LabelStyle = LabelStyle.MONTH_YEAR,
    ) -> TotalReportDTO:
        months = months_of_financial_year(financial_year)
        collected = await self._collector.collect(months, user, sources=ALL_SOURCES)
        totals = total_by_source(collected.ordered(), months, access=collected.access)
        series = list(totals.series) if months else []

        if not totals.has_data:
            logger.info(
                "report_no_data",
                extra={"extra": {"report": "total", "financial_year": financial_year}},
            )
        return TotalReportDTO(
            financial_year=financial_year,
            rows=build_rows(months, series, label_style=label_style),
            series=describe(series),
            has_data=totals.has_data,
            failed_cells=collected.failed_cells,
        )
