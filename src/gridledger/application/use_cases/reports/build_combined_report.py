# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Use Case: Build the combined (all sources side by side) report."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from gridledger.application.schemas.dto.reports import CombinedReportDTO
from gridledger.application.services.chart_builder import build_rows, describe
from gridledger.application.services.report_collector import ALL_SOURCES, ReportCollector
from gridledger.domain.enums.reporting import LabelStyle
from gridledger.domain.services.period_calculator import months_of_financial_year
from gridledger.domain.services.reconciler import reconcile

logger = logging.getLogger(__name__)


class BuildCombinedReport:
    """One series per (entity, source) with any non-zero month."""

    def __init__(self, collector: ReportCollector) -> None:
        self._collector = collector

    async def execute(
        self,
        financial_year: str,
        *,
        user: Mapping[str, Any] | None = None,
        label_style: LabelStyle = LabelStyle.MONTH_YEAR,
    ) -> CombinedReportDTO:
        months = months_of_financial_year(financial_year)
        collected = await self._collector.collect(months, user, sources=ALL_SOURCES)
        series = reconcile(collected.ordered(), access=collected.access)

        logger.info(
            "report_built",
            extra={
                "extra": {
                    "report": "combined",
                    "financial_year": financial_year,
                    "series": len(series),
                    "failed_cells": collected.failed_cells,
                }
            },
        )
        return CombinedReportDTO(
            financial_year=financial_year,
            rows=build_rows(months, series, label_style=label_style),
            series=describe(series),
            has_data=bool(series),
            failed_cells=collected.failed_cells,
        )
