# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Use Case: Build a single-source report.

Purpose:
    Aggregate one data source over a financial year, list the entities with
    data, apply the selection policy, and emit chart rows for the selected
    entities.

Layer:
    application/use_cases/reports
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from typing import Any

from gridledger.application.schemas.dto.reports import SourceReportDTO
from gridledger.application.services.chart_builder import (
    build_category_rows,
    build_rows,
    describe,
)
from gridledger.application.services.report_collector import ReportCollector
from gridledger.domain.enums.reporting import DataSource, LabelStyle
from gridledger.domain.services.aggregator import default_selection, non_empty_entities
from gridledger.domain.services.period_calculator import months_of_financial_year
from gridledger.domain.services.reconciler import reconcile

logger = logging.getLogger(__name__)

# Banking is charted per category by default.
_BREAKDOWN_DEFAULT: frozenset[DataSource] = frozenset({DataSource.BANKING})


class BuildSourceReport:
    """Build the report for one source.

    Args:
        collector: Aggregation pass runner.
        selection_size: Number of entities pre-selected when the caller sends
            no selection.
    """

    def __init__(self, collector: ReportCollector, *, selection_size: int = 5) -> None:
        self._collector = collector
        self._selection_size = selection_size

    async def execute(
        self,
        financial_year: str,
        source: DataSource,
        *,
        user: Mapping[str, Any] | None = None,
        selected: Sequence[str] | None = None,
        breakdown: bool | None = None,
        label_style: LabelStyle = LabelStyle.MONTH_YEAR,
    ) -> SourceReportDTO:
        """Build the report.

        Args:
            financial_year: ``"YYYY-YYYY"``; malformed values give an empty report.
            source: Data source to chart.
            user: Caller identity forwarded to the gateway for access lookup.
            selected: Previously selected entity ids. Ids that no longer have
                data are dropped; when empty, the first entities are chosen.
            breakdown: One series per category instead of one per entity.
                Defaults to True for banking only.
            label_style: Month label style for rows.
        """
        started = time.perf_counter()
        split = source in _BREAKDOWN_DEFAULT if breakdown is None else breakdown
        months = months_of_financial_year(financial_year)

        collected = await self._collector.collect(months, user, sources=(source,))
        src = collected.sources.get(source)
        aggregates = dict(src.aggregates) if src is not None else {}

        available_ids = non_empty_entities(aggregates)
        chosen = default_selection(available_ids, selected, self._selection_size)

        all_series = reconcile(collected.ordered((source,)), access=collected.access)
        by_entity = {s.entity_id: s for s in all_series}
        charted = [by_entity[e] for e in chosen if e in by_entity]

        if split:
            rows, series = build_category_rows(months, charted, label_style=label_style)
        else:
            rows, series = build_rows(months, charted, label_style=label_style), describe(charted)

        dto = SourceReportDTO(
            financial_year=financial_year,
            source=source,
            rows=rows,
            series=series,
            available=describe(all_series),
            selected=[s.entity_id for s in charted],
            breakdown=split,
            has_data=bool(all_series),
            failed_cells=collected.failed_cells,
        )
        logger.info(
            "report_built",
            extra={
                "extra": {
                    "report": source.value,
                    "financial_year": financial_year,
                    "available": len(all_series),
                    "selected": len(charted),
                    "failed_cells": collected.failed_cells,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                }
            },
        )
        return dto
