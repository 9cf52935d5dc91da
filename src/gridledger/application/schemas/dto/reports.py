# src/gridledger/application/schemas/dto/reports.py
# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Application DTOs for chart reports.

Synopsis:
    Chart-ready rows (one per financial-year month) and legend descriptors
    (one per series) for the per-source, combined and total reports. Values
    are floats; exact Decimal sums are converted only here.

Layer:
    application/schemas/dto
"""

from __future__ import annotations

from pydantic import Field

from gridledger.application.schemas.dto.base import BaseDTO
from gridledger.domain.enums.reporting import DataSource


class ChartRow(BaseDTO):
    """One x-axis point.

    Attributes:
        month: Display label (e.g. ``"Apr 2024"``).
        month_key: Underlying ``MMYYYY`` key.
        values: Series key -> value for that month.
    """

    month: str
    month_key: str
    values: dict[str, float] = Field(default_factory=dict)


class SeriesDescriptor(BaseDTO):
    """Legend entry. ``key`` matches the keys of :attr:`ChartRow.values`."""

    key: str
    display_name: str
    source: DataSource
    entity_id: str
    category: str | None = None
    color_index: int = Field(ge=0)


class FinancialYearOptionDTO(BaseDTO):
    value: str
    label: str


class FinancialYearOptionsDTO(BaseDTO):
    default: str
    options: list[FinancialYearOptionDTO]


class SourceReportDTO(BaseDTO):
    """Report for a single data source.

    Attributes:
        financial_year: Requested ``"YYYY-YYYY"``.
        source: Data source charted.
        rows: Twelve rows in financial-year order (empty for a malformed year).
        series: Descriptors for the series present in ``rows``.
        available: Entity descriptors with non-zero data, for selection.
        selected: Entity ids charted in ``rows``.
        breakdown: True when rows carry one series per category.
        has_data: False when no entity had any non-zero value.
        failed_cells: Upstream fetches that failed and contributed zero.
    """

    financial_year: str
    source: DataSource
    rows: list[ChartRow]
    series: list[SeriesDescriptor]
    available: list[SeriesDescriptor]
    selected: list[str]
    breakdown: bool = False
    has_data: bool
    failed_cells: int = 0


class CombinedReportDTO(BaseDTO):
    """Every non-empty entity series of every source, side by side."""

    financial_year: str
    rows: list[ChartRow]
    series: list[SeriesDescriptor]
    has_data: bool
    failed_cells: int = 0


class TotalReportDTO(BaseDTO):
    """One summed series per source."""

    financial_year: str
    rows: list[ChartRow]
    series: list[SeriesDescriptor]
    has_data: bool
    failed_cells: int = 0
