# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""HTTP schemas for report endpoints.

Layer: adapters/schemas/http
"""

from __future__ import annotations

from pydantic import Field

from gridledger.adapters.schemas.http.base import BaseHTTPSchema


class ChartRowHTTP(BaseHTTPSchema):
    month: str = Field(..., description="Display label, e.g. 'Apr 2024'.")
    month_key: str = Field(..., description="MMYYYY key.")
    values: dict[str, float] = Field(default_factory=dict, description="Series key -> value.")


class SeriesHTTP(BaseHTTPSchema):
    key: str
    display_name: str
    source: str
    entity_id: str
    category: str | None = None
    color_index: int


class SourceReportHTTP(BaseHTTPSchema):
    financial_year: str
    source: str
    rows: list[ChartRowHTTP]
    series: list[SeriesHTTP]
    available: list[SeriesHTTP]
    selected: list[str]
    breakdown: bool
    has_data: bool
    failed_cells: int


class CombinedReportHTTP(BaseHTTPSchema):
    financial_year: str
    rows: list[ChartRowHTTP]
    series: list[SeriesHTTP]
    has_data: bool
    failed_cells: int


class TotalReportHTTP(CombinedReportHTTP):
    pass


class FinancialYearOptionHTTP(BaseHTTPSchema):
    value: str
    label: str


class FinancialYearOptionsHTTP(BaseHTTPSchema):
    default: str
    options: list[FinancialYearOptionHTTP]
