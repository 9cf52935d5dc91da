# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Reports presenter: application report DTOs -> HTTP envelopes.

Layer:
    adapters/presenters
"""

from __future__ import annotations

from typing import Any

from gridledger.adapters.presenters.base_presenter import BasePresenter, PresentResult
from gridledger.adapters.schemas.http.envelopes import SuccessEnvelope
from gridledger.adapters.schemas.http.reports import (
    CombinedReportHTTP,
    FinancialYearOptionsHTTP,
    SourceReportHTTP,
    TotalReportHTTP,
)
from gridledger.application.schemas.dto.reports import (
    CombinedReportDTO,
    FinancialYearOptionsDTO,
    SourceReportDTO,
    TotalReportDTO,
)

SUPERSEDED_HEADER = "X-Report-Superseded"


class ReportsPresenter(BasePresenter):
    """Shape report DTOs into ``SuccessEnvelope`` bodies."""

    def _present(
        self,
        schema: Any,
        *,
        trace_id: str | None,
        if_none_match: str | None,
        superseded: bool,
    ) -> PresentResult[SuccessEnvelope[Any]]:
        result = self.present_success(data=schema, trace_id=trace_id, if_none_match=if_none_match)
        if superseded:
            result.headers = {**result.headers, SUPERSEDED_HEADER: "true"}
        return result

    def present_source(
        self,
        dto: SourceReportDTO,
        *,
        trace_id: str | None = None,
        if_none_match: str | None = None,
        superseded: bool = False,
    ) -> PresentResult[SuccessEnvelope[Any]]:
        schema = SourceReportHTTP.model_validate(dto.model_dump(mode="json"))
        return self._present(schema, trace_id=trace_id, if_none_match=if_none_match, superseded=superseded)

    def present_combined(
        self,
        dto: CombinedReportDTO,
        *,
        trace_id: str | None = None,
        if_none_match: str | None = None,
        superseded: bool = False,
    ) -> PresentResult[SuccessEnvelope[Any]]:
        schema = CombinedReportHTTP.model_validate(dto.model_dump(mode="json"))
        return self._present(schema, trace_id=trace_id, if_none_match=if_none_match, superseded=superseded)

    def present_total(
        self,
        dto: TotalReportDTO,
        *,
        trace_id: str | None = None,
        if_none_match: str | None = None,
        superseded: bool = False,
    ) -> PresentResult[SuccessEnvelope[Any]]:
        schema = TotalReportHTTP.model_validate(dto.model_dump(mode="json"))
        return self._present(schema, trace_id=trace_id, if_none_match=if_none_match, superseded=superseded)

    def present_financial_years(
        self, dto: FinancialYearOptionsDTO, *, trace_id: str | None = None
    ) -> PresentResult[SuccessEnvelope[Any]]:
        schema = FinancialYearOptionsHTTP.model_validate(dto.model_dump(mode="json"))
        return self.present_success(data=schema, trace_id=trace_id)
