# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Reports Router (v1).

Synopsis:
    HTTP surface for the monthly energy reports. Validates the financial year
    and source, delegates to the report use cases, and returns canonical
    ``SuccessEnvelope`` bodies with strong ETags.

Design:
    * Presentation-only: parses query parameters, calls a use case, shapes
      the response.
    * A malformed ``financial_year`` is rejected with 422 before any
      upstream call; an unknown ``{source}`` is 404.
    * Every build takes a ticket from the process-wide ``ReportSession``.
      A response whose ticket was superseded by a newer request for the same
      view is still returned, flagged with ``X-Report-Superseded: true``.

Layer:
    adapters/routers
"""

from __future__ import annotations

import hashlib
import time
from datetime import date
from typing import Annotated, Any

from fastapi import Depends, Query, Request, Response, status

from gridledger.adapters.presenters.reports_presenter import ReportsPresenter
from gridledger.adapters.routers.base_router import BaseRouter
from gridledger.adapters.schemas.http.envelopes import SuccessEnvelope
from gridledger.adapters.schemas.http.reports import (
    CombinedReportHTTP,
    FinancialYearOptionsHTTP,
    SourceReportHTTP,
    TotalReportHTTP,
)
from gridledger.application.schemas.dto.reports import (
    FinancialYearOptionDTO,
    FinancialYearOptionsDTO,
)
from gridledger.application.services.report_session import ReportSession
from gridledger.application.use_cases.reports.build_combined_report import BuildCombinedReport
from gridledger.application.use_cases.reports.build_source_report import BuildSourceReport
from gridledger.application.use_cases.reports.build_total_report import BuildTotalReport
from gridledger.dependencies.reports import (
    bearer_token,
    get_build_combined_report,
    get_build_source_report,
    get_build_total_report,
    get_report_session,
    get_settings,
)
from gridledger.domain.enums.reporting import DataSource, LabelStyle
from gridledger.domain.exceptions.reporting import MalformedFinancialYear, UnknownDataSource
from gridledger.domain.services.period_calculator import (
    default_financial_year,
    financial_year_options,
    parse_financial_year,
)
from gridledger.infrastructure.observability.metrics import get_report_build_seconds

router = BaseRouter(version="v1", resource="reports", tags=["Reports"])
_presenter = ReportsPresenter()

FinancialYearQuery = Annotated[
    str | None,
    Query(description="Financial year 'YYYY-YYYY' (April to March). Defaults to the current one."),
]
LabelStyleQuery = Annotated[LabelStyle, Query(description="Month label style for chart rows.")]


# --------------------------------------------------------------------------- #
# Parsers                                                                     #
# --------------------------------------------------------------------------- #
def _validated_financial_year(raw: str | None) -> str:
    """Return the normalized ``YYYY-YYYY`` value or raise MalformedFinancialYear."""
    if raw is None or not raw.strip():
        return default_financial_year()
    fy = parse_financial_year(raw)
    if fy is None:
        raise MalformedFinancialYear(
            "financial_year must look like 2024-2025 (consecutive years)",
            details={"financial_year": raw},
        )
    return fy.label


def _parse_source(raw: str) -> DataSource:
    try:
        return DataSource(raw.strip().lower())
    except ValueError as exc:
        raise UnknownDataSource(
            f"unknown report source {raw!r}",
            details={"source": raw, "allowed": [s.value for s in DataSource]},
        ) from exc


def _viewer_key(request: Request) -> str:
    """Stable, non-reversible key for the caller's session views."""
    token = bearer_token(request)
    if token is None:
        return "anonymous"
    return hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]


def _trace_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


# --------------------------------------------------------------------------- #
# Routes                                                                      #
# --------------------------------------------------------------------------- #
@router.get(
    "/financial-years",
    response_model=SuccessEnvelope[FinancialYearOptionsHTTP],
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="List selectable financial years",
)
async def list_financial_years(request: Request, response: Response) -> Any:
    settings = get_settings()
    today = date.today()
    options = financial_year_options(settings.first_financial_year, today.year)
    dto = FinancialYearOptionsDTO(
        default=default_financial_year(today),
        options=[FinancialYearOptionDTO(**opt) for opt in options],
    )
    return BaseRouter.send(response, _presenter.present_financial_years(dto, trace_id=_trace_id(request)))


@router.get(
    "/combined",
    response_model=SuccessEnvelope[CombinedReportHTTP],
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="All sources side by side",
    description="One series per (entity, source) with at least one non-zero month.",
)
async def get_combined_report(
    request: Request,
    response: Response,
    uc: Annotated[BuildCombinedReport, Depends(get_build_combined_report)],
    session: Annotated[ReportSession, Depends(get_report_session)],
    financial_year: FinancialYearQuery = None,
    label_style: LabelStyleQuery = LabelStyle.MONTH_YEAR,
) -> Any:
    fy = _validated_financial_year(financial_year)
    ticket = session.begin((_viewer_key(request), "combined"), fy, label_style)

    started = time.perf_counter()
    dto = await uc.execute(fy, label_style=label_style)
    get_report_build_seconds().labels("combined").observe(time.perf_counter() - started)

    superseded = not session.publish(ticket)
    result = _presenter.present_combined(
        dto,
        trace_id=_trace_id(request),
        if_none_match=request.headers.get("If-None-Match"),
        superseded=superseded,
    )
    return BaseRouter.send(response, result)


@router.get(
    "/total",
    response_model=SuccessEnvelope[TotalReportHTTP],
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="One summed series per source",
)
async def get_total_report(
    request: Request,
    response: Response,
    uc: Annotated[BuildTotalReport, Depends(get_build_total_report)],
    session: Annotated[ReportSession, Depends(get_report_session)],
    financial_year: FinancialYearQuery = None,
    label_style: LabelStyleQuery = LabelStyle.MONTH_YEAR,
) -> Any:
    fy = _validated_financial_year(financial_year)
    ticket = session.begin((_viewer_key(request), "total"), fy, label_style)

    started = time.perf_counter()
    dto = await uc.execute(fy, label_style=label_style)
    get_report_build_seconds().labels("total").observe(time.perf_counter() - started)

    superseded = not session.publish(ticket)
    result = _presenter.present_total(
        dto,
        trace_id=_trace_id(request),
        if_none_match=request.headers.get("If-None-Match"),
        superseded=superseded,
    )
    return BaseRouter.send(response, result)


@router.get(
    "/{source}",
    response_model=SuccessEnvelope[SourceReportHTTP],
    status_code=status.HTTP_200_OK,
    responses=BaseRouter.std_error_responses(),
    summary="Single-source report",
    description=(
        "Entities of one source with data in the financial year. `selected` keeps a previous "
        "selection; without it the first entities with data are charted."
    ),
)
async def get_source_report(
    source: str,
    request: Request,
    response: Response,
    uc: Annotated[BuildSourceReport, Depends(get_build_source_report)],
    session: Annotated[ReportSession, Depends(get_report_session)],
    financial_year: FinancialYearQuery = None,
    selected: Annotated[list[str] | None, Query(description="Entity ids to chart.")] = None,
    breakdown: Annotated[
        bool | None, Query(description="One series per category. Defaults to true for banking.")
    ] = None,
    label_style: LabelStyleQuery = LabelStyle.MONTH_YEAR,
) -> Any:
    data_source = _parse_source(source)
    fy = _validated_financial_year(financial_year)
    chosen = [s for s in (selected or []) if s.strip()]
    ticket = session.begin(
        (_viewer_key(request), data_source.value), fy, tuple(chosen), breakdown, label_style
    )

    started = time.perf_counter()
    dto = await uc.execute(
        fy,
        data_source,
        selected=chosen or None,
        breakdown=breakdown,
        label_style=label_style,
    )
    get_report_build_seconds().labels(data_source.value).observe(time.perf_counter() - started)

    superseded = not session.publish(ticket)
    result = _presenter.present_source(
        dto,
        trace_id=_trace_id(request),
        if_none_match=request.headers.get("If-None-Match"),
        superseded=superseded,
    )
    return BaseRouter.send(response, result)
