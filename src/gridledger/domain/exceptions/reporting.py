# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Reporting Domain Exceptions.

Synopsis:
    Error conditions raised while collecting upstream energy records or
    validating report parameters. Expected empty-data conditions are never
    raised; they surface as flags on report DTOs.

Layer:
    domain/exceptions
"""

from __future__ import annotations

from gridledger.domain.exceptions.base import DomainError


class MalformedFinancialYear(DomainError):
    """Financial year string is not ``"YYYY-YYYY"`` with consecutive years.

    Only the HTTP boundary raises this; the aggregation core treats a malformed
    financial year as an empty month list.
    """

    code = "MALFORMED_FINANCIAL_YEAR"


class UnknownDataSource(DomainError):
    """Requested report source is not one of the five known sources."""

    code = "UNKNOWN_DATA_SOURCE"


class UpstreamFetchFailure(DomainError):
    """Upstream energy API is unavailable, timed out, or returned 5xx.

    Caught per entity or month by the aggregation pass and treated as a zero
    contribution.
    """

    code = "UPSTREAM_FETCH_FAILURE"


class UpstreamSchemaError(DomainError):
    """Upstream returned an unexpected payload shape (e.g. a non-list body)."""

    code = "UPSTREAM_SCHEMA_ERROR"


class UpstreamUnauthorized(DomainError):
    """Upstream rejected the forwarded credentials (401/403)."""

    code = "UPSTREAM_UNAUTHORIZED"


class UpstreamRateLimited(UpstreamFetchFailure):
    """Upstream answered 429. Retryable like any other fetch failure."""

    code = "UPSTREAM_RATE_LIMITED"
