# src/gridledger/domain/enums/reporting.py
# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Reporting enumerations: data sources and month label styles.

Layer:
    domain/enums
"""

from __future__ import annotations

from enum import Enum

from gridledger.domain.enums.access import SiteType


class DataSource(str, Enum):
    """Upstream record source. Each source has its own normalization rules."""

    PRODUCTION = "production"
    CONSUMPTION = "consumption"
    ALLOCATION = "allocation"
    BANKING = "banking"
    LAPSE = "lapse"

    @property
    def site_type(self) -> SiteType | None:
        """Site identity space the source is keyed by (None for allocation pairs)."""
        if self is DataSource.CONSUMPTION:
            return SiteType.CONSUMPTION
        if self is DataSource.ALLOCATION:
            return None
        # Banking and lapse are keyed by production site.
        return SiteType.PRODUCTION


class LabelStyle(str, Enum):
    """Month label rendering styles.

    SHORT:      ``"Apr"``
    FY_MARKER:  ``"Apr FY2024"`` on April, ``"May2024"`` otherwise
    FULL:       ``"April 2024"``
    MONTH_YEAR: ``"Apr 2024"`` (chart axis default)
    """

    SHORT = "short"
    FY_MARKER = "fy_marker"
    FULL = "full"
    MONTH_YEAR = "month_year"
