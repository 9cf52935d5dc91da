# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Financial-year period helpers.

Purpose:
    Month sequences for April-start financial years, financial-year display
    ordering of ``MMYYYY`` keys, and human-readable month labels.

Layer:
    domain/services

Notes:
    - Pure domain logic: no logging, no I/O.
    - Malformed financial-year strings produce an empty month list. Callers
      that need a hard failure (the HTTP boundary) validate with
      :func:`parse_financial_year` first.
"""

from __future__ import annotations

import re
from datetime import date

from gridledger.domain.entities.period import FinancialYear
from gridledger.domain.enums.reporting import LabelStyle

_FY_PATTERN = re.compile(r"^\s*(\d{4})\s*-\s*(\d{4})\s*$")

SHORT_MONTH_NAMES: tuple[str, ...] = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)  # fmt: skip
FULL_MONTH_NAMES: tuple[str, ...] = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)  # fmt: skip


def parse_financial_year(fy: str | None) -> FinancialYear | None:
    """Parse ``"YYYY-YYYY"`` into a :class:`FinancialYear`.

    Returns:
        The financial year, or None when the string does not split into two
        four-digit years or the end year is not the start year plus one.
    """
    if not isinstance(fy, str):
        return None
    match = _FY_PATTERN.match(fy)
    if match is None:
        return None
    start, end = int(match.group(1)), int(match.group(2))
    if end != start + 1:
        return None
    try:
        return FinancialYear(start_year=start, end_year=end)
    except ValueError:
        return None


def months_of_financial_year(fy: str | None) -> list[str]:
    """Return the twelve month keys of ``fy`` from April to March.

    The list order is the chart x-axis order. A malformed ``fy`` yields ``[]``.
    """
    parsed = parse_financial_year(fy)
    if parsed is None:
        return []
    return parsed.months


def _split_key(key: str) -> tuple[int, int] | None:
    if not isinstance(key, str) or len(key) != 6 or not key.isdigit():
        return None
    month, year = int(key[:2]), int(key[2:])
    if not 1 <= month <= 12:
        return None
    return month, year


def financial_year_sort_key(key: str) -> tuple[int, int]:
    """Sort key placing January..March after December.

    Months 1..3 compare as 13..15, then the year breaks ties. Unparsable keys
    sort last.
    """
    parts = _split_key(key)
    if parts is None:
        return (99, 9999)
    month, year = parts
    adjusted = month + 12 if month < 4 else month
    return (adjusted, year)


def compare_financial_year_order(a: str, b: str) -> int:
    """Three-way compare of two month keys in financial-year display order."""
    ka, kb = financial_year_sort_key(a), financial_year_sort_key(b)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0


def format_month_label(key: str, style: LabelStyle = LabelStyle.MONTH_YEAR) -> str:
    """Render a month key for display.

    Keys that are not six characters, or whose month is outside 1..12, are
    returned unchanged.
    """
    parts = _split_key(key)
    if parts is None:
        return key
    month, _ = parts
    year = key[2:]
    short = SHORT_MONTH_NAMES[month - 1]
    if style is LabelStyle.SHORT:
        return short
    if style is LabelStyle.FY_MARKER:
        return f"{short} FY{year}" if month == 4 else f"{short}{year}"
    if style is LabelStyle.FULL:
        return f"{FULL_MONTH_NAMES[month - 1]} {year}"
    return f"{short} {year}"


def financial_year_options(first_start_year: int, current_year: int) -> list[dict[str, str]]:
    """Selectable financial years from ``first_start_year`` through ``current_year``."""
    return [
        {"value": f"{y}-{y + 1}", "label": f"April {y} - March {y + 1}"}
        for y in range(first_start_year, current_year + 1)
    ]


def default_financial_year(today: date | None = None) -> str:
    """Financial year starting in the current calendar year."""
    year = (today or date.today()).year
    return f"{year}-{year + 1}"
