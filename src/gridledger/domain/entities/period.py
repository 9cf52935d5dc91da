# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Financial Year Entity.

Purpose:
    April-start financial year ``(start_year, end_year)`` and its twelve
    ``MMYYYY`` month keys.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass

from .base import BaseEntity

# April..December of the start year, then January..March of the end year.
FY_START_MONTHS: tuple[int, ...] = (4, 5, 6, 7, 8, 9, 10, 11, 12)
FY_END_MONTHS: tuple[int, ...] = (1, 2, 3)


def month_key(month: int, year: int) -> str:
    """Serialize a calendar month as a six-character ``MMYYYY`` key."""
    return f"{month:02d}{year:04d}"


@dataclass(frozen=True, slots=True)
class FinancialYear(BaseEntity):
    """Financial year running April(start_year) through March(end_year).

    Raises:
        ValueError: If ``end_year`` is not ``start_year + 1`` or either year is
            not a four-digit number.
    """

    start_year: int
    end_year: int

    def __post_init__(self) -> None:
        if not (1000 <= self.start_year <= 9998):
            raise ValueError("start_year must be a four-digit year")
        if self.end_year != self.start_year + 1:
            raise ValueError("end_year must equal start_year + 1")

    @classmethod
    def starting(cls, start_year: int) -> FinancialYear:
        return cls(start_year=start_year, end_year=start_year + 1)

    @property
    def label(self) -> str:
        """``"YYYY-YYYY"`` form used on the wire."""
        return f"{self.start_year}-{self.end_year}"

    @property
    def months(self) -> list[str]:
        """The twelve month keys in financial-year order."""
        keys = [month_key(m, self.start_year) for m in FY_START_MONTHS]
        keys.extend(month_key(m, self.end_year) for m in FY_END_MONTHS)
        return keys

    def __str__(self) -> str:
        return self.label
