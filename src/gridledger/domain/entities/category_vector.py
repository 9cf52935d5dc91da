# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""
Category Vector Entity

Purpose:
    Five non-negative energy category values (C1..C5) with a derived total.

Notes:
    Upstream values enter through ``record_normalizer.coerce_value``, which
    quantizes them to ``VALUE_QUANTUM`` and zeroes anything at or above
    ``10 ** (MAX_VALUE_EXPONENT + 1)``. Such values fit in 24 significant
    digits, so sums of up to 10,000 of them stay inside the default 28-digit
    context and are exact; folding records in any order gives the same
    result. Larger sums round like any Decimal arithmetic.

Layer: domain/entities
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from decimal import Decimal

from .base import BaseEntity

ZERO = Decimal("0")

CATEGORY_KEYS: tuple[str, ...] = ("c1", "c2", "c3", "c4", "c5")

# Upstream values are kept to six decimal places and must be below 1e18.
VALUE_QUANTUM = Decimal("0.000001")
MAX_VALUE_EXPONENT = 17


@dataclass(frozen=True, slots=True)
class CategoryVector(BaseEntity):
    """C1..C5 category values.

    Negative inputs are clamped to zero on construction. ``total`` is always
    recomputed from the five fields.
    """

    c1: Decimal = ZERO
    c2: Decimal = ZERO
    c3: Decimal = ZERO
    c4: Decimal = ZERO
    c5: Decimal = ZERO

    def __post_init__(self) -> None:
        for key in CATEGORY_KEYS:
            value = getattr(self, key)
            if not isinstance(value, Decimal):
                value = Decimal(str(value))
            if not value.is_finite() or value < ZERO:
                value = ZERO
            object.__setattr__(self, key, value)

    @classmethod
    def zero(cls) -> CategoryVector:
        """Return the all-zero vector."""
        return cls()

    @property
    def total(self) -> Decimal:
        """Sum of the five categories."""
        return self.c1 + self.c2 + self.c3 + self.c4 + self.c5

    def is_zero(self) -> bool:
        """True when every category is zero."""
        return self.total == ZERO

    def items(self) -> Iterator[tuple[str, Decimal]]:
        """Yield ``(category_key, value)`` pairs in C1..C5 order."""
        for key in CATEGORY_KEYS:
            yield key, getattr(self, key)

    def __add__(self, other: object) -> CategoryVector:
        if not isinstance(other, CategoryVector):
            return NotImplemented
        return CategoryVector(
            c1=self.c1 + other.c1,
            c2=self.c2 + other.c2,
            c3=self.c3 + other.c3,
            c4=self.c4 + other.c4,
            c5=self.c5 + other.c5,
        )


@dataclass(frozen=True, slots=True)
class NormalizedEntry(BaseEntity):
    """One raw record reduced to its month, categories and contribution.

    Attributes:
        month:
            Six-character ``MMYYYY`` key inside the requested financial year.
        vector:
            Category values of the record.
        contribution:
            Scalar the entry adds to totals. Equal to ``vector.total`` for every
            source except banking, which contributes ``totalBanking``.
    """

    month: str
    vector: CategoryVector
    contribution: Decimal

    def __post_init__(self) -> None:
        if len(self.month) != 6:
            raise ValueError("month must be a six-character MMYYYY key")
        if self.contribution < ZERO:
            object.__setattr__(self, "contribution", ZERO)
