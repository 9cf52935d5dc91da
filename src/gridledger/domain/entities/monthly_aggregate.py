# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Monthly Aggregate Entity.

Purpose:
    Per-entity, per-source fold of normalized entries over one financial year.
    The month mapping is total: every month of the year is present, zero-filled
    when no record matched.

Layer:
    domain/entities
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType

from .base import BaseEntity
from .category_vector import ZERO, CategoryVector


@dataclass(frozen=True, slots=True)
class MonthlyAggregate(BaseEntity):
    """Immutable month -> CategoryVector table for one entity.

    Attributes:
        months:
            Month keys in financial-year order.
        vectors:
            Read-only month -> summed category vector.
        contributions:
            Read-only month -> summed scalar contribution (``totalBanking`` for
            banking, the category total otherwise).
    """

    months: tuple[str, ...]
    vectors: Mapping[str, CategoryVector]
    contributions: Mapping[str, Decimal]

    def __post_init__(self) -> None:
        vectors = {m: self.vectors.get(m, CategoryVector.zero()) for m in self.months}
        contributions = {m: self.contributions.get(m, ZERO) for m in self.months}
        object.__setattr__(self, "months", tuple(self.months))
        object.__setattr__(self, "vectors", MappingProxyType(vectors))
        object.__setattr__(self, "contributions", MappingProxyType(contributions))

    @classmethod
    def empty(cls, months: Sequence[str]) -> MonthlyAggregate:
        return cls(months=tuple(months), vectors={}, contributions={})

    def vector(self, month: str) -> CategoryVector:
        return self.vectors.get(month, CategoryVector.zero())

    def contribution(self, month: str) -> Decimal:
        return self.contributions.get(month, ZERO)

    @property
    def total(self) -> Decimal:
        """Sum of all monthly contributions."""
        return sum(self.contributions.values(), ZERO)

    @property
    def is_empty(self) -> bool:
        """True when every month has a zero contribution and a zero vector."""
        return all(c == ZERO for c in self.contributions.values()) and all(
            v.is_zero() for v in self.vectors.values()
        )

    def __add__(self, other: object) -> MonthlyAggregate:
        if not isinstance(other, MonthlyAggregate):
            return NotImplemented
        if self.months != other.months:
            raise ValueError("cannot add aggregates over different month spans")
        return MonthlyAggregate(
            months=self.months,
            vectors={m: self.vector(m) + other.vector(m) for m in self.months},
            contributions={m: self.contribution(m) + other.contribution(m) for m in self.months},
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MonthlyAggregate):
            return NotImplemented
        return (
            self.months == other.months
            and dict(self.vectors) == dict(other.vectors)
            and dict(self.contributions) == dict(other.contributions)
        )
