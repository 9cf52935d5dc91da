# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Chart row and legend assembly.

Purpose:
    Turn reconciled series into chart rows (one per month, financial-year
    order) and legend descriptors (stable order, sequential colour index).
    Decimal values become floats here and nowhere earlier.

Layer:
    application/services
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from decimal import Decimal

from gridledger.application.schemas.dto.reports import ChartRow, SeriesDescriptor
from gridledger.domain.entities.category_vector import CATEGORY_KEYS
from gridledger.domain.enums.reporting import LabelStyle
from gridledger.domain.services.period_calculator import format_month_label
from gridledger.domain.services.reconciler import Series


def _as_float(value: Decimal) -> float:
    return float(value)


def describe(series: Sequence[Series]) -> list[SeriesDescriptor]:
    return [
        SeriesDescriptor(
            key=s.key,
            display_name=s.display_name,
            source=s.source,
            entity_id=s.entity_id,
            color_index=i,
        )
        for i, s in enumerate(series)
    ]


def build_rows(
    months: Sequence[str],
    series: Sequence[Series],
    *,
    label_style: LabelStyle = LabelStyle.MONTH_YEAR,
    value: Callable[[Series, str], Decimal] | None = None,
) -> list[ChartRow]:
    """One row per month holding every series' value for that month."""
    pick = value or (lambda s, m: s.value(m))
    return [
        ChartRow(
            month=format_month_label(month, label_style),
            month_key=month,
            values={s.key: _as_float(pick(s, month)) for s in series},
        )
        for month in months
    ]


def category_key(series_key: str, category: str) -> str:
    return f"{series_key}:{category}"


def build_category_rows(
    months: Sequence[str],
    series: Sequence[Series],
    *,
    label_style: LabelStyle = LabelStyle.MONTH_YEAR,
) -> tuple[list[ChartRow], list[SeriesDescriptor]]:
    """Rows and legend with one series per (entity, category)."""
    rows = [
        ChartRow(
            month=format_month_label(month, label_style),
            month_key=month,
            values={
                category_key(s.key, cat): _as_float(val)
                for s in series
                for cat, val in s.aggregate.vector(month).items()
            },
        )
        for month in months
    ]
    descriptors: list[SeriesDescriptor] = []
    for s in series:
        for cat in CATEGORY_KEYS:
            descriptors.append(
                SeriesDescriptor(
                    key=category_key(s.key, cat),
                    display_name=f"{s.display_name} {cat.upper()}",
                    source=s.source,
                    entity_id=s.entity_id,
                    category=cat,
                    color_index=len(descriptors),
                )
            )
    return rows, descriptors
