# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Record normalization for the five upstream data sources.

Purpose:
    Reduce one :class:`RawRecord` of any source to a :class:`NormalizedEntry`
    (month key, C1..C5 vector, scalar contribution), or drop it.

Layer:
    domain/services

Notes:
    - Upstream rows use several field-name variants (``sk``/``period``/
      ``date``; ``c1``/``C1``; values nested under ``allocated`` or
      ``cValues``). All of that guessing lives here and nowhere else.
    - Upstream ``total``/``totalAllocation`` fields are ignored; totals are
      always recomputed from the categories.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from gridledger.domain.entities.category_vector import (
    CATEGORY_KEYS,
    MAX_VALUE_EXPONENT,
    VALUE_QUANTUM,
    ZERO,
    CategoryVector,
    NormalizedEntry,
)
from gridledger.domain.entities.raw_record import RawRecord
from gridledger.domain.enums.reporting import DataSource

_NESTED_CONTAINERS: tuple[str, ...] = ("allocated", "cValues")
_TRUTHY_STRINGS = frozenset({"true", "1", "yes", "y", "on", "enabled"})


def coerce_value(raw: Any) -> Decimal:
    """Coerce an upstream value to a non-negative Decimal.

    Mirrors ``max(0, Number(raw) || 0)``: None, NaN, infinities, empty or
    unparsable strings become 0; booleans become 1 or 0; negatives clamp to 0.
    Magnitudes of 1e18 and above are treated like infinities. Results are
    rounded to six decimal places.
    """
    if raw is None:
        return ZERO
    if isinstance(raw, bool):
        return Decimal(1) if raw else ZERO
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, int):
        value = Decimal(raw)
    elif isinstance(raw, float):
        if not math.isfinite(raw):
            return ZERO
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return ZERO
        try:
            value = Decimal(text)
        except InvalidOperation:
            return ZERO
    else:
        return ZERO
    if not value.is_finite() or value <= ZERO or value.adjusted() > MAX_VALUE_EXPONENT:
        return ZERO
    return value.quantize(VALUE_QUANTUM)


def is_truthy_flag(raw: Any) -> bool:
    """Interpret an upstream boolean-ish flag (``bankingEnabled`` and friends)."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int | float | Decimal):
        return raw == raw and raw != 0
    if isinstance(raw, str):
        return raw.strip().lower() in _TRUTHY_STRINGS
    return False


def _to_month_key(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, datetime | date):
        return f"{raw.month:02d}{raw.year:04d}"
    text = str(raw).strip()
    if not text:
        return ""
    if len(text) == 6 and text.isdigit():
        return text
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return text
    return f"{parsed.month:02d}{parsed.year:04d}"


def extract_month(fields: Mapping[str, Any]) -> str:
    """First non-empty month key from ``sk``, then ``period``, then ``date``."""
    for name in ("sk", "period"):
        value = fields.get(name)
        if value is not None and str(value).strip():
            return str(value).strip()
    return _to_month_key(fields.get("date"))


def _lookup(container: Mapping[str, Any], key: str) -> tuple[bool, Any]:
    if key in container:
        return True, container[key]
    upper = key.upper()
    if upper in container:
        return True, container[upper]
    return False, None


def extract_categories(fields: Mapping[str, Any]) -> CategoryVector:
    """Read C1..C5 from the row, falling back to ``allocated`` then ``cValues``."""
    values: dict[str, Decimal] = {}
    for key in CATEGORY_KEYS:
        found, raw = _lookup(fields, key)
        if not found:
            for container_name in _NESTED_CONTAINERS:
                nested = fields.get(container_name)
                if isinstance(nested, Mapping):
                    found, raw = _lookup(nested, key)
                    if found:
                        break
        values[key] = coerce_value(raw)
    return CategoryVector(**values)


def _normalize_categories(record: RawRecord, month: str) -> NormalizedEntry:
    vector = extract_categories(record.fields)
    return NormalizedEntry(month=month, vector=vector, contribution=vector.total)


def _normalize_allocation(record: RawRecord, month: str) -> NormalizedEntry | None:
    kind = record.get("type")
    if kind is not None and str(kind).strip().upper() != "ALLOCATION":
        return None
    return _normalize_categories(record, month)


def _normalize_banking(record: RawRecord, month: str) -> NormalizedEntry:
    if not is_truthy_flag(record.get("bankingEnabled")):
        return NormalizedEntry(month=month, vector=CategoryVector.zero(), contribution=ZERO)
    vector = extract_categories(record.fields)
    return NormalizedEntry(
        month=month,
        vector=vector,
        contribution=coerce_value(record.get("totalBanking")),
    )


_NORMALIZERS: dict[DataSource, Callable[[RawRecord, str], NormalizedEntry | None]] = {
    DataSource.PRODUCTION: _normalize_categories,
    DataSource.CONSUMPTION: _normalize_categories,
    DataSource.ALLOCATION: _normalize_allocation,
    DataSource.BANKING: _normalize_banking,
    DataSource.LAPSE: _normalize_categories,
}


def normalize(record: RawRecord, months: Sequence[str]) -> NormalizedEntry | None:
    """Normalize one record against the financial year's month list.

    Args:
        record:
            Tagged upstream row.
        months:
            The requested financial year's month keys.

    Returns:
        The normalized entry, or None when the record has no valid month in
        ``months`` or is excluded by its source's rules.
    """
    month = extract_month(record.fields)
    if len(month) != 6 or month not in months:
        return None
    return _NORMALIZERS[record.source](record, month)


def belongs_to_site(fields: Mapping[str, Any], company_id: str, site_id: str, source: DataSource) -> bool:
    """Whether a unit row belongs to the site it was fetched for.

    Rows without id fields are accepted; rows naming another company or site
    are rejected.
    """
    site_field = "consumptionSiteId" if source is DataSource.CONSUMPTION else "productionSiteId"
    row_company = fields.get("companyId")
    row_site = fields.get(site_field)
    if row_company is not None and str(row_company).strip() != str(company_id):
        return False
    if row_site is not None and str(row_site).strip() != str(site_id):
        return False
    return True
