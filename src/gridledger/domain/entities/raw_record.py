# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Raw Record.

Purpose:
    Tagged wrapper around one upstream row. The ``source`` tag selects the
    normalization rules; ``fields`` is the row exactly as received.

Layer:
    domain/entities
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from gridledger.domain.enums.reporting import DataSource

from .base import BaseEntity


@dataclass(frozen=True, slots=True)
class RawRecord(BaseEntity):
    """One upstream row tagged with its data source."""

    source: DataSource
    fields: Mapping[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)
