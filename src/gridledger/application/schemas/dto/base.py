# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Shared Pydantic base for report DTOs.

Report DTOs are what use cases hand to presenters: chart rows, series
descriptors and the report wrappers. Values are floats, never Decimals or
domain entities, and the models know nothing about HTTP.

Layer: application/schemas/dto
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class BaseDTO(BaseModel):
    """Unknown fields are rejected and string fields are stripped."""

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        str_strip_whitespace=True,
    )
