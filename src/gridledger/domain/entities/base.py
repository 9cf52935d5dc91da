# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Base Entity (Domain Layer).

Purpose:
    Mixin for immutable domain entities. Provides frozen dataclass semantics
    and a small validation hook for invariants.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BaseEntity:
    """Base mixin for domain entities.

    ``BaseEntity`` declares no fields; concrete entities subclass it, declare
    their own fields, and override :meth:`__post_init__` to enforce invariants.
    """

    def __post_init__(self) -> None:  # noqa: D401
        """Hook for subclasses to extend with invariant checks."""
        return
