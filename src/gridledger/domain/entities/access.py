# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Accessible Site Set.

Purpose:
    The production and consumption site ids a caller may see, together with
    the explicit policy for interpreting an empty id set.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass

from gridledger.domain.enums.access import EmptyAccessPolicy, SiteType

from .base import BaseEntity


@dataclass(frozen=True, slots=True)
class AccessibleSiteSet(BaseEntity):
    """Site ids (company id stripped) visible to one caller.

    Attributes:
        production:
            Accessible production site ids.
        consumption:
            Accessible consumption site ids.
        policy:
            How an empty set is read. The same policy is used by every filter
            and every site iteration that consults this object.
    """

    production: frozenset[str] = frozenset()
    consumption: frozenset[str] = frozenset()
    policy: EmptyAccessPolicy = EmptyAccessPolicy.UNRESTRICTED

    def __post_init__(self) -> None:
        object.__setattr__(self, "production", frozenset(self.production))
        object.__setattr__(self, "consumption", frozenset(self.consumption))

    @classmethod
    def unrestricted(cls) -> AccessibleSiteSet:
        return cls(policy=EmptyAccessPolicy.UNRESTRICTED)

    def ids_for(self, site_type: SiteType) -> frozenset[str]:
        if site_type is SiteType.PRODUCTION:
            return self.production
        return self.consumption

    def allows(self, site_id: str, site_type: SiteType) -> bool:
        """Whether ``site_id`` of ``site_type`` is visible under the policy."""
        ids = self.ids_for(site_type)
        if not ids:
            return self.policy is EmptyAccessPolicy.UNRESTRICTED
        return str(site_id) in ids
