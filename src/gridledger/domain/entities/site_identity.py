# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Site and Allocation-Pair Identities.

Purpose:
    Composite identities for production/consumption sites and for allocation
    pairs. Identity is always the id pair; display names live on
    :class:`SiteRecord` and never take part in equality.

Layer:
    domain/entities
"""

from __future__ import annotations

from dataclasses import dataclass, field

from gridledger.domain.enums.access import SiteType

from .base import BaseEntity


def _clean(value: object) -> str:
    return "" if value is None else str(value).strip()


@dataclass(frozen=True, slots=True)
class SiteIdentity(BaseEntity):
    """A site keyed by ``(company_id, site_id)`` inside one site-type space.

    Attributes:
        company_id:
            Owning company id.
        site_id:
            Site id, unique within the company and site type.
        site_type:
            Production and consumption ids are distinct identity spaces.
    """

    company_id: str
    site_id: str
    site_type: SiteType

    def __post_init__(self) -> None:
        object.__setattr__(self, "company_id", _clean(self.company_id))
        object.__setattr__(self, "site_id", _clean(self.site_id))
        if not self.company_id or not self.site_id:
            raise ValueError("company_id and site_id must be non-empty")

    @property
    def key(self) -> str:
        """``"companyId_siteId"`` serialization."""
        return f"{self.company_id}_{self.site_id}"

    @classmethod
    def parse(cls, key: str, site_type: SiteType) -> SiteIdentity | None:
        """Parse ``"companyId_siteId"``; returns None when the key is malformed."""
        parts = _clean(key).split("_")
        if len(parts) != 2 or not all(parts):
            return None
        return cls(company_id=parts[0], site_id=parts[1], site_type=site_type)


@dataclass(frozen=True, slots=True)
class AllocationPairKey(BaseEntity):
    """A (production site, consumption site) allocation pair.

    Equality and hashing use only the two site ids, so ``"pair_10_20"``,
    ``"7_10_20"`` and the legacy ``"10_20"`` all identify the same pair.
    """

    production_site_id: str
    consumption_site_id: str
    company_id: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "production_site_id", _clean(self.production_site_id))
        object.__setattr__(self, "consumption_site_id", _clean(self.consumption_site_id))
        if not self.production_site_id or not self.consumption_site_id:
            raise ValueError("both site ids of an allocation pair must be non-empty")

    @property
    def canonical(self) -> str:
        """Canonical ``"prodId_consId"`` form."""
        return f"{self.production_site_id}_{self.consumption_site_id}"

    @classmethod
    def parse(cls, key: object) -> AllocationPairKey | None:
        """Parse a 3-segment (``pair_p_c`` / ``company_p_c``) or 2-segment key."""
        parts = _clean(key).split("_")
        if len(parts) == 3 and parts[1] and parts[2]:
            company = None if parts[0] in ("", "pair") else parts[0]
            return cls(parts[1], parts[2], company)
        if len(parts) == 2 and parts[0] and parts[1]:
            return cls(parts[0], parts[1])
        return None


@dataclass(frozen=True, slots=True)
class SiteRecord(BaseEntity):
    """Site directory row: identity plus display name."""

    identity: SiteIdentity
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or f"Site {self.identity.site_id}"
