# src/gridledger/domain/enums/access.py
# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Access enumerations.

Layer:
    domain/enums
"""

from __future__ import annotations

from enum import Enum


class SiteType(str, Enum):
    """Identity space of a site. Production and consumption ids never mix."""

    PRODUCTION = "production"
    CONSUMPTION = "consumption"


class EmptyAccessPolicy(str, Enum):
    """Interpretation of an empty accessible-site list.

    UNRESTRICTED:
        An empty list means the user may see every site of that type.
    DENY_ALL:
        An empty list means the user may see no site of that type.
    """

    UNRESTRICTED = "unrestricted"
    DENY_ALL = "deny_all"
