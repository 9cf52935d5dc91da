"""Service settings (``GRIDLEDGER_*`` environment variables)."""

from __future__ import annotations

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
