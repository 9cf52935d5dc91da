# src/gridledger/config/settings.py
# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Gridledger Configuration (Pydantic Settings, v2)

Summary:
    Typed, validated application configuration for the reporting service. This
    module centralizes environment parsing and validation. Only adapters and
    infrastructure should read process environment at runtime; other layers
    receive values from `Settings` via dependency wiring.

Design:
    - Pydantic v2 BaseSettings with `extra='ignore'` and a `GRIDLEDGER_` prefix.
    - Explicit field declarations with constrained types and ranges.
    - Environment enumeration for behavior toggles (includes TEST).
    - Singleton accessor `get_settings()` with LRU cache.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gridledger.domain.enums.access import EmptyAccessPolicy


class Environment(str, Enum):
    """Logical deployment environment."""

    DEVELOPMENT = "development"
    TEST = "test"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Typed application configuration for Gridledger."""

    # ---------------------------
    # Core environment
    # ---------------------------
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Logical deployment environment.",
    )
    app_name: str = Field(default="Gridledger Reports", description="Service title.")
    api_prefix: str = Field(default="", description="Optional prefix for all routers.")

    cors_allow_origins_raw: str | None = Field(
        default=None,
        description="Raw env for allowed CORS origins (comma-separated).",
        validation_alias="ALLOWED_ORIGINS",
    )
    cors_allow_origins: list[str] = Field(
        default_factory=list,
        description="Allowed CORS origins, derived from ALLOWED_ORIGINS.",
    )

    # ---------------------------
    # Aggregation behavior
    # ---------------------------
    empty_access_policy: EmptyAccessPolicy = Field(
        default=EmptyAccessPolicy.UNRESTRICTED,
        description=(
            "How an empty accessible-site list is interpreted. Applied identically "
            "by every filter and site iteration."
        ),
    )
    default_selection_size: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of non-empty series pre-selected when no prior selection exists.",
    )
    first_financial_year: int = Field(
        default=2020,
        ge=1990,
        le=2100,
        description="First start year offered in the financial-year options list.",
    )
    fetch_concurrency: int = Field(
        default=8,
        ge=1,
        le=64,
        description="Maximum concurrent upstream fetches per aggregation pass.",
    )
    site_cache_ttl_s: float = Field(
        default=300.0,
        ge=0.0,
        le=24 * 60 * 60,
        description="TTL for the production/consumption site directory cache.",
    )

    model_config = SettingsConfigDict(
        env_prefix="GRIDLEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="after")
    def _derive_cors(self) -> Settings:
        """Parse the comma-separated CORS env value into a list."""
        if self.cors_allow_origins_raw and not self.cors_allow_origins:
            self.cors_allow_origins = [
                origin.strip() for origin in self.cors_allow_origins_raw.split(",") if origin.strip()
            ]
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
