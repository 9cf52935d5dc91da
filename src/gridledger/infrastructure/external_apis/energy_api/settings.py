# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Pydantic settings for the energy API transport client."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnergyApiSettings(BaseSettings):
    """Configuration for the upstream energy-accounting API.

    Environment variables (with ``model_config.env_prefix``):

    * ``ENERGY_API_BASE_URL``
    * ``ENERGY_API_TIMEOUT_S``
    * ``ENERGY_API_MAX_RETRIES``
    * ``ENERGY_API_BACKOFF_BASE_S``
    * ``ENERGY_API_BACKOFF_CAP_S``
    """

    base_url: str = Field(
        "http://localhost:3333/api",
        description="Base URL of the upstream energy API.",
    )
    timeout_s: float = Field(
        10.0,
        gt=0,
        description="Per-request timeout in seconds.",
    )
    max_retries: int = Field(
        3,
        ge=0,
        le=10,
        description="Retries after the first attempt for transient failures.",
    )
    backoff_base_s: float = Field(0.25, ge=0, description="Base backoff in seconds.")
    backoff_cap_s: float = Field(2.5, ge=0, description="Maximum backoff in seconds.")

    model_config: SettingsConfigDict = SettingsConfigDict(
        env_prefix="ENERGY_API_",
        extra="ignore",
    )
