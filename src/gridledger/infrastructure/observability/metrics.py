# src/gridledger/infrastructure/observability/metrics.py
# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Prometheus metrics for upstream fetches, fail-soft cells and the site cache.

Collectors (names are stable):

* ``gridledger_upstream_request_latency_seconds`` (Histogram; endpoint, outcome)
* ``gridledger_upstream_errors_total`` (Counter; endpoint, reason)
* ``gridledger_upstream_retries_total`` (Counter; endpoint, reason)
* ``gridledger_failsoft_cells_total`` (Counter; source)
* ``gridledger_site_cache_hits_total`` / ``gridledger_site_cache_misses_total``
  (Counter; site_type)
* ``gridledger_report_build_seconds`` (Histogram; report)

Collectors are created lazily against the current default registry and
reused when already registered, so module re-imports and tests that swap
``prom.REGISTRY`` do not raise ``Duplicated timeseries``.
"""

from __future__ import annotations

from collections.abc import Sequence

import prometheus_client as prom
from prometheus_client import Counter, Histogram
from prometheus_client.registry import CollectorRegistry

_LATENCY_BUCKETS: tuple[float, ...] = (0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


def _existing(registry: CollectorRegistry, name: str) -> object | None:
    mapping = getattr(registry, "_names_to_collectors", {})
    return mapping.get(name)


def _get_or_create_histogram(
    name: str,
    doc: str,
    labelnames: Sequence[str] = (),
    buckets: Sequence[float] = _LATENCY_BUCKETS,
) -> Histogram:
    registry: CollectorRegistry = prom.REGISTRY
    found = _existing(registry, name)
    if isinstance(found, Histogram):
        return found
    try:
        return Histogram(name, doc, tuple(labelnames), buckets=tuple(buckets), registry=registry)
    except ValueError as exc:
        if "Duplicated timeseries" in str(exc):
            again = _existing(registry, name)
            if isinstance(again, Histogram):
                return again
        raise


def _get_or_create_counter(name: str, doc: str, labelnames: Sequence[str] = ()) -> Counter:
    registry: CollectorRegistry = prom.REGISTRY
    # Counters register under the name without the ``_total`` suffix.
    lookup = name[: -len("_total")] if name.endswith("_total") else name
    found = _existing(registry, lookup) or _existing(registry, name)
    if isinstance(found, Counter):
        return found
    try:
        return Counter(name, doc, tuple(labelnames), registry=registry)
    except ValueError as exc:
        if "Duplicated timeseries" in str(exc):
            again = _existing(registry, lookup) or _existing(registry, name)
            if isinstance(again, Counter):
                return again
        raise


def get_upstream_latency_seconds() -> Histogram:
    return _get_or_create_histogram(
        "gridledger_upstream_request_latency_seconds",
        "Latency of energy API requests, including retries.",
        ("endpoint", "outcome"),
    )


def get_upstream_errors_total() -> Counter:
    return _get_or_create_counter(
        "gridledger_upstream_errors_total",
        "Energy API requests that ended in an error after retries.",
        ("endpoint", "reason"),
    )


def get_upstream_retries_total() -> Counter:
    return _get_or_create_counter(
        "gridledger_upstream_retries_total",
        "Retries issued against the energy API.",
        ("endpoint", "reason"),
    )


def get_failsoft_cells_total() -> Counter:
    return _get_or_create_counter(
        "gridledger_failsoft_cells_total",
        "Fetch cells that failed and contributed zero to a report.",
        ("source",),
    )


def get_site_cache_hits_total() -> Counter:
    return _get_or_create_counter(
        "gridledger_site_cache_hits_total",
        "Site directory lookups served from cache.",
        ("site_type",),
    )


def get_site_cache_misses_total() -> Counter:
    return _get_or_create_counter(
        "gridledger_site_cache_misses_total",
        "Site directory lookups that triggered a refresh.",
        ("site_type",),
    )


def get_report_build_seconds() -> Histogram:
    return _get_or_create_histogram(
        "gridledger_report_build_seconds",
        "Wall time to build one report, fetches included.",
        ("report",),
    )
