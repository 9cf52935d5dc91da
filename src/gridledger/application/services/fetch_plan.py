# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Declarative fetch plan and bounded worker pool.

Purpose:
    Describe a report's upstream reads as a flat list of cells (one per
    site, or one per month for allocations) and run them concurrently with
    at most ``concurrency`` requests in flight. Each cell fails soft: an
    exception becomes an empty row list plus an error name, and the other
    cells carry on.

Layer:
    application/services
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from gridledger.domain.enums.reporting import DataSource

logger = logging.getLogger(__name__)

Rows = list[dict[str, Any]]
FailureHook = Callable[["FetchCell", BaseException], None]


@dataclass(frozen=True, slots=True)
class FetchCell:
    """One upstream read.

    Attributes:
        source: Data source the rows belong to.
        entity: Site key the read is for, or ``"*"`` for month-wide reads.
        month: ``MMYYYY`` for month-keyed reads, otherwise None.
        fetch: Zero-arg coroutine function performing the read.
    """

    source: DataSource
    entity: str
    month: str | None
    fetch: Callable[[], Awaitable[Rows]] = field(compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class CellResult:
    cell: FetchCell
    rows: Rows
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class FetchPlan:
    """Ordered collection of cells. Result order always matches cell order."""

    cells: list[FetchCell] = field(default_factory=list)

    def add(
        self,
        source: DataSource,
        entity: str,
        fetch: Callable[[], Awaitable[Rows]],
        *,
        month: str | None = None,
    ) -> FetchCell:
        cell = FetchCell(source=source, entity=entity, month=month, fetch=fetch)
        self.cells.append(cell)
        return cell

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[FetchCell]:
        return iter(self.cells)


async def run_fetch_plan(
    plan: FetchPlan,
    *,
    concurrency: int = 8,
    on_failure: FailureHook | None = None,
) -> list[CellResult]:
    """Execute every cell with bounded concurrency.

    Args:
        plan: Cells to execute.
        concurrency: Maximum number of cells awaiting upstream at once.
        on_failure: Optional hook (e.g. a metrics counter) called per failed cell.

    Returns:
        One :class:`CellResult` per cell, in plan order.
    """
    semaphore = asyncio.Semaphore(max(1, int(concurrency)))

    async def _run(cell: FetchCell) -> CellResult:
        async with semaphore:
            try:
                rows = await cell.fetch()
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "upstream_fetch_failed",
                    extra={
                        "extra": {
                            "source": cell.source.value,
                            "entity": cell.entity,
                            "month": cell.month,
                            "error": type(exc).__name__,
                        }
                    },
                )
                if on_failure is not None:
                    on_failure(cell, exc)
                return CellResult(cell=cell, rows=[], error=type(exc).__name__)
        return CellResult(cell=cell, rows=list(rows or []))

    return list(await asyncio.gather(*(_run(cell) for cell in plan.cells)))
