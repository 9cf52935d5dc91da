# Copyright (c) Gridledger.
# SPDX-License-Identifier: MIT
"""Report session: stale-response guard for report views.

Purpose:
    A view (one user's report of one kind) may be re-requested with new
    parameters while an earlier build is still running. Each request takes a
    ticket carrying a generation number; only the ticket of the newest
    generation for its view may publish. Completions of superseded
    generations are reported as stale instead of overwriting newer state.

Layer:
    application/services

Notes:
    - Only generation numbers are tracked, never report results.
    - A view is forgotten once its newest ticket publishes. At most
      ``max_views`` views with builds in flight are tracked; beyond that the
      least recently started one is dropped and its ticket reads as stale.
"""

from __future__ import annotations

import itertools
import logging
from collections import OrderedDict
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_MAX_VIEWS = 4096


@dataclass(frozen=True, slots=True)
class SessionTicket:
    """Handle returned by :meth:`ReportSession.begin`."""

    view: Hashable
    generation: int
    params: tuple[Any, ...]


class ReportSession:
    """Newest in-flight generation per view."""

    def __init__(self, *, max_views: int = DEFAULT_MAX_VIEWS) -> None:
        if max_views < 1:
            raise ValueError("max_views must be >= 1")
        self._max_views = max_views
        # Process-wide counter so a forgotten view never reuses a number.
        self._counter = itertools.count(1)
        self._generations: OrderedDict[Hashable, int] = OrderedDict()

    def __len__(self) -> int:
        return len(self._generations)

    def begin(self, view: Hashable, *params: Any) -> SessionTicket:
        """Start a new generation for ``view``; earlier tickets become stale."""
        generation = next(self._counter)
        self._generations[view] = generation
        self._generations.move_to_end(view)
        while len(self._generations) > self._max_views:
            evicted, _ = self._generations.popitem(last=False)
            logger.debug("report_view_evicted", extra={"extra": {"view": str(evicted)}})
        return SessionTicket(view=view, generation=generation, params=tuple(params))

    def is_current(self, ticket: SessionTicket) -> bool:
        return self._generations.get(ticket.view) == ticket.generation

    def publish(self, ticket: SessionTicket) -> bool:
        """Finish ``ticket``.

        Returns:
            True when the ticket was the newest for its view (the view is then
            forgotten), False when it was superseded.
        """
        if not self.is_current(ticket):
            logger.info(
                "stale_report_discarded",
                extra={
                    "extra": {
                        "generation": ticket.generation,
                        "current": self._generations.get(ticket.view),
                    }
                },
            )
            return False
        del self._generations[ticket.view]
        return True

    def current_generation(self, view: Hashable) -> int:
        """Generation of the newest unfinished ticket for ``view``, or 0."""
        return self._generations.get(view, 0)
