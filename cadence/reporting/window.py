"""Query window computation for the report cycle.

A window is the inclusive ``[start, end]`` range of unix seconds the next
cycle asks the metric store for. The computation is pure: it reads a
snapshot of scheduler state plus the clocks and never mutates anything, so
the timer path and the on-demand path always agree.

Usage
-----
>>> from cadence.common.time import SystemClock
>>> window = compute_query_window(
...     report_interval_ms=60_000,
...     next_query_from=None,
...     start_time=0,
...     clock=SystemClock(),
... )
>>> window.end - window.start
60

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

if typ.TYPE_CHECKING:
    from cadence.common.time import Clock


@dc.dataclass(frozen=True, slots=True)
class QueryWindow:
    """Inclusive range of unix seconds to query.

    Attributes
    ----------
    start
        First second included in the window.
    end
        Last second included in the window.

    """

    start: int
    end: int

    @property
    def is_empty(self) -> bool:
        """Return True when the cursor is already past the current second.

        This happens when two cycles run within the same wall-clock second:
        the cursor sits at ``end + 1`` of the previous window.
        """
        return self.start > self.end

    @property
    def next_start(self) -> int:
        """Return the cursor value that follows a delivered window."""
        return self.end + 1


def compute_query_window(
    *,
    report_interval_ms: int | None,
    next_query_from: int | None,
    start_time: int,
    clock: Clock,
) -> QueryWindow:
    """Compute the next window for a scheduler.

    Parameters
    ----------
    report_interval_ms
        Configured reporting interval, or ``None`` for manual-only mode.
    next_query_from
        Cursor marking the first unreported second, or ``None`` before the
        first delivery.
    start_time
        Monotonic seconds captured when the scheduler started.
    clock
        Source of monotonic and wall-clock readings.

    Returns
    -------
    QueryWindow
        The range to query. Without a cursor, manual-only schedulers look
        back over the whole process uptime while periodic schedulers look
        back a single interval. With a cursor, the window always runs from
        the cursor to now.

    """
    now = clock.now()
    if next_query_from is not None:
        return QueryWindow(start=next_query_from, end=now)

    if report_interval_ms is None:
        elapsed = max(clock.monotonic() - start_time, 0)
        return QueryWindow(start=now - elapsed, end=now)

    return QueryWindow(start=now - report_interval_ms // 1000, end=now)
