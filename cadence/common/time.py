"""Clock sources used to build reporting windows.

Windows are expressed in whole unix seconds. Process uptime is measured on
the monotonic clock so wall-clock adjustments never distort the first
retroactive window.
"""

from __future__ import annotations

import datetime as dt
import time
import typing as typ


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp."""
    return dt.datetime.now(dt.UTC)


def unix_now() -> int:
    """Return the current wall-clock time as whole unix seconds."""
    return int(utcnow().timestamp())


@typ.runtime_checkable
class Clock(typ.Protocol):
    """Pair of clocks read by the scheduler."""

    def monotonic(self) -> int:
        """Return monotonic seconds; only differences are meaningful."""
        ...

    def now(self) -> int:
        """Return wall-clock unix seconds."""
        ...


class SystemClock:
    """Clock backed by ``time.monotonic`` and the UTC wall clock."""

    def monotonic(self) -> int:
        """Return the monotonic clock truncated to whole seconds."""
        return int(time.monotonic())

    def now(self) -> int:
        """Return wall-clock unix seconds."""
        return unix_now()
