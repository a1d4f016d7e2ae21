"""One-shot timers for the report schedule.

The scheduler never holds more than one armed timer. Arming goes through a
``TimerFactory`` so tests can observe and fire timers deterministically;
production code uses :class:`LoopTimerFactory`, a thin wrapper over
``loop.call_later``.
"""

from __future__ import annotations

import asyncio
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class TimerHandle(typ.Protocol):
    """Handle to a pending timer."""

    def cancel(self) -> None:
        """Disarm the timer; cancelling a fired timer is a no-op."""
        ...


class TimerFactory(typ.Protocol):
    """Arms one-shot timers."""

    def arm(
        self, delay_seconds: float, callback: cabc.Callable[[], None]
    ) -> TimerHandle:
        """Schedule *callback* to run once after *delay_seconds*."""
        ...


class LoopTimerFactory:
    """Arm timers on the running asyncio event loop."""

    def arm(
        self, delay_seconds: float, callback: cabc.Callable[[], None]
    ) -> asyncio.TimerHandle:
        """Schedule *callback* with ``call_later`` on the running loop."""
        return asyncio.get_running_loop().call_later(delay_seconds, callback)
