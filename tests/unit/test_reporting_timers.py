"""Unit tests for the event-loop timer factory and the system clock."""

from __future__ import annotations

import asyncio
import time

import pytest

from cadence.common.time import Clock, SystemClock, unix_now
from cadence.reporting.timers import LoopTimerFactory


class TestLoopTimerFactory:
    """Tests for timers armed on the running loop."""

    @pytest.mark.asyncio
    async def test_fires_once_after_delay(self) -> None:
        """The callback runs on the loop after the delay."""
        fired = asyncio.Event()

        LoopTimerFactory().arm(0.01, fired.set)

        await asyncio.wait_for(fired.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_cancelled_timer_never_fires(self) -> None:
        """Cancelling before expiry disarms the timer."""
        calls: list[str] = []

        handle = LoopTimerFactory().arm(0.01, lambda: calls.append("fired"))
        handle.cancel()
        await asyncio.sleep(0.05)

        assert calls == []

    def test_requires_running_loop(self) -> None:
        """Arming outside a loop is a programming error."""
        with pytest.raises(RuntimeError):
            LoopTimerFactory().arm(1.0, lambda: None)


class TestSystemClock:
    """Tests for the production clock."""

    def test_satisfies_clock_protocol(self) -> None:
        """SystemClock is usable wherever a Clock is expected."""
        assert isinstance(SystemClock(), Clock)

    def test_readings_are_whole_seconds(self) -> None:
        """Both clocks are truncated to integers."""
        clock = SystemClock()
        assert isinstance(clock.monotonic(), int)
        assert isinstance(clock.now(), int)

    def test_now_tracks_wall_clock(self) -> None:
        """The wall reading matches unix time to the second."""
        assert abs(unix_now() - time.time()) < 2
