"""ASGI lifespan middleware binding schedulers to the server's event loop.

Schedulers own asyncio tasks and timers, so they are started from the
lifespan ``startup`` event (inside the server's loop) and stopped on
``shutdown``.
"""

from __future__ import annotations

import typing as typ

from cadence.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from cadence.reporting.config import SchedulerConfig
    from cadence.reporting.registry import SchedulerRegistry

__all__ = ["SchedulerLifespan"]

logger = get_logger(__name__)


class SchedulerLifespan:
    """Start configured schedulers on startup and stop them on shutdown.

    Parameters
    ----------
    registry
        Registry receiving the schedulers.
    configs
        One configuration per instance to start.
    before_start
        Optional coroutine function awaited before any scheduler starts,
        e.g. to create metric tables.
    after_stop
        Optional coroutine function awaited after every scheduler stopped,
        e.g. to dispose of the database engine.

    """

    def __init__(
        self,
        registry: SchedulerRegistry,
        configs: cabc.Sequence[SchedulerConfig],
        *,
        before_start: cabc.Callable[[], cabc.Awaitable[None]] | None = None,
        after_stop: cabc.Callable[[], cabc.Awaitable[None]] | None = None,
    ) -> None:
        """Store the registry and the configurations to start."""
        self._registry = registry
        self._configs = tuple(configs)
        self._before_start = before_start
        self._after_stop = after_stop

    async def process_startup(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Start every configured scheduler; a reporter failure aborts startup."""
        if self._before_start is not None:
            await self._before_start()
        for config in self._configs:
            await self._registry.start(config)
        log_info(logger, "Started %d scheduler(s)", len(self._configs))

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Stop every running scheduler, then run the shutdown hook."""
        await self._registry.stop_all()
        if self._after_stop is not None:
            await self._after_stop()
