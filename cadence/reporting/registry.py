"""Registry of running schedulers keyed by metric-store instance.

A process that serves several metric-store instances owns one registry and
routes caller requests to the matching scheduler by instance id.

Usage
-----
>>> registry = SchedulerRegistry(store)
>>> await registry.start(SchedulerConfig(instance="edge", reporter="logger"))
>>> registry.report_metrics("edge")
>>> await registry.stop_all()

"""

from __future__ import annotations

import typing as typ

from cadence.reporting.errors import DuplicateInstanceError, UnknownInstanceError
from cadence.reporting.scheduler import ReportScheduler

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from cadence.metrics.models import MetricSample
    from cadence.metrics.store import MetricStore
    from cadence.reporting.config import SchedulerConfig

type SchedulerBuilder = cabc.Callable[[SchedulerConfig, MetricStore], ReportScheduler]


class SchedulerRegistry:
    """Start, look up, and stop schedulers by instance id.

    Parameters
    ----------
    store
        Metric store shared by every scheduler in the registry.
    builder
        Callable constructing a scheduler; tests inject fake clocks and
        timers through it.

    """

    def __init__(
        self,
        store: MetricStore,
        *,
        builder: SchedulerBuilder = ReportScheduler,
    ) -> None:
        """Create an empty registry."""
        self._store = store
        self._builder = builder
        self._schedulers: dict[str, ReportScheduler] = {}

    def __contains__(self, instance: object) -> bool:
        """Return True when a scheduler is registered for *instance*."""
        return instance in self._schedulers

    @property
    def instances(self) -> tuple[str, ...]:
        """Return the registered instance ids in start order."""
        return tuple(self._schedulers)

    async def start(self, config: SchedulerConfig) -> ReportScheduler:
        """Build, start, and register a scheduler for ``config.instance``.

        Raises
        ------
        DuplicateInstanceError
            If the instance already has a scheduler, including one that is
            still starting.
        ReporterInitError
            If the reporter fails to initialise; nothing is registered.

        """
        if config.instance in self._schedulers:
            raise DuplicateInstanceError(config.instance)
        scheduler = self._builder(config, self._store)
        # Registered before starting so a concurrent start sees the instance.
        self._schedulers[config.instance] = scheduler
        try:
            await scheduler.start()
        except BaseException:
            if self._schedulers.get(config.instance) is scheduler:
                del self._schedulers[config.instance]
            raise
        return scheduler

    def get(self, instance: str) -> ReportScheduler:
        """Return the scheduler for *instance*.

        Raises
        ------
        UnknownInstanceError
            If no scheduler is registered for *instance*.

        """
        try:
            return self._schedulers[instance]
        except KeyError:
            raise UnknownInstanceError(instance) from None

    async def get_latest_metrics(self, instance: str) -> list[MetricSample]:
        """Return undelivered samples for *instance*, advancing its cursor."""
        return await self.get(instance).get_latest_metrics()

    def report_metrics(self, instance: str) -> None:
        """Queue a report cycle for *instance*."""
        self.get(instance).report_metrics()

    async def stop(self, instance: str) -> None:
        """Stop and unregister the scheduler for *instance*."""
        scheduler = self.get(instance)
        del self._schedulers[instance]
        await scheduler.stop()

    async def stop_all(self) -> None:
        """Stop every scheduler, most recently started first."""
        for instance in reversed(self.instances):
            await self.stop(instance)
