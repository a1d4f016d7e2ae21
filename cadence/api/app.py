"""Application factory for the Cadence Falcon ASGI application.

Usage
-----
Create a health-only app::

    app = create_app()

Create a full app serving the metrics endpoints::

    from cadence.api.app import AppDependencies, create_app

    deps = AppDependencies(
        registry=SchedulerRegistry(store),
        schedulers=(SchedulerConfig.from_env(),),
    )
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from cadence.api.errors import handle_scheduler_not_running, handle_unknown_instance
from cadence.api.health.resources import HealthResource, ReadyResource
from cadence.reporting.errors import SchedulerNotRunningError, UnknownInstanceError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from cadence.reporting.config import SchedulerConfig
    from cadence.reporting.registry import SchedulerRegistry

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    registry
        Registry routing requests to schedulers by instance id.
    schedulers
        Configurations started on lifespan startup. Leave empty when the
        caller starts schedulers on the registry itself.
    before_start
        Optional coroutine function awaited on startup before the
        schedulers start.
    after_stop
        Optional coroutine function awaited on shutdown after the
        schedulers stop.

    """

    registry: SchedulerRegistry
    schedulers: tuple[SchedulerConfig, ...] = ()
    before_start: cabc.Callable[[], cabc.Awaitable[None]] | None = None
    after_stop: cabc.Callable[[], cabc.Awaitable[None]] | None = None


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional registry and scheduler configurations. When ``None``, only
        ``/health`` and ``/ready`` are registered.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    middleware: list[object] = []
    registry = dependencies.registry if dependencies is not None else None

    if dependencies is not None and dependencies.schedulers:
        from cadence.api.lifespan import SchedulerLifespan

        middleware.append(
            SchedulerLifespan(
                dependencies.registry,
                dependencies.schedulers,
                before_start=dependencies.before_start,
                after_stop=dependencies.after_stop,
            )
        )

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(registry))

    if registry is not None:
        from cadence.api.metrics.resources import (
            LatestMetricsResource,
            ReportMetricsResource,
        )

        app.add_route("/metrics/{instance}/latest", LatestMetricsResource(registry))
        app.add_route("/metrics/{instance}/report", ReportMetricsResource(registry))

    app.add_error_handler(UnknownInstanceError, handle_unknown_instance)
    app.add_error_handler(SchedulerNotRunningError, handle_scheduler_not_running)

    return app
