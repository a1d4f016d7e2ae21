"""Cadence runtime entrypoint.

This module provides the ASGI application factory served by Granian. When
``CADENCE_DATABASE_URL`` is set, the runtime builds a SQL metric store and
a scheduler registry; the configured scheduler starts on ASGI lifespan
startup and the engine is disposed on shutdown. Otherwise it starts in
health-only mode.

Configuration is driven by environment variables:

- ``CADENCE_HOST``: Bind address (default ``0.0.0.0``)
- ``CADENCE_PORT``: Listen port (default ``8080``)
- ``CADENCE_LOG_LEVEL``: Log level (default ``INFO``)
- ``CADENCE_DATABASE_URL``: Metric database URL (optional; enables the
  metrics endpoints when set)
- ``CADENCE_INSTANCE``, ``CADENCE_REPORTER``, ``CADENCE_REPORTER_ARGS``,
  ``CADENCE_REPORT_INTERVAL_MS``: scheduler configuration, see
  :class:`cadence.reporting.config.SchedulerConfig`

Run the service directly with ``python -m cadence.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from cadence.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

_MIN_PORT = 1
_MAX_PORT = 65535

_SCHEDULER_ENV_VARS = (
    "CADENCE_INSTANCE",
    "CADENCE_REPORTER",
    "CADENCE_REPORTER_ARGS",
    "CADENCE_REPORT_INTERVAL_MS",
)


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
    except ValueError as exc:
        log_error(logger, "Invalid CADENCE_PORT value: %r", port_str)
        raise SystemExit(1) from exc
    if not (_MIN_PORT <= port <= _MAX_PORT):
        log_error(
            logger,
            "Invalid CADENCE_PORT value: %r (must be %d-%d)",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
        )
        raise SystemExit(1)
    return port


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application from the environment.

    Returns
    -------
    falcon.asgi.App
        Health-only app without ``CADENCE_DATABASE_URL``; otherwise an app
        serving ``/metrics/{instance}/latest`` and
        ``/metrics/{instance}/report`` for the configured instance.

    """
    from cadence.api.app import create_app as _create_api_app

    database_url = os.environ.get("CADENCE_DATABASE_URL")
    if database_url is None:
        ignored = [
            name for name in _SCHEDULER_ENV_VARS if os.environ.get(name, "").strip()
        ]
        if ignored:
            log_warning(
                logger,
                "CADENCE_DATABASE_URL is not set; ignoring %s and starting in "
                "health-only mode",
                ", ".join(ignored),
            )
        return _create_api_app()

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from cadence.api.app import AppDependencies
    from cadence.metrics.storage import SqlMetricStore, init_metric_storage
    from cadence.reporting.config import SchedulerConfig
    from cadence.reporting.registry import SchedulerRegistry

    engine = create_async_engine(database_url)
    store = SqlMetricStore(async_sessionmaker(engine, expire_on_commit=False))

    async def init_storage() -> None:
        await init_metric_storage(engine)

    deps = AppDependencies(
        registry=SchedulerRegistry(store),
        schedulers=(SchedulerConfig.from_env(),),
        before_start=init_storage,
        after_stop=engine.dispose,
    )
    return _create_api_app(deps)


def main() -> None:
    """Start the Cadence runtime server using Granian.

    Reads ``CADENCE_HOST``, ``CADENCE_PORT``, and ``CADENCE_LOG_LEVEL`` from
    the environment and starts the ASGI server.
    """
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("CADENCE_HOST", "0.0.0.0")  # noqa: S104 - bind all interfaces for container
    port = _parse_port(os.environ.get("CADENCE_PORT", "8080"))
    log_level_str = os.environ.get("CADENCE_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid CADENCE_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    log_info(
        logger,
        "Starting Cadence runtime on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "cadence.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
