"""Health probe resources for liveness and readiness checks.

Usage
-----
Register health endpoints on the Falcon app::

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(registry))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from cadence.reporting.registry import SchedulerRegistry

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness probe; always answers ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe listing the running scheduler instances.

    Parameters
    ----------
    registry
        Registry whose instances are reported; ``None`` in health-only mode.

    """

    def __init__(self, registry: SchedulerRegistry | None = None) -> None:
        """Store the optional registry."""
        self._registry = registry

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready requests."""
        instances = list(self._registry.instances) if self._registry else []
        resp.media = {"status": "ready", "instances": instances}
        resp.status = HTTPStatus.OK
