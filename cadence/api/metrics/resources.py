"""Resources exposing the scheduler's caller-facing operations.

- ``GET /metrics/{instance}/latest`` returns the samples recorded since the
  last delivery and advances the instance's cursor.
- ``POST /metrics/{instance}/report`` queues a report cycle and answers
  ``202 Accepted`` without waiting for it.

Usage
-----
Register the resources on the Falcon app::

    app.add_route("/metrics/{instance}/latest", LatestMetricsResource(registry))
    app.add_route("/metrics/{instance}/report", ReportMetricsResource(registry))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import msgspec

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from cadence.reporting.registry import SchedulerRegistry

__all__ = ["LatestMetricsResource", "ReportMetricsResource"]


class LatestMetricsResource:
    """``GET /metrics/{instance}/latest``."""

    def __init__(self, registry: SchedulerRegistry) -> None:
        """Bind the resource to a scheduler registry."""
        self._registry = registry

    async def on_get(self, _req: Request, resp: Response, *, instance: str) -> None:
        """Return undelivered samples for *instance* as JSON."""
        samples = await self._registry.get_latest_metrics(instance)
        resp.media = {
            "instance": instance,
            "samples": msgspec.to_builtins(samples),
        }
        resp.status = HTTPStatus.OK


class ReportMetricsResource:
    """``POST /metrics/{instance}/report``."""

    def __init__(self, registry: SchedulerRegistry) -> None:
        """Bind the resource to a scheduler registry."""
        self._registry = registry

    async def on_post(self, _req: Request, resp: Response, *, instance: str) -> None:
        """Queue a report cycle for *instance*."""
        self._registry.report_metrics(instance)
        resp.media = {"instance": instance, "status": "accepted"}
        resp.status = HTTPStatus.ACCEPTED
