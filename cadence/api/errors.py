"""Falcon error handlers for reporting errors raised by API resources.

Usage
-----
Register handlers on the Falcon app::

    app.add_error_handler(UnknownInstanceError, handle_unknown_instance)
    app.add_error_handler(SchedulerNotRunningError, handle_scheduler_not_running)

"""

from __future__ import annotations

import typing as typ

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from cadence.reporting.errors import (
        SchedulerNotRunningError,
        UnknownInstanceError,
    )

__all__ = ["handle_scheduler_not_running", "handle_unknown_instance"]


async def handle_unknown_instance(
    _req: Request,
    resp: Response,
    ex: UnknownInstanceError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``UnknownInstanceError`` to an HTTP 404 JSON response."""
    resp.status = falcon.HTTP_404
    resp.media = {
        "title": "Instance not found",
        "description": str(ex),
    }


async def handle_scheduler_not_running(
    _req: Request,
    resp: Response,
    ex: SchedulerNotRunningError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``SchedulerNotRunningError`` to an HTTP 503 JSON response."""
    resp.status = falcon.HTTP_503
    resp.media = {
        "title": "Scheduler not running",
        "description": str(ex),
    }
