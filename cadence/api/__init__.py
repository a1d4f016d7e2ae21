"""Cadence HTTP API layer.

This package provides the Falcon ASGI application exposing health probes
and, when a scheduler registry is supplied, the on-demand metrics
endpoints.

Public API
----------
create_app
    Application factory for health-only or full mode.
"""

from cadence.api.app import create_app

__all__ = ["create_app"]
