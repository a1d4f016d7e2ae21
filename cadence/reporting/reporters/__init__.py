"""Built-in reporter implementations, keyed by configuration identifier."""

from __future__ import annotations

import typing as typ

from .filesystem import FilesystemReporter
from .http import HttpReporter
from .logger import LoggerReporter

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from cadence.reporting.reporter import ReporterFactory

BUILTIN_REPORTERS: cabc.Mapping[str, ReporterFactory] = {
    "filesystem": FilesystemReporter,
    "http": HttpReporter,
    "logger": LoggerReporter,
}

__all__ = [
    "BUILTIN_REPORTERS",
    "FilesystemReporter",
    "HttpReporter",
    "LoggerReporter",
]
