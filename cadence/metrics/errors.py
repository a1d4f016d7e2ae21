"""Errors raised by metric stores."""

from __future__ import annotations


class MetricStoreError(Exception):
    """Base class for metric store failures."""


class InvalidQueryRangeError(MetricStoreError):
    """Raised when a query's start lies after its end."""

    def __init__(self, start: int, end: int) -> None:
        """Record the offending bounds."""
        self.start = start
        self.end = end
        super().__init__(f"Query start {start} is after end {end}")
