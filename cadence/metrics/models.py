"""Metric sample structures served by metric stores."""

from __future__ import annotations

import enum

import msgspec


class MetricType(enum.StrEnum):
    """Kinds of metric recorded by the collector."""

    COUNTER = "counter"
    LAST_VALUE = "last_value"
    SUM = "sum"
    SUMMARY = "summary"


class MetricSample(msgspec.Struct, kw_only=True, frozen=True):
    """One recorded metric value at a point in time.

    The scheduler never inspects these fields; it only moves batches of
    samples from a store to a reporter.

    Attributes
    ----------
    name
        Dotted metric name, e.g. ``vm.memory.total``.
    type
        Metric kind.
    value
        Recorded value.
    timestamp
        Unix seconds at which the value was recorded.
    tags
        Free-form tag values attached to the sample.

    """

    name: str
    type: MetricType
    value: float
    timestamp: int
    tags: dict[str, str] = msgspec.field(default_factory=dict)
