"""Metric samples and the stores that serve them by timestamp range."""

from __future__ import annotations

from .errors import InvalidQueryRangeError, MetricStoreError
from .models import MetricSample, MetricType
from .storage import SqlMetricStore, init_metric_storage
from .store import InMemoryMetricStore, MetricStore

__all__ = [
    "InMemoryMetricStore",
    "InvalidQueryRangeError",
    "MetricSample",
    "MetricStore",
    "MetricStoreError",
    "MetricType",
    "SqlMetricStore",
    "init_metric_storage",
]
