"""Periodic and on-demand reporting of recorded metric samples.

A ``ReportScheduler`` pulls windows of samples from a ``MetricStore`` and
hands them to a pluggable ``Reporter``, tracking a cursor so every sample is
delivered exactly once on the success path and re-offered after failures.

Public API
----------
QueryWindow
    Inclusive range of unix seconds queried by one cycle.
ReportDelivered / ReportFailed
    Outcomes returned by reporters.
Reporter
    Protocol (port) for shipping batches of samples off-box.
ReporterSpec
    Resolved reporter plus its init arguments.
ReportScheduler
    Sequential actor driving the report cycle for one instance.
SchedulerConfig
    Instance id, reporter, and interval for a scheduler.
SchedulerRegistry
    Instance-id keyed collection of running schedulers.
compute_query_window
    Pure function computing the next window.

Example:
>>> from cadence.metrics import InMemoryMetricStore
>>> from cadence.reporting import SchedulerConfig, SchedulerRegistry
>>>
>>> registry = SchedulerRegistry(InMemoryMetricStore())
>>> await registry.start(SchedulerConfig(reporter="logger",
...                                      report_interval_ms=60_000))
>>> registry.report_metrics("default")

"""

from cadence.reporting.config import DEFAULT_INSTANCE, SchedulerConfig
from cadence.reporting.errors import (
    DuplicateInstanceError,
    ReporterConfigError,
    ReporterInitError,
    ReportingError,
    SchedulerNotRunningError,
    UnknownInstanceError,
)
from cadence.reporting.registry import SchedulerRegistry
from cadence.reporting.reporter import (
    ReportDelivered,
    ReporterSpec,
    Reporter,
    ReportFailed,
    ReportOutcome,
    resolve_reporter,
)
from cadence.reporting.scheduler import ReportScheduler, SchedulerState
from cadence.reporting.window import QueryWindow, compute_query_window

__all__ = [
    "DEFAULT_INSTANCE",
    "DuplicateInstanceError",
    "QueryWindow",
    "ReportDelivered",
    "ReportFailed",
    "ReportOutcome",
    "ReportScheduler",
    "Reporter",
    "ReporterConfigError",
    "ReporterInitError",
    "ReporterSpec",
    "ReportingError",
    "SchedulerConfig",
    "SchedulerNotRunningError",
    "SchedulerRegistry",
    "SchedulerState",
    "UnknownInstanceError",
    "compute_query_window",
    "resolve_reporter",
]
