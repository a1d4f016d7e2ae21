"""Structured log events for the report scheduler lifecycle.

Usage
-----
>>> event_logger = SchedulerEventLogger()
>>> event_logger.log_reporter_missing(instance="default")

"""

from __future__ import annotations

import enum
import typing as typ

from cadence.logging import get_logger, log_debug, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    from cadence.reporting.window import QueryWindow

logger = get_logger(__name__)


class SchedulerEventType(enum.StrEnum):
    """Structured log event types for scheduler runs."""

    SCHEDULER_STARTED = "reporting.scheduler.started"
    SCHEDULER_STOPPED = "reporting.scheduler.stopped"
    SCHEDULER_CRASHED = "reporting.scheduler.crashed"
    REPORTER_MISSING = "reporting.reporter.missing"
    REPORTER_REPLACED = "reporting.reporter.replaced"
    CYCLE_COMPLETED = "reporting.cycle.completed"
    CYCLE_FAILED = "reporting.cycle.failed"
    STORE_QUERY_FAILED = "reporting.store.failed"
    STALE_TIMER_IGNORED = "reporting.timer.stale"


class SchedulerEventLogger:
    """Emit scheduler events via femtologging."""

    def log_scheduler_started(
        self,
        *,
        instance: str,
        reporter: str | None,
        report_interval_ms: int | None,
    ) -> None:
        """Log scheduler start-up with its resolved configuration."""
        log_info(
            logger,
            "[%s] instance=%s reporter=%s report_interval_ms=%s",
            SchedulerEventType.SCHEDULER_STARTED,
            instance,
            reporter,
            report_interval_ms,
        )

    def log_scheduler_stopped(self, *, instance: str) -> None:
        """Log scheduler shutdown."""
        log_info(
            logger,
            "[%s] instance=%s",
            SchedulerEventType.SCHEDULER_STOPPED,
            instance,
        )

    def log_scheduler_crashed(
        self, *, instance: str, error: BaseException | None
    ) -> None:
        """Log a worker that exited without being stopped."""
        log_error(
            logger,
            "[%s] instance=%s error_type=%s",
            SchedulerEventType.SCHEDULER_CRASHED,
            instance,
            type(error).__name__ if error is not None else "CancelledError",
            exc_info=error,
        )

    def log_reporter_missing(self, *, instance: str) -> None:
        """Warn that a report was requested with no reporter configured."""
        log_warning(
            logger,
            "[%s] instance=%s tried to report metrics but no reporter is "
            "configured; check your configuration",
            SchedulerEventType.REPORTER_MISSING,
            instance,
        )

    def log_reporter_replaced(
        self, *, instance: str, previous: str | None, current: str | None
    ) -> None:
        """Log a reporter swap."""
        log_info(
            logger,
            "[%s] instance=%s previous=%s current=%s",
            SchedulerEventType.REPORTER_REPLACED,
            instance,
            previous,
            current,
        )

    def log_cycle_completed(
        self, *, instance: str, window: QueryWindow, sample_count: int
    ) -> None:
        """Log a delivered window."""
        log_info(
            logger,
            "[%s] instance=%s window_start=%d window_end=%d samples=%d",
            SchedulerEventType.CYCLE_COMPLETED,
            instance,
            window.start,
            window.end,
            sample_count,
        )

    def log_cycle_failed(
        self,
        *,
        instance: str,
        window: QueryWindow,
        reason: str,
        error: BaseException | None = None,
    ) -> None:
        """Log a window the reporter did not deliver.

        Parameters
        ----------
        instance
            Scheduler instance id.
        window
            Window that will be offered again on the next cycle.
        reason
            Failure reason reported by (or derived from) the reporter.
        error
            Exception raised by the reporter, when it raised instead of
            returning a failed outcome.

        """
        log_error(
            logger,
            "[%s] instance=%s window_start=%d window_end=%d reason=%s",
            SchedulerEventType.CYCLE_FAILED,
            instance,
            window.start,
            window.end,
            reason,
            exc_info=error,
        )

    def log_store_query_failed(
        self, *, instance: str, window: QueryWindow, error: BaseException
    ) -> None:
        """Log a metric store failure that aborted a report cycle."""
        log_error(
            logger,
            "[%s] instance=%s window_start=%d window_end=%d error_type=%s "
            "error_message=%s",
            SchedulerEventType.STORE_QUERY_FAILED,
            instance,
            window.start,
            window.end,
            type(error).__name__,
            str(error),
            exc_info=error,
        )

    def log_stale_timer(self, *, instance: str, generation: int) -> None:
        """Note a timer fire that was superseded by a later re-arm."""
        log_debug(
            logger,
            "[%s] instance=%s generation=%d",
            SchedulerEventType.STALE_TIMER_IGNORED,
            instance,
            generation,
        )
