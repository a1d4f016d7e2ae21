"""Report scheduler: moves recorded samples from a metric store to a reporter.

Each scheduler is a single sequential actor. Requests from callers and timer
fires are queued on one mailbox and handled strictly one at a time by a
worker task, so the delivery cursor and the armed timer are only ever
touched by one coroutine.

Usage
-----
>>> from cadence.metrics import InMemoryMetricStore
>>> from cadence.reporting import ReportScheduler, SchedulerConfig
>>>
>>> config = SchedulerConfig(reporter="logger", report_interval_ms=60_000)
>>> async with ReportScheduler(config, InMemoryMetricStore()) as scheduler:
...     samples = await scheduler.get_latest_metrics()
...     scheduler.report_metrics()

"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses as dc
import typing as typ

from cadence.common.time import SystemClock
from cadence.logging import get_logger, log_error
from cadence.reporting.errors import ReporterInitError, SchedulerNotRunningError
from cadence.reporting.observability import SchedulerEventLogger
from cadence.reporting.reporter import (
    ReportDelivered,
    ReportFailed,
    resolve_reporter,
)
from cadence.reporting.timers import LoopTimerFactory
from cadence.reporting.window import QueryWindow, compute_query_window

if typ.TYPE_CHECKING:
    import types

    from cadence.common.time import Clock
    from cadence.metrics.models import MetricSample
    from cadence.metrics.store import MetricStore
    from cadence.reporting.config import SchedulerConfig
    from cadence.reporting.reporter import ReporterConfig, ReporterSpec
    from cadence.reporting.timers import TimerFactory, TimerHandle

logger = get_logger(__name__)


@dc.dataclass(slots=True)
class SchedulerState:
    """Mutable state owned by one scheduler.

    Attributes
    ----------
    reporter
        Active reporter, or ``None`` when reports are no-ops.
    reporter_state
        Opaque state threaded through every reporter call.
    report_interval_ms
        Reporting period, or ``None`` for manual-only reporting.
    next_query_from
        First second not yet delivered, or ``None`` before the first
        delivery. Never decreases.
    start_time
        Monotonic seconds captured at start-up.
    timer
        Currently armed timer, if any.
    timer_generation
        Incremented whenever the armed timer is replaced or cancelled; a fire
        carrying an older generation is ignored.

    """

    reporter: ReporterSpec | None
    reporter_state: object
    report_interval_ms: int | None
    start_time: int
    next_query_from: int | None = None
    timer: TimerHandle | None = None
    timer_generation: int = 0

    def advance_cursor(self, window: QueryWindow) -> None:
        """Move the cursor past *window* without ever moving it backwards."""
        candidate = window.next_start
        if self.next_query_from is None or candidate > self.next_query_from:
            self.next_query_from = candidate


@dc.dataclass(frozen=True, slots=True)
class _GetLatest:
    reply: asyncio.Future[list[MetricSample]]


@dc.dataclass(frozen=True, slots=True)
class _ReportNow:
    pass


@dc.dataclass(frozen=True, slots=True)
class _TimerFired:
    generation: int


@dc.dataclass(frozen=True, slots=True)
class _ReplaceReporter:
    spec: ReporterSpec | None
    reply: asyncio.Future[None]


type _Message = _GetLatest | _ReportNow | _TimerFired | _ReplaceReporter

_REPORT_NOW = _ReportNow()


def _init_reporter(spec: ReporterSpec | None, instance: str) -> object:
    """Run the reporter's ``init`` and wrap any failure.

    The scheduler's instance id is passed as the ``instance`` argument unless
    the configuration already sets one.
    """
    if spec is None:
        return None
    try:
        return spec.reporter.init({"instance": instance, **spec.args})
    except Exception as exc:
        raise ReporterInitError(spec.name) from exc


def _abandon_reply(message: _Message, instance: str) -> None:
    """Fail the caller waiting on *message*, if any."""
    match message:
        case _GetLatest(reply=reply) | _ReplaceReporter(reply=reply):
            if not reply.done():
                reply.set_exception(SchedulerNotRunningError(instance))


class ReportScheduler:
    """Periodic and on-demand reporting for one metric-store instance.

    Parameters
    ----------
    config
        Instance id, reporter, and interval.
    store
        Metric store queried for each window.
    clock
        Clock source; defaults to the system clocks.
    timers
        Timer factory; defaults to the running event loop.
    event_logger
        Structured lifecycle logger.

    """

    def __init__(  # noqa: PLR0913 - collaborators are injected for tests
        self,
        config: SchedulerConfig,
        store: MetricStore,
        *,
        clock: Clock | None = None,
        timers: TimerFactory | None = None,
        event_logger: SchedulerEventLogger | None = None,
    ) -> None:
        """Configure the scheduler; nothing runs until :meth:`start`."""
        self._config = config
        self._store = store
        self._clock = clock or SystemClock()
        self._timers = timers or LoopTimerFactory()
        self._events = event_logger or SchedulerEventLogger()
        self._mailbox: asyncio.Queue[_Message] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._state: SchedulerState | None = None

    @property
    def instance(self) -> str:
        """Return the metric-store instance this scheduler serves."""
        return self._config.instance

    @property
    def is_running(self) -> bool:
        """Return True between :meth:`start` and :meth:`stop`."""
        return self._worker is not None

    @property
    def state(self) -> SchedulerState:
        """Return a copy of the current scheduler state."""
        return dc.replace(self._require_state())

    async def start(self) -> None:
        """Initialise the reporter, start the worker, and arm the first timer.

        Raises
        ------
        ReporterConfigError
            If the reporter configuration cannot be resolved.
        ReporterInitError
            If the reporter's ``init`` fails; the scheduler stays stopped.

        """
        if self._worker is not None:
            return

        spec = resolve_reporter(self._config.reporter)
        reporter_state = _init_reporter(spec, self.instance)
        self._state = SchedulerState(
            reporter=spec,
            reporter_state=reporter_state,
            report_interval_ms=self._config.report_interval_ms,
            start_time=self._clock.monotonic(),
        )
        self._worker = asyncio.create_task(
            self._run(), name=f"cadence-scheduler-{self.instance}"
        )
        self._worker.add_done_callback(self._on_worker_done)
        self._rearm_timer(self._state)
        self._events.log_scheduler_started(
            instance=self.instance,
            reporter=spec.name if spec else None,
            report_interval_ms=self._config.report_interval_ms,
        )

    async def stop(self) -> None:
        """Finish queued requests, disarm the timer, and stop the worker."""
        worker = self._worker
        if worker is None:
            return
        self._worker = None
        await self._mailbox.join()
        if self._state is not None:
            self._cancel_timer(self._state)
        worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await worker
        self._events.log_scheduler_stopped(instance=self.instance)

    async def __aenter__(self) -> typ.Self:
        """Start the scheduler."""
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Stop the scheduler."""
        await self.stop()

    async def get_latest_metrics(self) -> list[MetricSample]:
        """Return the samples recorded since the last delivery.

        The cursor advances past the returned window, so neither this call
        nor a later report cycle sees these samples again. The reporter and
        the timer are untouched.

        Raises
        ------
        SchedulerNotRunningError
            If the scheduler is not running.
        Exception
            Whatever the metric store raised; the cursor is not advanced.

        """
        self._ensure_running()
        reply: asyncio.Future[list[MetricSample]] = (
            asyncio.get_running_loop().create_future()
        )
        self._mailbox.put_nowait(_GetLatest(reply))
        return await reply

    def report_metrics(self) -> None:
        """Queue a report cycle and return immediately."""
        self._ensure_running()
        self._mailbox.put_nowait(_REPORT_NOW)

    async def replace_reporter(self, reporter: ReporterConfig) -> None:
        """Swap the active reporter and restart the schedule.

        The delivery cursor is kept, so the new reporter only receives
        samples that were not delivered before.

        Raises
        ------
        ReporterConfigError
            If *reporter* cannot be resolved.
        ReporterInitError
            If the new reporter's ``init`` fails; the old reporter stays.

        """
        self._ensure_running()
        spec = resolve_reporter(reporter)
        reply: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._mailbox.put_nowait(_ReplaceReporter(spec, reply))
        await reply

    async def wait_idle(self) -> None:
        """Wait until every request queued so far has been handled."""
        await self._mailbox.join()

    def _ensure_running(self) -> None:
        if self._worker is None:
            raise SchedulerNotRunningError(self.instance)

    def _require_state(self) -> SchedulerState:
        if self._state is None:
            raise SchedulerNotRunningError(self.instance)
        return self._state

    async def _run(self) -> None:
        while True:
            message = await self._mailbox.get()
            try:
                await self._dispatch(message)
            except Exception as exc:  # noqa: BLE001 - keep the actor alive
                log_error(
                    logger,
                    "Scheduler %s failed to handle %s",
                    self.instance,
                    type(message).__name__,
                    exc_info=exc,
                )
            except BaseException:
                _abandon_reply(message, self.instance)
                raise
            finally:
                self._mailbox.task_done()

    def _on_worker_done(self, worker: asyncio.Task[None]) -> None:
        """Release waiters when the worker exits without :meth:`stop`."""
        if self._worker is worker:
            self._worker = None
            if self._state is not None:
                self._cancel_timer(self._state)
            error = None if worker.cancelled() else worker.exception()
            self._events.log_scheduler_crashed(instance=self.instance, error=error)
        while not self._mailbox.empty():
            _abandon_reply(self._mailbox.get_nowait(), self.instance)
            self._mailbox.task_done()

    async def _dispatch(self, message: _Message) -> None:
        state = self._require_state()
        match message:
            case _GetLatest(reply=reply):
                await self._handle_get_latest(state, reply)
            case _ReportNow():
                await self._run_report_cycle(state)
            case _TimerFired(generation=generation):
                if generation != state.timer_generation:
                    self._events.log_stale_timer(
                        instance=self.instance, generation=generation
                    )
                    return
                state.timer = None
                await self._run_report_cycle(state)
            case _ReplaceReporter(spec=spec, reply=reply):
                self._handle_replace_reporter(state, spec, reply)

    def _window(self, state: SchedulerState) -> QueryWindow:
        return compute_query_window(
            report_interval_ms=state.report_interval_ms,
            next_query_from=state.next_query_from,
            start_time=state.start_time,
            clock=self._clock,
        )

    async def _query(self, window: QueryWindow) -> list[MetricSample]:
        if window.is_empty:
            return []
        samples = await self._store.query(
            self.instance, start=window.start, end=window.end
        )
        return list(samples)

    async def _handle_get_latest(
        self,
        state: SchedulerState,
        reply: asyncio.Future[list[MetricSample]],
    ) -> None:
        if reply.cancelled():
            return
        window = self._window(state)
        try:
            samples = await self._query(window)
        except Exception as exc:  # noqa: BLE001 - re-raised in the caller
            if not reply.done():
                reply.set_exception(exc)
            return
        if reply.cancelled():
            return
        state.advance_cursor(window)
        reply.set_result(samples)

    async def _run_report_cycle(self, state: SchedulerState) -> None:
        spec = state.reporter
        if spec is None:
            self._events.log_reporter_missing(instance=self.instance)
            return

        window = self._window(state)
        try:
            samples = await self._query(window)
        except Exception as exc:  # noqa: BLE001 - retried on the next tick
            self._events.log_store_query_failed(
                instance=self.instance, window=window, error=exc
            )
            self._rearm_timer(state)
            return

        try:
            outcome = await spec.reporter.handle_metrics(samples, state.reporter_state)
        except Exception as exc:  # noqa: BLE001 - window is re-offered next tick
            self._events.log_cycle_failed(
                instance=self.instance,
                window=window,
                reason=f"{type(exc).__name__}: {exc}",
                error=exc,
            )
            self._rearm_timer(state)
            return

        match outcome:
            case ReportDelivered(state=reporter_state):
                state.reporter_state = reporter_state
                state.advance_cursor(window)
                self._events.log_cycle_completed(
                    instance=self.instance, window=window, sample_count=len(samples)
                )
            case ReportFailed(reason=reason, state=reporter_state):
                state.reporter_state = reporter_state
                self._events.log_cycle_failed(
                    instance=self.instance, window=window, reason=reason
                )
            case _:
                self._events.log_cycle_failed(
                    instance=self.instance,
                    window=window,
                    reason=f"unexpected reporter outcome {outcome!r}",
                )
        self._rearm_timer(state)

    def _handle_replace_reporter(
        self,
        state: SchedulerState,
        spec: ReporterSpec | None,
        reply: asyncio.Future[None],
    ) -> None:
        try:
            reporter_state = _init_reporter(spec, self.instance)
        except ReporterInitError as exc:
            if not reply.done():
                reply.set_exception(exc)
            return
        previous = state.reporter
        state.reporter = spec
        state.reporter_state = reporter_state
        self._rearm_timer(state)
        self._events.log_reporter_replaced(
            instance=self.instance,
            previous=previous.name if previous else None,
            current=spec.name if spec else None,
        )
        if not reply.done():
            reply.set_result(None)

    def _cancel_timer(self, state: SchedulerState) -> None:
        if state.timer is not None:
            state.timer.cancel()
            state.timer = None
        state.timer_generation += 1

    def _rearm_timer(self, state: SchedulerState) -> None:
        """Replace any armed timer with a fresh one when a schedule applies."""
        self._cancel_timer(state)
        if state.report_interval_ms is None or state.reporter is None:
            return
        generation = state.timer_generation
        state.timer = self._timers.arm(
            state.report_interval_ms / 1000, lambda: self._on_timer(generation)
        )

    def _on_timer(self, generation: int) -> None:
        if self._worker is None:
            return
        self._mailbox.put_nowait(_TimerFired(generation))
