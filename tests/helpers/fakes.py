"""Deterministic collaborators for scheduler tests."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses
import typing as typ

from cadence.reporting.reporter import ReportDelivered, ReportFailed

if typ.TYPE_CHECKING:
    from cadence.metrics.models import MetricSample
    from cadence.reporting.reporter import ReportOutcome


class FakeClock:
    """Clock whose monotonic and wall readings are set by the test."""

    def __init__(self, *, monotonic: int = 1_000, now: int = 1_700_000_000) -> None:
        self.monotonic_value = monotonic
        self.now_value = now

    def monotonic(self) -> int:
        return self.monotonic_value

    def now(self) -> int:
        return self.now_value

    def advance(self, seconds: int) -> None:
        """Move both clocks forward together."""
        self.monotonic_value += seconds
        self.now_value += seconds


@dataclasses.dataclass
class FakeTimer:
    """Timer armed through :class:`FakeTimerFactory`."""

    delay_seconds: float
    callback: cabc.Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        """Run the callback as the event loop would on expiry."""
        self.fired = True
        self.callback()


class FakeTimerFactory:
    """Record every armed timer; nothing fires unless the test says so."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def arm(self, delay_seconds: float, callback: cabc.Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay_seconds=delay_seconds, callback=callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[FakeTimer]:
        """Return timers that are neither cancelled nor fired."""
        return [t for t in self.timers if not t.cancelled and not t.fired]

    @property
    def latest(self) -> FakeTimer:
        return self.timers[-1]


@dataclasses.dataclass(frozen=True)
class StoreQuery:
    instance: str
    start: int
    end: int


class RecordingStore:
    """Metric store returning canned samples and recording every query."""

    def __init__(self, samples: cabc.Sequence[MetricSample] = ()) -> None:
        self.samples = list(samples)
        self.queries: list[StoreQuery] = []
        self.error: BaseException | None = None

    async def query(
        self, instance: str, *, start: int, end: int
    ) -> list[MetricSample]:
        self.queries.append(StoreQuery(instance, start, end))
        if self.error is not None:
            raise self.error
        return [s for s in self.samples if start <= s.timestamp <= end]


class ScriptedReporter:
    """Reporter whose outcomes are scripted per call.

    ``outcomes`` holds ``"ok"``, ``"fail"``, or an exception to raise. Once
    the script runs out every call succeeds. State is an integer call count.
    """

    def __init__(self, outcomes: cabc.Iterable[str | BaseException] = ()) -> None:
        self.outcomes = list(outcomes)
        self.batches: list[list[MetricSample]] = []
        self.init_args: list[cabc.Mapping[str, typ.Any]] = []
        self.init_error: Exception | None = None

    def init(self, args: cabc.Mapping[str, typ.Any]) -> int:
        self.init_args.append(args)
        if self.init_error is not None:
            raise self.init_error
        return 0

    async def handle_metrics(
        self, samples: cabc.Sequence[MetricSample], state: object
    ) -> ReportOutcome:
        self.batches.append(list(samples))
        calls = typ.cast("int", state) + 1
        outcome = self.outcomes.pop(0) if self.outcomes else "ok"
        if isinstance(outcome, BaseException):
            raise outcome
        if outcome == "fail":
            return ReportFailed(reason="remote unavailable", state=calls)
        return ReportDelivered(state=calls)
