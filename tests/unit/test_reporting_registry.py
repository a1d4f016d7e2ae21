"""Unit tests for SchedulerRegistry routing and lifecycle."""

from __future__ import annotations

import asyncio
import typing as typ

import msgspec
import pytest

from cadence.metrics import InMemoryMetricStore
from cadence.reporting import (
    DuplicateInstanceError,
    ReporterInitError,
    ReportScheduler,
    SchedulerConfig,
    SchedulerRegistry,
    UnknownInstanceError,
)
from tests.helpers.fakes import ScriptedReporter
from tests.helpers.samples import make_sample

if typ.TYPE_CHECKING:
    from pathlib import Path

    from cadence.metrics.store import MetricStore
    from tests.helpers.fakes import FakeClock, FakeTimerFactory, RecordingStore


@pytest.fixture
def registry(
    clock: FakeClock,
    timers: FakeTimerFactory,
    store: RecordingStore,
) -> SchedulerRegistry:
    """Return a registry whose schedulers use the fake clock and timers."""

    def build(config: SchedulerConfig, metric_store: MetricStore) -> ReportScheduler:
        return ReportScheduler(config, metric_store, clock=clock, timers=timers)

    return SchedulerRegistry(store, builder=build)


class TestSchedulerRegistry:
    """Tests for the instance-keyed scheduler registry."""

    @pytest.mark.asyncio
    async def test_start_registers_running_scheduler(
        self, registry: SchedulerRegistry
    ) -> None:
        """Started schedulers are listed in start order."""
        await registry.start(SchedulerConfig(instance="edge"))
        await registry.start(SchedulerConfig(instance="core"))
        try:
            assert registry.instances == ("edge", "core")
            assert "edge" in registry
            assert registry.get("core").is_running
        finally:
            await registry.stop_all()

    @pytest.mark.asyncio
    async def test_duplicate_instance_is_rejected(
        self, registry: SchedulerRegistry
    ) -> None:
        """One instance id maps to exactly one scheduler."""
        await registry.start(SchedulerConfig(instance="edge"))
        try:
            with pytest.raises(DuplicateInstanceError, match="edge"):
                await registry.start(SchedulerConfig(instance="edge"))
        finally:
            await registry.stop_all()

    @pytest.mark.asyncio
    async def test_failed_start_registers_nothing(
        self, registry: SchedulerRegistry
    ) -> None:
        """A reporter init failure leaves the registry untouched."""
        reporter = ScriptedReporter()
        reporter.init_error = RuntimeError("boom")

        with pytest.raises(ReporterInitError):
            await registry.start(SchedulerConfig(instance="edge", reporter=reporter))

        assert "edge" not in registry

    def test_unknown_instance(self, registry: SchedulerRegistry) -> None:
        """Looking up an unregistered instance raises UnknownInstanceError."""
        with pytest.raises(UnknownInstanceError) as excinfo:
            registry.report_metrics("missing")
        assert excinfo.value.instance == "missing"

    @pytest.mark.asyncio
    async def test_routes_requests_by_instance(
        self,
        registry: SchedulerRegistry,
        store: RecordingStore,
    ) -> None:
        """Reads and reports reach the scheduler for the named instance."""
        store.samples = [make_sample(1_700_000_000 - 5)]
        reporter = ScriptedReporter()
        await registry.start(
            SchedulerConfig(
                instance="edge", reporter=reporter, report_interval_ms=60_000
            )
        )
        await registry.start(
            SchedulerConfig(instance="core", report_interval_ms=60_000)
        )
        try:
            samples = await registry.get_latest_metrics("core")
            registry.report_metrics("edge")
            await registry.get("edge").wait_idle()
        finally:
            await registry.stop_all()

        assert len(samples) == 1
        assert [q.instance for q in store.queries] == ["core", "edge"]
        assert len(reporter.batches) == 1

    @pytest.mark.asyncio
    async def test_stop_unregisters_and_stops(
        self, registry: SchedulerRegistry
    ) -> None:
        """Stopping an instance removes it and stops its scheduler."""
        scheduler = await registry.start(SchedulerConfig(instance="edge"))

        await registry.stop("edge")

        assert "edge" not in registry
        assert not scheduler.is_running

    @pytest.mark.asyncio
    async def test_stop_all_empties_registry(
        self, registry: SchedulerRegistry, timers: FakeTimerFactory
    ) -> None:
        """stop_all stops every scheduler and releases their timers."""
        for instance in ("edge", "core"):
            await registry.start(
                SchedulerConfig(
                    instance=instance,
                    reporter=ScriptedReporter(),
                    report_interval_ms=1_000,
                )
            )

        await registry.stop_all()

        assert registry.instances == ()
        assert timers.pending == []

    @pytest.mark.asyncio
    async def test_concurrent_starts_keep_one_scheduler(
        self, clock: FakeClock, timers: FakeTimerFactory, store: RecordingStore
    ) -> None:
        """Racing starts for one instance leave a single running scheduler."""
        started: list[ReportScheduler] = []

        class _YieldingScheduler(ReportScheduler):
            async def start(self) -> None:
                await asyncio.sleep(0)
                await super().start()
                started.append(self)

        def build(
            config: SchedulerConfig, metric_store: MetricStore
        ) -> ReportScheduler:
            return _YieldingScheduler(
                config, metric_store, clock=clock, timers=timers
            )

        registry = SchedulerRegistry(store, builder=build)
        config = SchedulerConfig(
            instance="edge", reporter=ScriptedReporter(), report_interval_ms=1_000
        )

        results = await asyncio.gather(
            registry.start(config), registry.start(config), return_exceptions=True
        )
        try:
            errors = [r for r in results if isinstance(r, BaseException)]
            assert len(errors) == 1
            assert isinstance(errors[0], DuplicateInstanceError)
            assert started == [registry.get("edge")]
        finally:
            await registry.stop_all()

        assert timers.pending == []


class TestFilesystemReportingPerInstance:
    """Instances sharing a filesystem reporter path stay apart."""

    @pytest.mark.asyncio
    async def test_instances_write_separate_files(
        self, clock: FakeClock, timers: FakeTimerFactory, tmp_path: Path
    ) -> None:
        """Each instance writes under its own directory, even for equal windows."""
        metric_store = InMemoryMetricStore()
        timestamp = clock.now() - 5
        metric_store.record("edge", make_sample(timestamp, value=1.0))
        metric_store.record("core", make_sample(timestamp, value=2.0))

        def build(config: SchedulerConfig, store: MetricStore) -> ReportScheduler:
            return ReportScheduler(config, store, clock=clock, timers=timers)

        registry = SchedulerRegistry(metric_store, builder=build)
        for instance in ("edge", "core"):
            await registry.start(
                SchedulerConfig(
                    instance=instance,
                    reporter=("filesystem", {"path": str(tmp_path)}),
                    report_interval_ms=60_000,
                )
            )
        try:
            for instance in ("edge", "core"):
                registry.report_metrics(instance)
                await registry.get(instance).wait_idle()
                assert registry.get(instance).state.next_query_from == clock.now() + 1
        finally:
            await registry.stop_all()

        name = f"{timestamp}-{timestamp}.jsonl"
        values = {}
        for instance in ("edge", "core"):
            row = msgspec.json.decode((tmp_path / instance / name).read_bytes())
            values[instance] = row["value"]
        assert values == {"edge": 1.0, "core": 2.0}
        assert not (tmp_path / "default").exists()
