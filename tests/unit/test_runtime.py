"""Unit tests for the cadence.runtime module."""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

import falcon.asgi
import falcon.testing
import pytest

from cadence.runtime import _parse_port, create_app
from tests.helpers.femtologging_capture import WARNING_LEVELS, capture_logs

if typ.TYPE_CHECKING:
    from pathlib import Path

_SCHEDULER_ENV = (
    "CADENCE_INSTANCE",
    "CADENCE_REPORTER",
    "CADENCE_REPORTER_ARGS",
    "CADENCE_REPORT_INTERVAL_MS",
)


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> falcon.testing.TestClient:
    """Create a test client for the health-only runtime app."""
    monkeypatch.delenv("CADENCE_DATABASE_URL", raising=False)
    return falcon.testing.TestClient(create_app())


class TestHealthOnlyMode:
    """Tests for the runtime without a metric database."""

    def test_create_app_returns_falcon_app(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """create_app returns a Falcon ASGI App instance."""
        monkeypatch.delenv("CADENCE_DATABASE_URL", raising=False)
        assert isinstance(create_app(), falcon.asgi.App)

    def test_health_returns_json_status_ok(
        self, client: falcon.testing.TestClient
    ) -> None:
        """GET /health returns JSON with status ok."""
        result = client.simulate_get("/health")
        assert result.status_code == HTTPStatus.OK
        assert result.json == {"status": "ok"}
        assert result.headers.get("content-type", "").startswith("application/json")

    def test_ready_has_no_instances(self, client: falcon.testing.TestClient) -> None:
        """GET /ready reports no schedulers."""
        result = client.simulate_get("/ready")
        assert result.json == {"status": "ready", "instances": []}

    def test_metrics_endpoints_absent(self, client: falcon.testing.TestClient) -> None:
        """Without a database the metrics endpoints are not routed."""
        result = client.simulate_get("/metrics/default/latest")
        assert result.status_code == HTTPStatus.NOT_FOUND

    def test_warns_when_scheduler_settings_are_ignored(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Scheduler variables without a database are reported, not dropped."""
        for key in _SCHEDULER_ENV:
            monkeypatch.delenv(key, raising=False)
        monkeypatch.delenv("CADENCE_DATABASE_URL", raising=False)
        monkeypatch.setenv("CADENCE_REPORTER", "logger")
        monkeypatch.setenv("CADENCE_REPORT_INTERVAL_MS", "60000")

        with capture_logs("cadence.runtime") as capture:
            create_app()
            capture.wait_for_count(1)

        [record] = capture.messages_containing("CADENCE_DATABASE_URL is not set")
        assert record.level in WARNING_LEVELS
        assert "CADENCE_REPORTER, CADENCE_REPORT_INTERVAL_MS" in record.message


class TestDatabaseMode:
    """Tests for the runtime backed by a SQL metric store."""

    @pytest.mark.asyncio
    async def test_serves_configured_instance(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """The scheduler from the environment starts on lifespan startup."""
        for key in _SCHEDULER_ENV:
            monkeypatch.delenv(key, raising=False)
        monkeypatch.setenv(
            "CADENCE_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'metrics.db'}"
        )
        monkeypatch.setenv("CADENCE_INSTANCE", "edge")
        monkeypatch.setenv("CADENCE_REPORTER", "logger")

        app = create_app()
        async with falcon.testing.ASGIConductor(app) as conductor:
            ready = await conductor.simulate_get("/ready")
            latest = await conductor.simulate_get("/metrics/edge/latest")
            report = await conductor.simulate_post("/metrics/edge/report")

        assert ready.json == {"status": "ready", "instances": ["edge"]}
        assert latest.status_code == HTTPStatus.OK
        assert latest.json == {"instance": "edge", "samples": []}
        assert report.status_code == HTTPStatus.ACCEPTED
        assert (tmp_path / "metrics.db").exists()


class TestParsePort:
    """Tests for CADENCE_PORT validation."""

    @pytest.mark.parametrize("raw", ["1", "8080", "65535"])
    def test_accepts_valid_ports(self, raw: str) -> None:
        """Ports in range parse to integers."""
        assert _parse_port(raw) == int(raw)

    @pytest.mark.parametrize("raw", ["0", "65536", "http", ""])
    def test_rejects_invalid_ports(self, raw: str) -> None:
        """Invalid ports exit with status 1."""
        with pytest.raises(SystemExit) as excinfo:
            _parse_port(raw)
        assert excinfo.value.code == 1
