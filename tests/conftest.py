"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cadence.metrics import init_metric_storage
from tests.helpers.fakes import FakeClock, FakeTimerFactory, RecordingStore

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def clock() -> FakeClock:
    """Return a fake clock at monotonic 1000 / wall 1_700_000_000."""
    return FakeClock()


@pytest.fixture
def timers() -> FakeTimerFactory:
    """Return a timer factory that never fires on its own."""
    return FakeTimerFactory()


@pytest.fixture
def store() -> RecordingStore:
    """Return an empty recording store."""
    return RecordingStore()


@pytest_asyncio.fixture
async def session_factory(
    tmp_path: Path,
) -> typ.AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Yield a session factory bound to a fresh SQLite metric database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cadence_test.db'}")
    try:
        await init_metric_storage(engine)
        yield async_sessionmaker(engine, expire_on_commit=False)
    finally:
        await engine.dispose()
