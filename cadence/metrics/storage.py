"""SQLAlchemy-backed metric store.

Samples live in a single ``metric_samples`` table keyed by instance and
timestamp. Writers outside the scheduler append rows; the scheduler only
reads them back through :meth:`SqlMetricStore.query`.

Usage
-----
>>> from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
>>> engine = create_async_engine("sqlite+aiosqlite:///cadence.db")
>>> await init_metric_storage(engine)
>>> store = SqlMetricStore(async_sessionmaker(engine, expire_on_commit=False))
>>> await store.record("default", sample)
>>> await store.query("default", start=0, end=2_000_000_000)

"""

from __future__ import annotations

import typing as typ

from sqlalchemy import JSON, BigInteger, Float, Index, Integer, String, select
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from cadence.metrics.models import MetricSample, MetricType
from cadence.metrics.store import check_query_range

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker


class Base(DeclarativeBase):
    """Declarative base for metric tables."""


class MetricSampleRow(Base):
    """Persisted form of a :class:`MetricSample`."""

    __tablename__ = "metric_samples"
    __table_args__ = (Index("ix_metric_samples_instance_ts", "instance", "timestamp"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    instance: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tags: Mapped[dict[str, str]] = mapped_column(JSON, default=dict, nullable=False)

    def to_sample(self) -> MetricSample:
        """Convert the row back into an immutable sample."""
        return MetricSample(
            name=self.name,
            type=MetricType(self.type),
            value=self.value,
            timestamp=self.timestamp,
            tags=dict(self.tags),
        )


async def init_metric_storage(engine: AsyncEngine) -> None:
    """Create the metric tables if they are absent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class SqlMetricStore:
    """Read and append samples through an async session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Bind the store to a session factory."""
        self._session_factory = session_factory

    async def record(self, instance: str, *samples: MetricSample) -> None:
        """Append samples for *instance* in a single transaction."""
        async with self._session_factory() as session, session.begin():
            session.add_all(
                MetricSampleRow(
                    instance=instance,
                    name=sample.name,
                    type=sample.type.value,
                    value=sample.value,
                    timestamp=sample.timestamp,
                    tags=dict(sample.tags),
                )
                for sample in samples
            )

    async def query(
        self,
        instance: str,
        *,
        start: int,
        end: int,
    ) -> list[MetricSample]:
        """Return samples for *instance* with ``start <= timestamp <= end``."""
        check_query_range(start, end)
        stmt = (
            select(MetricSampleRow)
            .where(
                MetricSampleRow.instance == instance,
                MetricSampleRow.timestamp >= start,
                MetricSampleRow.timestamp <= end,
            )
            .order_by(MetricSampleRow.timestamp, MetricSampleRow.id)
        )
        async with self._session_factory() as session:
            rows = (await session.scalars(stmt)).all()
        return [row.to_sample() for row in rows]
