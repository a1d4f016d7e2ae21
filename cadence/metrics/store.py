"""MetricStore protocol and an in-process implementation.

Stores answer inclusive timestamp-range queries for one named instance and
return samples ordered by timestamp ascending. An empty result is a normal
answer, not an error.

Usage
-----
>>> import asyncio
>>> store = InMemoryMetricStore()
>>> store.record("default", sample)
>>> asyncio.run(store.query("default", start=0, end=2_000_000_000))
[MetricSample(...)]

"""

from __future__ import annotations

import bisect
import collections
import collections.abc as cabc
import typing as typ

from cadence.metrics.errors import InvalidQueryRangeError

if typ.TYPE_CHECKING:
    from cadence.metrics.models import MetricSample


@typ.runtime_checkable
class MetricStore(typ.Protocol):
    """Port for reading recorded samples by timestamp range."""

    async def query(
        self,
        instance: str,
        *,
        start: int,
        end: int,
    ) -> cabc.Sequence[MetricSample]:
        """Return samples with ``start <= timestamp <= end``.

        Parameters
        ----------
        instance
            Namespace the samples were recorded under.
        start
            Inclusive lower bound, unix seconds.
        end
            Inclusive upper bound, unix seconds.

        Returns
        -------
        Sequence[MetricSample]
            Samples ordered by timestamp ascending.

        """
        ...


def check_query_range(start: int, end: int) -> None:
    """Reject ranges whose start lies after their end."""
    if start > end:
        raise InvalidQueryRangeError(start, end)


class InMemoryMetricStore:
    """Keep samples in per-instance lists sorted by timestamp."""

    def __init__(self) -> None:
        """Create an empty store."""
        self._samples: collections.defaultdict[str, list[MetricSample]] = (
            collections.defaultdict(list)
        )

    def record(self, instance: str, *samples: MetricSample) -> None:
        """Insert samples, keeping insertion order among equal timestamps."""
        bucket = self._samples[instance]
        for sample in samples:
            index = bisect.bisect_right(
                bucket, sample.timestamp, key=lambda item: item.timestamp
            )
            bucket.insert(index, sample)

    async def query(
        self,
        instance: str,
        *,
        start: int,
        end: int,
    ) -> list[MetricSample]:
        """Return samples recorded for *instance* within the inclusive range."""
        check_query_range(start, end)
        bucket = self._samples.get(instance, [])
        low = bisect.bisect_left(bucket, start, key=lambda item: item.timestamp)
        high = bisect.bisect_right(bucket, end, key=lambda item: item.timestamp)
        return bucket[low:high]
