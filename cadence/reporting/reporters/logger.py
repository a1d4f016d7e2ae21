"""Reporter that writes a one-line summary of each batch to the log."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from cadence.logging import get_logger, log_info
from cadence.reporting.reporter import ReportDelivered

if typ.TYPE_CHECKING:
    from cadence.metrics.models import MetricSample

logger = get_logger(__name__)


@dc.dataclass(frozen=True, slots=True)
class LoggerReporterState:
    """Running totals kept between batches."""

    batches: int = 0
    samples: int = 0


class LoggerReporter:
    """Log batch sizes and metric names; never fails."""

    def init(self, args: cabc.Mapping[str, typ.Any]) -> LoggerReporterState:
        """Return empty totals; no arguments are recognised."""
        del args
        return LoggerReporterState()

    async def handle_metrics(
        self,
        samples: cabc.Sequence[MetricSample],
        state: object,
    ) -> ReportDelivered:
        """Log the batch and bump the running totals."""
        current = typ.cast("LoggerReporterState", state)
        names = sorted({sample.name for sample in samples})
        log_info(
            logger,
            "[cadence] reporting %d sample(s) for %d metric(s): %s",
            len(samples),
            len(names),
            ", ".join(names) or "-",
        )
        return ReportDelivered(
            state=LoggerReporterState(
                batches=current.batches + 1,
                samples=current.samples + len(samples),
            )
        )
