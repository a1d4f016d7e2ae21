r"""Reporter that writes each batch to a JSON Lines file.

Batches land under a predictable layout::

    {path}/{instance}/{first_timestamp}-{last_timestamp}.jsonl

Empty batches are acknowledged without touching the filesystem.

Usage
-----
>>> reporter = FilesystemReporter()
>>> state = reporter.init({"path": "/var/lib/cadence/reports"})

"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import dataclasses as dc
import typing as typ
from pathlib import Path

import msgspec

from cadence.logging import get_logger, log_warning
from cadence.reporting.errors import ReporterConfigError
from cadence.reporting.reporter import ReportDelivered, ReportFailed

if typ.TYPE_CHECKING:
    from cadence.metrics.models import MetricSample
    from cadence.reporting.reporter import ReportOutcome

logger = get_logger(__name__)

_ENCODER = msgspec.json.Encoder()


@dc.dataclass(frozen=True, slots=True)
class FilesystemReporterState:
    """Destination and failure bookkeeping.

    Attributes
    ----------
    directory
        Directory that receives batch files.
    consecutive_failures
        Number of failed writes since the last success.
    last_file
        Path of the most recently written batch.

    """

    directory: Path
    consecutive_failures: int = 0
    last_file: Path | None = None


def _encode_lines(samples: cabc.Sequence[MetricSample]) -> bytes:
    return b"".join(_ENCODER.encode(sample) + b"\n" for sample in samples)


def _write_batch(path: Path, payload: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(payload)


class FilesystemReporter:
    """Persist batches on the local filesystem."""

    def init(self, args: cabc.Mapping[str, typ.Any]) -> FilesystemReporterState:
        """Build the state from the ``path`` and ``instance`` args.

        The scheduler supplies ``instance``; it falls back to ``default`` when
        the reporter is initialised on its own.

        Raises
        ------
        ReporterConfigError
            If ``path`` is missing or blank.

        """
        raw_path = str(args.get("path", "")).strip()
        if not raw_path:
            raise ReporterConfigError.missing_argument("filesystem", "path")
        instance = str(args.get("instance", "default"))
        return FilesystemReporterState(directory=Path(raw_path) / instance)

    async def handle_metrics(
        self,
        samples: cabc.Sequence[MetricSample],
        state: object,
    ) -> ReportOutcome:
        """Write the batch; ``OSError`` turns into a failed outcome."""
        current = typ.cast("FilesystemReporterState", state)
        if not samples:
            return ReportDelivered(state=current)

        target = current.directory / (
            f"{samples[0].timestamp}-{samples[-1].timestamp}.jsonl"
        )
        try:
            await asyncio.to_thread(_write_batch, target, _encode_lines(samples))
        except OSError as exc:
            failures = current.consecutive_failures + 1
            log_warning(
                logger,
                "[cadence] failed to write %s (attempt %d): %s",
                target,
                failures,
                exc,
            )
            return ReportFailed(
                reason=str(exc),
                state=dc.replace(current, consecutive_failures=failures),
            )
        return ReportDelivered(
            state=dc.replace(current, consecutive_failures=0, last_file=target)
        )
