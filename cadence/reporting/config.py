"""Configuration for a report scheduler instance.

Usage
-----
Create a configuration directly:

>>> config = SchedulerConfig(instance="edge", reporter="logger",
...                          report_interval_ms=60_000)

Or load from environment variables:

>>> import os
>>> os.environ["CADENCE_REPORTER"] = "logger"
>>> os.environ["CADENCE_REPORT_INTERVAL_MS"] = "60000"
>>> SchedulerConfig.from_env().report_interval_ms
60000

"""

from __future__ import annotations

import dataclasses as dc
import os
import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    from cadence.reporting.reporter import ReporterConfig

DEFAULT_INSTANCE = "default"


def _parse_positive_int(env_var: str) -> int | None:
    """Read an optional positive integer env var."""
    raw = os.environ.get(env_var, "")
    if not raw.strip():
        return None
    try:
        value = int(raw)
    except ValueError as exc:
        msg = f"{env_var} must be an integer, got: {raw!r}"
        raise ValueError(msg) from exc
    if value < 1:
        msg = f"{env_var} must be positive, got: {value}"
        raise ValueError(msg)
    return value


def _parse_args(env_var: str) -> dict[str, typ.Any]:
    """Read an optional JSON object env var."""
    raw = os.environ.get(env_var, "")
    if not raw.strip():
        return {}
    try:
        decoded = msgspec.json.decode(raw)
    except msgspec.DecodeError as exc:
        msg = f"{env_var} must be a JSON object, got: {raw!r}"
        raise ValueError(msg) from exc
    if not isinstance(decoded, dict):
        msg = f"{env_var} must be a JSON object, got: {raw!r}"
        raise ValueError(msg)  # noqa: TRY004 - config errors are ValueErrors
    return decoded


@dc.dataclass(frozen=True, slots=True)
class SchedulerConfig:
    """Configuration for one scheduler instance.

    Attributes
    ----------
    instance
        Metric-store namespace the scheduler serves; also its registry key.
    reporter
        Reporter configuration: ``None``, a registered identifier, a
        ``Reporter`` instance, or either paired with init arguments.
    report_interval_ms
        Reporting period in milliseconds. ``None`` means reports only run
        when triggered manually.

    """

    instance: str = DEFAULT_INSTANCE
    reporter: ReporterConfig = None
    report_interval_ms: int | None = None

    def __post_init__(self) -> None:
        """Validate the interval."""
        interval = self.report_interval_ms
        if interval is not None and (isinstance(interval, bool) or interval < 1):
            msg = f"report_interval_ms must be a positive integer, got: {interval!r}"
            raise ValueError(msg)

    @classmethod
    def from_env(cls, instance: str | None = None) -> SchedulerConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``CADENCE_INSTANCE``: Instance id, unless *instance* is given.
        - ``CADENCE_REPORTER``: Reporter identifier; empty means none.
        - ``CADENCE_REPORTER_ARGS``: JSON object of reporter init arguments.
        - ``CADENCE_REPORT_INTERVAL_MS``: Positive reporting interval.

        Raises
        ------
        ValueError
            If the interval is not a positive integer or the reporter
            arguments are not a JSON object.

        """
        resolved_instance = (
            instance
            or os.environ.get("CADENCE_INSTANCE", "").strip()
            or DEFAULT_INSTANCE
        )
        identifier = os.environ.get("CADENCE_REPORTER", "").strip()
        args = _parse_args("CADENCE_REPORTER_ARGS")

        reporter: ReporterConfig = None
        if identifier:
            reporter = (identifier, args) if args else identifier
        return cls(
            instance=resolved_instance,
            reporter=reporter,
            report_interval_ms=_parse_positive_int("CADENCE_REPORT_INTERVAL_MS"),
        )


__all__ = ["DEFAULT_INSTANCE", "SchedulerConfig"]
