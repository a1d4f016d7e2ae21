"""Reporter protocol and reporter configuration resolution.

A reporter ships batches of samples off-box. The scheduler owns the
reporter's state: ``init`` produces it once, and every ``handle_metrics``
call receives the current state and hands back the next one inside its
outcome. Reporters keep nothing between calls except through that state.

Reporters are configured either by a registered identifier (optionally
paired with init arguments) or by passing an instance directly.

Usage
-----
>>> spec = resolve_reporter(("filesystem", {"path": "/var/lib/cadence"}))
>>> spec.name
'filesystem'
>>> resolve_reporter(None) is None
True

"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from cadence.reporting.errors import ReporterConfigError

if typ.TYPE_CHECKING:
    from cadence.metrics.models import MetricSample


@dc.dataclass(frozen=True, slots=True)
class ReportDelivered:
    """Outcome of a batch the reporter accepted.

    Attributes
    ----------
    state
        Reporter state to pass to the next call.

    """

    state: object


@dc.dataclass(frozen=True, slots=True)
class ReportFailed:
    """Outcome of a batch the reporter could not deliver.

    The scheduler keeps its cursor where it was, so the same window is
    offered again on the next cycle.

    Attributes
    ----------
    reason
        Human-readable failure description.
    state
        Reporter state to pass to the next call; reporters may use it to
        count failures.

    """

    reason: str
    state: object


type ReportOutcome = ReportDelivered | ReportFailed


@typ.runtime_checkable
class Reporter(typ.Protocol):
    """Pluggable sink for batches of metric samples."""

    def init(self, args: cabc.Mapping[str, typ.Any]) -> object:
        """Validate *args* and return the initial reporter state.

        Raises
        ------
        Exception
            Any exception aborts scheduler start-up.

        """
        ...

    async def handle_metrics(
        self,
        samples: cabc.Sequence[MetricSample],
        state: object,
    ) -> ReportOutcome:
        """Deliver one batch and return the outcome with the next state."""
        ...


@dc.dataclass(frozen=True, slots=True)
class ReporterSpec:
    """A resolved reporter together with its init arguments.

    Attributes
    ----------
    reporter
        Reporter implementation.
    args
        Arguments passed to ``reporter.init``.
    name
        Identifier used in logs; the registry key for built-in reporters,
        the class name otherwise.

    """

    reporter: Reporter
    args: cabc.Mapping[str, typ.Any] = dc.field(default_factory=dict)
    name: str = ""

    def __post_init__(self) -> None:
        """Default the name to the reporter's class name."""
        if not self.name:
            object.__setattr__(self, "name", type(self.reporter).__name__)


type ReporterFactory = cabc.Callable[[], Reporter]

type ReporterConfig = (
    str
    | Reporter
    | ReporterSpec
    | tuple[str, cabc.Mapping[str, typ.Any]]
    | tuple[Reporter, cabc.Mapping[str, typ.Any]]
    | None
)


def _builtin_reporters() -> dict[str, ReporterFactory]:
    from cadence.reporting.reporters import BUILTIN_REPORTERS

    return dict(BUILTIN_REPORTERS)


def _from_identifier(
    identifier: str,
    args: cabc.Mapping[str, typ.Any],
    factories: cabc.Mapping[str, ReporterFactory],
) -> ReporterSpec:
    key = identifier.strip().lower()
    factory = factories.get(key)
    if factory is None:
        raise ReporterConfigError.unknown_identifier(identifier, factories)
    return ReporterSpec(reporter=factory(), args=dict(args), name=key)


def resolve_reporter(
    value: ReporterConfig,
    *,
    factories: cabc.Mapping[str, ReporterFactory] | None = None,
) -> ReporterSpec | None:
    """Resolve a reporter configuration value into a ``ReporterSpec``.

    Parameters
    ----------
    value
        ``None`` for no reporter, a registered identifier, a ``Reporter``
        instance, or either of those paired with an init-argument mapping.
        A bare identifier or instance gets empty init arguments.
    factories
        Identifier registry; defaults to the built-in reporters.

    Returns
    -------
    ReporterSpec | None
        The resolved reporter, or ``None`` when no reporter is configured.

    Raises
    ------
    ReporterConfigError
        If the identifier is unknown or the value has an unsupported shape.

    """
    if value is None or isinstance(value, ReporterSpec):
        return value

    registry = _builtin_reporters() if factories is None else factories

    match value:
        case str() as identifier:
            return _from_identifier(identifier, {}, registry)
        case (str() as identifier, cabc.Mapping() as args):
            return _from_identifier(identifier, args, registry)
        case (Reporter() as reporter, cabc.Mapping() as args):
            return ReporterSpec(reporter=reporter, args=dict(args))
        case Reporter() as reporter:
            return ReporterSpec(reporter=reporter)
        case _:
            raise ReporterConfigError.invalid_value(value)
