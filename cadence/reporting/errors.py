"""Errors specific to the reporting scheduler."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class ReportingError(Exception):
    """Base class for reporting module errors."""


class ReporterInitError(ReportingError):
    """Raised when a reporter's ``init`` fails while a scheduler starts.

    The scheduler does not start; the original exception is chained as
    ``__cause__``.

    Attributes
    ----------
    reporter
        Name of the reporter that failed to initialise.

    """

    def __init__(self, reporter: str) -> None:
        """Initialise with the failing reporter's name."""
        self.reporter = reporter
        super().__init__(f"Reporter {reporter!r} failed to initialise")


class ReporterConfigError(ReportingError):
    """Raised when a reporter configuration cannot be resolved."""

    @classmethod
    def unknown_identifier(
        cls, identifier: str, known: cabc.Iterable[str]
    ) -> ReporterConfigError:
        """Create an error for an unregistered reporter identifier."""
        options = ", ".join(f"'{name}'" for name in sorted(known))
        return cls(f"Unknown reporter '{identifier}'. Valid options are: {options}")

    @classmethod
    def invalid_value(cls, value: object) -> ReporterConfigError:
        """Create an error for a value that cannot be resolved to a reporter."""
        return cls(f"Cannot build a reporter from {value!r}")

    @classmethod
    def missing_argument(cls, reporter: str, argument: str) -> ReporterConfigError:
        """Create an error for a required init argument that was not supplied."""
        return cls(f"Reporter '{reporter}' requires the '{argument}' argument")


class UnknownInstanceError(ReportingError):
    """Raised when no scheduler is registered under an instance id."""

    def __init__(self, instance: str) -> None:
        """Initialise with the missing instance id."""
        self.instance = instance
        super().__init__(f"No scheduler is running for instance '{instance}'")


class DuplicateInstanceError(ReportingError):
    """Raised when a second scheduler is started for an instance id."""

    def __init__(self, instance: str) -> None:
        """Initialise with the duplicated instance id."""
        self.instance = instance
        super().__init__(f"A scheduler is already running for instance '{instance}'")


class SchedulerNotRunningError(ReportingError):
    """Raised when a request reaches a scheduler that is not running."""

    def __init__(self, instance: str) -> None:
        """Initialise with the scheduler's instance id."""
        self.instance = instance
        super().__init__(f"Scheduler for instance '{instance}' is not running")
