"""Reporter that POSTs each batch as JSON to an HTTP endpoint.

Recognised init arguments:

- ``url`` (required): endpoint receiving ``{"samples": [...]}``.
- ``timeout_s``: request timeout in seconds (default 10).
- ``headers``: extra request headers.

Transport errors and non-2xx responses become failed outcomes so the
scheduler re-offers the window on its next tick.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

import httpx
import msgspec

from cadence.metrics.models import MetricSample  # noqa: TC001
from cadence.reporting.errors import ReporterConfigError
from cadence.reporting.reporter import ReportDelivered, ReportFailed

if typ.TYPE_CHECKING:
    from cadence.reporting.reporter import ReportOutcome

_DEFAULT_TIMEOUT_S = 10.0


class _Batch(msgspec.Struct, frozen=True):
    samples: list[MetricSample]


@dc.dataclass(frozen=True, slots=True)
class HttpReporterState:
    """Endpoint settings and failure bookkeeping."""

    url: str
    timeout_s: float = _DEFAULT_TIMEOUT_S
    headers: cabc.Mapping[str, str] = dc.field(default_factory=dict)
    consecutive_failures: int = 0


class HttpReporter:
    """Deliver batches with httpx.

    Parameters
    ----------
    http_client
        Optional client for testing. When omitted a client is created per
        batch and closed afterwards.

    """

    def __init__(self, *, http_client: httpx.AsyncClient | None = None) -> None:
        """Store the optional shared client."""
        self._client = http_client

    def init(self, args: cabc.Mapping[str, typ.Any]) -> HttpReporterState:
        """Validate ``url`` and build the initial state.

        Raises
        ------
        ReporterConfigError
            If ``url`` is missing.
        ValueError
            If ``timeout_s`` is not a positive number.

        """
        url = str(args.get("url", "")).strip()
        if not url:
            raise ReporterConfigError.missing_argument("http", "url")
        timeout_s = float(args.get("timeout_s", _DEFAULT_TIMEOUT_S))
        if timeout_s <= 0:
            msg = f"timeout_s must be positive, got: {timeout_s}"
            raise ValueError(msg)
        headers = {str(k): str(v) for k, v in dict(args.get("headers", {})).items()}
        return HttpReporterState(url=url, timeout_s=timeout_s, headers=headers)

    async def _post(self, state: HttpReporterState, body: bytes) -> httpx.Response:
        headers = {"Content-Type": "application/json", **state.headers}
        if self._client is not None:
            return await self._client.post(
                state.url, content=body, headers=headers, timeout=state.timeout_s
            )
        async with httpx.AsyncClient(timeout=state.timeout_s) as client:
            return await client.post(state.url, content=body, headers=headers)

    async def handle_metrics(
        self,
        samples: cabc.Sequence[MetricSample],
        state: object,
    ) -> ReportOutcome:
        """POST the batch and map the response to an outcome."""
        current = typ.cast("HttpReporterState", state)
        body = msgspec.json.encode(_Batch(samples=list(samples)))
        try:
            response = await self._post(current, body)
        except httpx.TimeoutException:
            return self._failed(current, "request timed out")
        except httpx.RequestError as exc:
            return self._failed(current, f"network error: {exc}")

        if not response.is_success:
            return self._failed(current, f"HTTP {response.status_code}")
        return ReportDelivered(state=dc.replace(current, consecutive_failures=0))

    @staticmethod
    def _failed(state: HttpReporterState, reason: str) -> ReportFailed:
        failures = state.consecutive_failures + 1
        return ReportFailed(
            reason=reason, state=dc.replace(state, consecutive_failures=failures)
        )
