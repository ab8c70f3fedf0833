"""HTTP result provider adapter.

Implements ResultProviderPort by querying an external result service
that records the outcome of earlier test runs. The explorer resolves
results from worker threads, so this adapter uses a synchronous
httpx.Client, which is safe to share between threads.
"""

import logging
import urllib.parse
from datetime import datetime
from typing import Any

import httpx

from arbor.core.models import TestItem, TestItemKind, TestResult, TestState
from arbor.core.ports import ResultProviderPort

logger = logging.getLogger(__name__)


def _parse_outcome(value: Any) -> TestState:
    """Map the service's outcome string onto TestState.

    Unrecognized outcomes are reported as INCONCLUSIVE.
    """
    if isinstance(value, str):
        try:
            return TestState[value.strip().upper()]
        except KeyError:
            pass
    logger.warning(f"Unrecognized outcome from result service: {value!r}")
    return TestState.INCONCLUSIVE


def _parse_timestamp(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Invalid recorded_at timestamp from result service: {value!r}")
        return None


class HTTPResultProvider(ResultProviderPort):
    """Looks up stored test results from a result service over HTTP.

    Expected API:
        GET /results/{full_name}
        200 -> {"outcome": "failed", "duration_ms": 12.5, "message": "...",
                "stack_trace": "...", "recorded_at": "2024-01-01T12:00:00Z"}
        404 -> no stored result
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = 10.0,
        api_key: str = "",
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize HTTP result provider.

        Args:
            api_url: Base URL of the result service.
            timeout: Request timeout in seconds.
            api_key: Optional bearer token.
            transport: Optional httpx transport (used by tests).
        """
        self.api_url = api_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self.client = httpx.Client(
            base_url=self.api_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    def __enter__(self) -> "HTTPResultProvider":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the httpx client and clean up resources."""
        self.client.close()

    def get_test_result(self, item: TestItem) -> TestResult | None:
        """Return the latest stored result for a test method.

        Raises:
            ValueError: If item is not a test method, or the service
                returns a body that is not a JSON object.
            httpx.HTTPStatusError: For responses other than 200 and 404.
            httpx.RequestError: If the service is unreachable.
        """
        if item.kind != TestItemKind.METHOD:
            raise ValueError(f"Results are only stored for methods, got {item.kind.value}")

        path = f"/results/{urllib.parse.quote(item.full_name, safe='')}"
        try:
            response = self.client.get(path)
        except httpx.RequestError as e:
            logger.error(f"Failed to reach result service for {item.full_name}: {e}")
            raise

        if response.status_code == 404:
            return None
        response.raise_for_status()

        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(
                f"Result service returned {type(data).__name__} for "
                f"{item.full_name}, expected a JSON object"
            )
        return self._parse_result(data)

    @staticmethod
    def _parse_result(data: dict[str, Any]) -> TestResult:
        """Convert a result service payload into a TestResult."""
        return TestResult(
            outcome=_parse_outcome(data.get("outcome")),
            duration_ms=float(data.get("duration_ms") or 0.0),
            message=data.get("message") or "",
            stack_trace=data.get("stack_trace") or "",
            recorded_at=_parse_timestamp(data.get("recorded_at")),
        )
