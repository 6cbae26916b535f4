"""HTTP client for driving tests inside a remote target app.

Implements the HTTP transport protocol:
- POST /autotest/run              - Start a test
- GET  /autotest/status/<id>      - Poll test status
- GET  /autotest/result/<id>      - Retrieve per-variant results
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import requests

from .retry_policy import RetryPolicy, default_retry_policy

log = logging.getLogger(__name__)


@dataclass
class RemoteSession:
    """Test session started on the target app."""
    session_id: str
    status: str = "submitted"


@dataclass
class RemoteStatus:
    """Remote test execution status."""
    status: str
    progress: float = 0.0

    @property
    def is_running(self) -> bool:
        return self.status == "running"

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def is_failed(self) -> bool:
        return self.status == "failed"

    @property
    def is_finished(self) -> bool:
        return self.is_completed or self.is_failed


@dataclass
class VariantOutcome:
    """Result the target app reported for one variant."""
    variant: str
    passed: bool
    duration_ms: int = 0
    details: str = ""
    baseline: Optional[str] = None
    actual: Optional[str] = None


@dataclass
class RemoteResult:
    """Complete remote test result."""
    status: str
    outcomes: list[VariantOutcome] = field(default_factory=list)
    error: Optional[str] = None


class AutoTestHttpClient:
    """HTTP client for a target app's embedded test server."""

    def __init__(
        self,
        base_url: str,
        retry_policy: Optional[RetryPolicy] = None,
        request_timeout: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize HTTP client.

        Args:
            base_url: Base URL of the target app (e.g., http://192.168.1.100:51321).
            retry_policy: Retry policy for failed requests.
            request_timeout: Default request timeout in seconds.
            sleep: Function used to wait between retries and polls.
        """
        self.base_url = base_url.rstrip("/")
        self.retry_policy = retry_policy or default_retry_policy()
        self.request_timeout = request_timeout
        self._sleep = sleep
        self._session = requests.Session()
        self._session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    def post_run(self, test_name: str, variants: list[str], mode: str) -> RemoteSession:
        """Ask the target app to start a test.

        Raises:
            requests.HTTPError: On HTTP errors.
            requests.ConnectionError: If the target app is unreachable.
        """
        response = self._request_with_retry(
            "POST",
            f"{self.base_url}/autotest/run",
            json={"test": test_name, "variants": variants, "mode": mode},
            timeout=10,
        )
        data = response.json()
        return RemoteSession(
            session_id=str(data["session_id"]),
            status=data.get("status", "running"),
        )

    def get_status(self, session_id: str) -> RemoteStatus:
        """GET /autotest/status/<id>"""
        response = self._request_with_retry(
            "GET",
            f"{self.base_url}/autotest/status/{session_id}",
            timeout=5,
        )
        data = response.json()
        return RemoteStatus(
            status=data["status"],
            progress=data.get("progress", 0.0),
        )

    def get_result(self, session_id: str) -> RemoteResult:
        """GET /autotest/result/<id>"""
        response = self._request_with_retry(
            "GET",
            f"{self.base_url}/autotest/result/{session_id}",
            timeout=self.request_timeout,
        )
        data = response.json()

        outcomes = [
            VariantOutcome(
                variant=r["variant"],
                passed=bool(r.get("passed", False)),
                duration_ms=int(r.get("duration_ms", 0)),
                details=r.get("details", ""),
                baseline=r.get("baseline"),
                actual=r.get("actual"),
            )
            for r in data.get("results", [])
        ]

        return RemoteResult(
            status=data["status"],
            outcomes=outcomes,
            error=data.get("error"),
        )

    def poll_until_complete(
        self,
        session_id: str,
        timeout: float = 300.0,
        poll_interval: float = 2.0,
        on_progress: Optional[Callable[[RemoteStatus], None]] = None,
    ) -> RemoteResult:
        """Poll status until the remote test finishes, then fetch the result.

        A remote test that ends as "failed" still returns its result; the
        failure is carried by the outcomes and the error field.

        Raises:
            TimeoutError: If the test doesn't finish within timeout.
        """
        start_time = time.time()

        while time.time() - start_time < timeout:
            status = self.get_status(session_id)

            if on_progress:
                on_progress(status)

            if status.is_finished:
                return self.get_result(session_id)

            self._sleep(poll_interval)

        raise TimeoutError(f"Remote test did not complete within {timeout}s")

    def health_check(self) -> bool:
        """Check if the target app's test server is reachable."""
        try:
            response = self._session.get(
                f"{self.base_url}/autotest/status/health",
                timeout=5,
            )
            return response.status_code < 500
        except (requests.ConnectionError, requests.Timeout):
            return False

    def _request_with_retry(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> requests.Response:
        """Execute HTTP request, retrying 5xx responses and transport errors.

        Raises:
            requests.HTTPError: On 4xx, or 5xx after all retries are exhausted.
            requests.ConnectionError, requests.Timeout: After all retries.
        """
        attempt = 0
        while True:
            try:
                response = self._session.request(method, url, **kwargs)
            except (requests.ConnectionError, requests.Timeout) as e:
                if not self.retry_policy.can_retry(attempt):
                    raise
                log.debug("%s %s failed (%s), retrying", method, url, e)
            else:
                if not self.retry_policy.should_retry_status(response.status_code):
                    response.raise_for_status()
                    return response
                if not self.retry_policy.can_retry(attempt):
                    response.raise_for_status()
                    return response
                log.debug("%s %s returned %s, retrying", method, url, response.status_code)

            self._sleep(self.retry_policy.get_delay(attempt))
            attempt += 1

    def close(self) -> None:
        """Close the HTTP session."""
        self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
