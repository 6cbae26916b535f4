"""Test case executed inside a remote target app over HTTP."""

import logging
import threading
from typing import Optional, Union

import requests

from ..registry.schema import RunMode, Variant
from ..transport.http_client import AutoTestHttpClient, RemoteResult
from ..transport.retry_policy import RetryPolicy, resolve_retry_policy
from .base import TestCase, TestResult

log = logging.getLogger(__name__)


class RemoteTestCase(TestCase):
    """Starts a test on the target app and reports what the app returned.

    Only the variants the app actually reports end up in the completion
    notification. Transport problems become failing results for every
    configured variant.
    """

    def __init__(
        self,
        name: str,
        base_url: str,
        remote_name: Optional[str] = None,
        timeout: float = 300.0,
        poll_interval: float = 2.0,
        retry: Union[str, dict, RetryPolicy, None] = None,
    ):
        """Initialize remote test case.

        Args:
            name: Test name in the registry.
            base_url: Base URL of the target app.
            remote_name: Name of the test on the target app (defaults to name).
            timeout: Maximum time to wait for the remote test in seconds.
            poll_interval: Interval between status polls in seconds.
            retry: Retry policy, preset name or policy fields for HTTP requests.
        """
        super().__init__(name)
        self.base_url = base_url
        self.remote_name = remote_name or name
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.retry_policy = resolve_retry_policy(retry)
        self._thread: Optional[threading.Thread] = None

    def make_client(self) -> AutoTestHttpClient:
        return AutoTestHttpClient(self.base_url, retry_policy=self.retry_policy)

    def start(self, mode: RunMode) -> None:
        self._thread = threading.Thread(
            target=self._run,
            args=(mode,),
            name=f"remote-{self.name}",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self, mode: RunMode) -> None:
        variants = sorted(v.value for v in self.options)

        try:
            with self.make_client() as client:
                session = client.post_run(self.remote_name, variants, mode.value)
                log.info("Remote session %s started for %s", session.session_id, self.name)
                remote = client.poll_until_complete(
                    session.session_id,
                    timeout=self.timeout,
                    poll_interval=self.poll_interval,
                )
            results = self._convert(remote)

        except TimeoutError as e:
            results = self._failed_results(f"Timeout: {e}")

        except requests.RequestException as e:
            results = self._failed_results(f"Connection failed: {e}")

        except (KeyError, ValueError) as e:
            results = self._failed_results(f"Malformed response: {e}")

        except Exception as e:
            log.exception("Remote test %s raised", self.name)
            results = self._failed_results(f"Error: {e}")

        self.complete(results)

    def _convert(self, remote: RemoteResult) -> dict[str, TestResult]:
        results: dict[str, TestResult] = {}
        for outcome in remote.outcomes:
            details = outcome.details
            if remote.error and not outcome.passed and not details:
                details = remote.error
            # Kinds are passed through as reported; the controller rejects unknown ones
            results[outcome.variant] = TestResult(
                test_name=self.name,
                variant=outcome.variant,
                passed=outcome.passed,
                duration_ms=outcome.duration_ms,
                details=details,
                baseline_path=outcome.baseline,
                actual_path=outcome.actual,
            )
        return results

    def _failed_results(self, reason: str) -> dict[str, TestResult]:
        log.warning("Remote test %s failed: %s", self.name, reason)
        return {
            variant.value: TestResult(
                test_name=self.name,
                variant=variant.value,
                passed=False,
                details=reason,
            )
            for variant in sorted(self.options, key=lambda v: v.value)
        }
