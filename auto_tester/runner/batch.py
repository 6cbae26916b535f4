"""Batch runner - runs several tests back to back in automatic mode."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from ..registry.schema import RunMode
from .controller import RunController
from .result_collector import ResultEntry

log = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Combined outcome of a batch of runs."""
    entries: list[ResultEntry] = field(default_factory=list)
    completed: list[str] = field(default_factory=list)
    cancelled: bool = False
    stalled: Optional[str] = None
    duration_ms: int = 0

    @property
    def finished(self) -> bool:
        """True when every requested test ran to completion."""
        return not self.cancelled and self.stalled is None


class BatchRunner:
    """Runs tests one after another, each in automatic mode.

    Each run publishes its own sorted snapshot; the batch merges them into
    one list, again sorted by key.
    """

    def __init__(self, controller: RunController, wait_timeout: Optional[float] = None):
        """Initialize batch runner.

        Args:
            controller: Controller used for every run.
            wait_timeout: Longest wait for one test in seconds. A test that
                exceeds it stops the batch; it is not interrupted.
        """
        self.controller = controller
        self.wait_timeout = wait_timeout
        self._cancelled = False

    def run(
        self,
        indices: Optional[Iterable[int]] = None,
        enabled_variants: Optional[Iterable[Any]] = None,
    ) -> BatchResult:
        """Run the given tests, or the selected ones, or all of them.

        Raises:
            RunAlreadyInProgress: If the controller is not idle.
            IndexOutOfRange: If an index is not in the registry.
        """
        if indices is None:
            indices = self.controller.selected_indices() or range(len(self.controller.registry))
        indices = list(indices)
        # Fail fast on bad indices before anything runs
        for index in indices:
            self.controller.registry.get(index)

        self._cancelled = False
        variants = list(enabled_variants) if enabled_variants is not None else None
        merged: dict[str, Any] = {}
        result = BatchResult()
        start_time = time.time()

        for index in indices:
            if self._cancelled:
                result.cancelled = True
                break

            session = self.controller.start_run(index, RunMode.AUTOMATIC, variants)
            if not self.controller.wait_until_idle(self.wait_timeout):
                log.warning("%s did not complete within %ss; stopping batch",
                            session.test_name, self.wait_timeout)
                result.stalled = session.test_name
                break

            if session.cancelled:
                result.cancelled = True
                break

            for entry in session.results:
                merged[entry.key] = entry.value
            result.completed.append(session.test_name)

        result.entries = [ResultEntry(key, merged[key]) for key in sorted(merged)]
        result.duration_ms = int((time.time() - start_time) * 1000)
        return result

    def cancel(self) -> None:
        """Stop after the current test and suppress its results."""
        self._cancelled = True
        self.controller.cancel_run()
