"""Test case contract consumed by the run controller.

A test case is an opaque unit of work. The controller configures it with the
variants to run and a completion callback, calls ``start(mode)`` and then
waits for the callback. How the test renders or measures anything is up to
the concrete case.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from ..registry.schema import RunMode, Variant

log = logging.getLogger(__name__)


@dataclass
class TestResult:
    """Outcome of one test variant.

    The controller never looks inside this; it is handed to the results
    reporter as-is.
    """
    __test__ = False

    test_name: str
    variant: str
    passed: bool
    duration_ms: int = 0
    details: str = ""
    baseline_path: Optional[str] = None
    actual_path: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "test": self.test_name,
            "variant": self.variant,
            "status": "pass" if self.passed else "fail",
            "duration_ms": self.duration_ms,
            "details": self.details,
            "baseline": self.baseline_path,
            "actual": self.actual_path,
        }


@dataclass
class CompletionReport:
    """Completion notification sent by a test case.

    ``results`` maps a variant kind ("Map", "Globe") to the result the test
    produced for it. Variants the test did not run are simply absent.
    ``final=False`` marks an intermediate notification from a test that
    reports one variant at a time.
    """
    test_name: str
    results: Mapping[Any, Any] = field(default_factory=dict)
    final: bool = True


CompletionCallback = Callable[[CompletionReport], None]


class TestCase(ABC):
    """Base class for runnable test cases."""
    __test__ = False

    def __init__(self, name: str):
        self.name = name
        self.options: frozenset[Variant] = frozenset()
        self.on_complete: Optional[CompletionCallback] = None

    def configure(
        self,
        options: frozenset[Variant],
        on_complete: CompletionCallback,
    ) -> None:
        """Set the variants to run and the completion callback.

        Always called before ``start``.
        """
        self.options = frozenset(options)
        self.on_complete = on_complete

    @abstractmethod
    def start(self, mode: RunMode) -> None:
        """Begin the test. Must return without waiting for the test to finish."""

    def complete(self, results: Mapping[Any, Any], final: bool = True) -> None:
        """Deliver results to whoever configured this case."""
        callback = self.on_complete
        if callback is None:
            raise RuntimeError(f"Test case '{self.name}' completed before configure()")
        callback(CompletionReport(test_name=self.name, results=dict(results), final=final))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class BackgroundTestCase(TestCase):
    """Test case whose work runs on a daemon thread.

    Subclasses implement ``run_variant``; ``start`` returns immediately and a
    single completion report with every configured variant is delivered
    when the worker finishes.
    """

    def __init__(self, name: str):
        super().__init__(name)
        self._thread: Optional[threading.Thread] = None

    def start(self, mode: RunMode) -> None:
        options = sorted(self.options, key=lambda v: v.value)
        self._thread = threading.Thread(
            target=self._run,
            args=(options, mode),
            name=f"test-{self.name}",
            daemon=True,
        )
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the worker thread, mostly useful in tests."""
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self, options: list[Variant], mode: RunMode) -> None:
        results: dict[str, TestResult] = {}
        for variant in options:
            try:
                results[variant.value] = self.run_variant(variant, mode)
            except Exception as e:
                log.exception("%s [%s] raised", self.name, variant.value)
                results[variant.value] = TestResult(
                    test_name=self.name,
                    variant=variant.value,
                    passed=False,
                    details=f"Error: {e}",
                )
        self.complete(results)

    @abstractmethod
    def run_variant(self, variant: Variant, mode: RunMode) -> TestResult:
        """Run one variant and return its result; an exception fails the variant."""
