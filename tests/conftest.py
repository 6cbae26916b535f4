"""Shared fakes for auto_tester tests."""

from typing import Any, Callable, Optional

import pytest

from auto_tester.cases.base import TestCase, TestResult
from auto_tester.registry import RunMode, TestCaseDescriptor, TestRegistry
from auto_tester.runner import CountdownTimer, RunController


class FakeHandle:
    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Scheduler that only fires when the test says so."""

    def __init__(self):
        self.handles: list[FakeHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled]

    def advance(self) -> bool:
        """Fire the oldest pending callback. Returns False if none."""
        for handle in list(self.handles):
            self.handles.remove(handle)
            if not handle.cancelled:
                handle.callback()
                return True
        return False

    def run_all(self, limit: int = 1000) -> int:
        fired = 0
        while fired < limit and self.advance():
            fired += 1
        return fired


class ScriptedCase(TestCase):
    """Test case that completes only when the test calls report()."""

    def __init__(self, name: str, on_start: Optional[dict[str, Any]] = None):
        super().__init__(name)
        self.on_start = on_start
        self.started: list[RunMode] = []

    def start(self, mode: RunMode) -> None:
        self.started.append(mode)
        if self.on_start is not None:
            self.complete(self.on_start)

    def report(self, *variants: str, final: bool = True, passed: bool = True) -> None:
        self.complete(
            {v: TestResult(test_name=self.name, variant=v, passed=passed) for v in variants},
            final=final,
        )


class RecordingReporter:
    def __init__(self):
        self.published: list[list] = []

    def publish(self, entries) -> None:
        self.published.append(list(entries))


class RecordingStatus:
    def __init__(self):
        self.ticks: list[tuple[str, int]] = []
        self.finished_count = 0

    def on_tick(self, label: str, remaining: int) -> None:
        self.ticks.append((label, remaining))

    def finished(self) -> None:
        self.finished_count += 1


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def geography():
    return ScriptedCase("Geography")


@pytest.fixture
def vectors():
    return ScriptedCase("Vectors")


@pytest.fixture
def registry(geography, vectors):
    return TestRegistry([
        TestCaseDescriptor(name="Geography", case=geography, capture_delay=5),
        TestCaseDescriptor(name="Vectors", case=vectors, capture_delay=3),
    ])


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def status():
    return RecordingStatus()


@pytest.fixture
def controller(registry, reporter, status, scheduler):
    return RunController(
        registry,
        reporter=reporter,
        status=status,
        timer=CountdownTimer(scheduler=scheduler),
    )
