"""Integration faults raised by the test run orchestrator.

These are programmer/integration errors, not test outcomes. They propagate
synchronously to the caller of the violated operation and are never retried.
Test failures travel inside the result values instead.
"""

from typing import Any


class AutoTesterError(Exception):
    """Base class for all auto-tester faults."""


class RunAlreadyInProgress(AutoTesterError, RuntimeError):
    """A run was started while another one is still pending."""

    def __init__(self, test_name: str, state: str):
        self.test_name = test_name
        self.state = state
        super().__init__(
            f"Cannot start a new run: '{test_name}' is still {state}."
        )


class IndexOutOfRange(AutoTesterError, IndexError):
    """Registry lookup outside ``0 <= index < count``."""

    def __init__(self, index: int, count: int):
        self.index = index
        self.count = count
        super().__init__(
            f"Test index {index} out of range (registry has {count} tests)."
        )


class NoSuchVariant(AutoTesterError, ValueError):
    """A variant kind outside {Map, Globe} was reported or requested."""

    def __init__(self, kind: Any):
        self.kind = kind
        super().__init__(
            f"Unknown variant kind {kind!r}. Must be one of: Globe, Map"
        )
