"""Per-test selected/running flags owned by the run controller."""

from dataclasses import dataclass


@dataclass(frozen=True)
class TestFlags:
    """Read-only view of one test's flags."""
    __test__ = False

    selected: bool = False
    running: bool = False


class SelectionState:
    """Tracks which tests are selected for a batch and which one is running.

    Only the run controller mutates this; everyone else gets TestFlags.
    """

    def __init__(self):
        self._selected: set[str] = set()
        self._running: set[str] = set()

    def flags(self, name: str) -> TestFlags:
        return TestFlags(selected=name in self._selected, running=name in self._running)

    def select(self, name: str) -> None:
        self._selected.add(name)

    def deselect(self, name: str) -> None:
        self._selected.discard(name)

    def set_running(self, name: str, running: bool) -> None:
        if running:
            self._running.add(name)
        else:
            self._running.discard(name)

    @property
    def selected(self) -> frozenset[str]:
        return frozenset(self._selected)

    @property
    def running(self) -> frozenset[str]:
        return frozenset(self._running)
