"""Result aggregation for test runs.

Collects per-variant results keyed by ``"<test name> - <variant>"`` and
hands them out in key order.
"""

from dataclasses import dataclass
from typing import Any, Optional

from ..registry.schema import Variant


def result_key(test_name: str, kind: Any) -> str:
    """Build the composite key for a test result.

    Raises:
        NoSuchVariant: If ``kind`` is not Map or Globe.
    """
    return f"{test_name} - {Variant.parse(kind).value}"


@dataclass(frozen=True)
class ResultEntry:
    """One published result: composite key and opaque value."""
    key: str
    value: Any


class ResultAggregator:
    """Maps (test name, variant) to the latest result reported for it.

    Reset once at the start of every run. Recording the same key twice keeps
    the last value.
    """

    def __init__(self):
        self._results: dict[str, Any] = {}

    def reset(self) -> None:
        """Drop all entries."""
        self._results.clear()

    def record(self, test_name: str, kind: Any, value: Any) -> str:
        """Insert or replace the result for a test variant.

        Returns:
            The composite key the value was stored under.
        """
        key = result_key(test_name, kind)
        self._results[key] = value
        return key

    def get(self, test_name: str, kind: Any) -> Optional[Any]:
        return self._results.get(result_key(test_name, kind))

    def snapshot(self) -> list[ResultEntry]:
        """Entries sorted ascending by key."""
        return [ResultEntry(key, self._results[key]) for key in sorted(self._results)]

    @property
    def keys(self) -> list[str]:
        return sorted(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, key: object) -> bool:
        return key in self._results
