"""Ordered, immutable catalog of test case descriptors."""

from typing import Iterable, Iterator

from ..errors import IndexOutOfRange
from .schema import TestCaseDescriptor


class TestRegistry:
    """Fixed ordered sequence of test case descriptors.

    Lookups are bounds-checked: an index outside ``0 <= i < count`` raises
    IndexOutOfRange. Negative indices are never wrapped.
    """
    __test__ = False

    def __init__(self, descriptors: Iterable[TestCaseDescriptor] = ()):
        """Initialize the registry.

        Args:
            descriptors: Descriptors in display order. Names must be unique.

        Raises:
            ValueError: If two descriptors share a name.
        """
        self._descriptors: tuple[TestCaseDescriptor, ...] = tuple(descriptors)
        self._by_name: dict[str, int] = {}

        for i, descriptor in enumerate(self._descriptors):
            if descriptor.name in self._by_name:
                raise ValueError(f"Duplicate test name: '{descriptor.name}'")
            self._by_name[descriptor.name] = i

    @property
    def count(self) -> int:
        """Number of registered tests."""
        return len(self._descriptors)

    @property
    def names(self) -> list[str]:
        """Test names in registry order."""
        return [d.name for d in self._descriptors]

    def get(self, index: int) -> TestCaseDescriptor:
        """Get the descriptor at ``index``.

        Raises:
            IndexOutOfRange: If index is outside ``0 <= index < count``.
        """
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError(f"Test index must be an int, got {type(index).__name__}")
        if index < 0 or index >= len(self._descriptors):
            raise IndexOutOfRange(index, len(self._descriptors))
        return self._descriptors[index]

    def index_of(self, name: str) -> int:
        """Get the index of the test called ``name``.

        Raises:
            KeyError: If no test has that name.
        """
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"No test named '{name}'") from None

    def __len__(self) -> int:
        return len(self._descriptors)

    def __iter__(self) -> Iterator[TestCaseDescriptor]:
        return iter(self._descriptors)

    def __getitem__(self, index: int) -> TestCaseDescriptor:
        return self.get(index)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name
