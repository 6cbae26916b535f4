"""Registry data models for the auto tester.

Defines the variant and mode enums, the test case descriptor and the
validation result types used when loading a registry file.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from ..errors import NoSuchVariant


class Variant(str, Enum):
    """Rendering surface a test result belongs to."""
    MAP = "Map"
    GLOBE = "Globe"

    @classmethod
    def parse(cls, value: Any) -> "Variant":
        """Convert a variant or a case-insensitive name to a Variant.

        Raises:
            NoSuchVariant: If the value names neither Map nor Globe.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for variant in cls:
                if variant.value.lower() == value.strip().lower():
                    return variant
        raise NoSuchVariant(value)


class RunMode(str, Enum):
    """Execution mode for a single run."""
    MANUAL = "manual"
    AUTOMATIC = "automatic"


@dataclass(frozen=True)
class TestCaseDescriptor:
    """Static description of a registered test case.

    The descriptor is immutable; per-run flags (selected, running) live in
    the run controller.
    """
    __test__ = False

    name: str
    case: Any
    capture_delay: int = 0
    description: str = ""

    def __str__(self) -> str:
        return f"{self.name} ({self.capture_delay}s)"


@dataclass
class ValidationError:
    """A single validation error."""
    path: str
    message: str
    severity: str = "error"  # "error" or "warning"


@dataclass
class ValidationResult:
    """Result of registry validation."""
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[ValidationError] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)

    def summary(self, separator: str = "; ") -> Optional[str]:
        """Join error messages into one line, or None when valid."""
        if self.valid:
            return None
        return separator.join(f"{e.path}: {e.message}" for e in self.errors)

    def __str__(self) -> str:
        if self.valid:
            msg = "Valid"
            if self.warnings:
                msg += f" ({self.warning_count} warnings)"
            return msg
        return f"Invalid: {self.error_count} errors, {self.warning_count} warnings"
