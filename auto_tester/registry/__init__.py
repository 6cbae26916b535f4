"""Registry module - test catalog and YAML registry files."""

from .schema import (
    RunMode,
    TestCaseDescriptor,
    ValidationError,
    ValidationResult,
    Variant,
)
from .registry import TestRegistry
from .parser import load_registry_yaml, parse_registry, parse_registry_data
from .validator import validate_registry_data

__all__ = [
    "RunMode",
    "TestCaseDescriptor",
    "ValidationError",
    "ValidationResult",
    "Variant",
    "TestRegistry",
    "load_registry_yaml",
    "parse_registry",
    "parse_registry_data",
    "validate_registry_data",
]
