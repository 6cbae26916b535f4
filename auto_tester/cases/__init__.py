"""Cases module - test case contract and built-in case kinds."""

from .base import (
    BackgroundTestCase,
    CompletionCallback,
    CompletionReport,
    TestCase,
    TestResult,
)
from .command import CommandTestCase
from .remote import RemoteTestCase

# Case kinds available to registry files
CASE_KINDS: dict[str, type[TestCase]] = {
    "command": CommandTestCase,
    "remote": RemoteTestCase,
}

__all__ = [
    "BackgroundTestCase",
    "CompletionCallback",
    "CompletionReport",
    "TestCase",
    "TestResult",
    "CommandTestCase",
    "RemoteTestCase",
    "CASE_KINDS",
]
