"""Reporting module - result reports and status output."""

from .cache import reset_results_dir
from .console import ConsoleStatusDisplay
from .json_reporter import JsonReporter

__all__ = [
    "ConsoleStatusDisplay",
    "JsonReporter",
    "reset_results_dir",
]
