"""Runner module - test run orchestration."""

from .batch import BatchResult, BatchRunner
from .controller import (
    MANUAL_COUNTDOWN_SENTINEL,
    ResultsReporter,
    RunController,
    RunSession,
    RunState,
    StatusDisplay,
)
from .countdown import CountdownTimer, Scheduler, ThreadingScheduler
from .result_collector import ResultAggregator, ResultEntry, result_key
from .selection import SelectionState, TestFlags

__all__ = [
    "BatchResult",
    "BatchRunner",
    "MANUAL_COUNTDOWN_SENTINEL",
    "ResultsReporter",
    "RunController",
    "RunSession",
    "RunState",
    "StatusDisplay",
    "CountdownTimer",
    "Scheduler",
    "ThreadingScheduler",
    "ResultAggregator",
    "ResultEntry",
    "result_key",
    "SelectionState",
    "TestFlags",
]
