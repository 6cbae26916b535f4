"""Run controller - drives one test case through its lifecycle.

Coordinates a single run:
1. Configure the test (variants, completion callback)
2. Mark it running and start the countdown (automatic mode)
3. Start the test and wait for its completion callback
4. Record reported variants into the result aggregator
5. Finalize: stop the countdown, clear flags, publish the sorted results

Completion callbacks and countdown ticks can arrive on other threads; every
access to the run session goes through one lock.
"""

import functools
import itertools
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Protocol

from ..config import RunConfiguration
from ..errors import RunAlreadyInProgress
from ..registry.registry import TestRegistry
from ..registry.schema import RunMode, Variant
from .countdown import CountdownTimer
from .result_collector import ResultAggregator, ResultEntry
from .selection import SelectionState, TestFlags

log = logging.getLogger(__name__)

# Manual runs end on user dismissal, so the countdown is effectively disabled
MANUAL_COUNTDOWN_SENTINEL = 100000000


class RunState(str, Enum):
    """Lifecycle states of the run controller."""
    IDLE = "idle"
    CONFIGURING = "configuring"
    RUNNING = "running"
    AWAITING_COMPLETION = "awaiting_completion"
    FINALIZING = "finalizing"


class ResultsReporter(Protocol):
    """Receives the sorted results of every completed, non-cancelled run."""

    def publish(self, entries: list[ResultEntry]) -> None: ...


class StatusDisplay(Protocol):
    """Receives countdown ticks and a finished signal."""

    def on_tick(self, label: str, remaining: int) -> None: ...

    def finished(self) -> None: ...


@dataclass
class RunSession:
    """State of one invocation of a test run."""
    session_id: int
    index: int
    test_name: str
    mode: RunMode
    options: frozenset[Variant]
    remaining_seconds: int = 0
    cancelled: bool = False
    reported: set[Variant] = field(default_factory=set)
    results: list[ResultEntry] = field(default_factory=list)
    started_at: float = field(default_factory=time.time)
    finished_at: Optional[float] = None

    @property
    def finished(self) -> bool:
        return self.finished_at is not None

    @property
    def duration_ms(self) -> int:
        end = self.finished_at if self.finished_at is not None else time.time()
        return int((end - self.started_at) * 1000)

    @property
    def missing(self) -> frozenset[Variant]:
        """Configured variants that have not reported."""
        return self.options - self.reported


class RunController:
    """Orchestrates test runs against a registry.

    Only one run exists at a time; starting another one before the current
    run finishes raises RunAlreadyInProgress.
    """

    def __init__(
        self,
        registry: TestRegistry,
        config: Optional[RunConfiguration] = None,
        reporter: Optional[ResultsReporter] = None,
        status: Optional[StatusDisplay] = None,
        timer: Optional[CountdownTimer] = None,
    ):
        """Initialize the run controller.

        Args:
            registry: Tests that can be run.
            config: Run toggles. Default: all variants, view test on.
            reporter: Consumer of published results (None = don't publish).
            status: Consumer of countdown ticks (None = no display).
            timer: Countdown timer. Default: one-second threading timer.
        """
        self.registry = registry
        self.config = config or RunConfiguration()
        self.reporter = reporter
        self.status = status
        self.timer = timer or CountdownTimer()

        self._lock = threading.RLock()
        self._idle = threading.Condition(self._lock)
        self._state = RunState.IDLE
        self._session: Optional[RunSession] = None
        self._last_session: Optional[RunSession] = None
        self._notifying = False
        self._session_ids = itertools.count(1)
        self._aggregator = ResultAggregator()
        self._selection = SelectionState()

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def session(self) -> Optional[RunSession]:
        """The run in progress, or None when idle."""
        return self._session

    @property
    def last_session(self) -> Optional[RunSession]:
        """The most recently finished run."""
        return self._last_session

    @property
    def results(self) -> list[ResultEntry]:
        """Current aggregator contents, sorted by key."""
        with self._lock:
            return self._aggregator.snapshot()

    def start_run(
        self,
        index: int,
        mode: RunMode = RunMode.MANUAL,
        enabled_variants: Optional[Iterable[Any]] = None,
    ) -> RunSession:
        """Configure and start the test at ``index``.

        Args:
            index: Registry index of the test.
            mode: Manual (user-driven) or automatic (timed) run.
            enabled_variants: Variants to run. Default: from the configuration.

        Returns:
            The new RunSession.

        Raises:
            RunAlreadyInProgress: If a run is still pending.
            IndexOutOfRange: If index is not in the registry.
            NoSuchVariant: If enabled_variants names an unknown variant.
        """
        with self._lock:
            if self._state is not RunState.IDLE:
                raise RunAlreadyInProgress(self._session.test_name, self._state.value)

            descriptor = self.registry.get(index)
            mode = RunMode(mode)
            if enabled_variants is None:
                options = self.config.enabled_variants()
            else:
                options = frozenset(Variant.parse(v) for v in enabled_variants)

            # Step 1: Configure
            self._set_state(RunState.CONFIGURING)
            self._aggregator.reset()
            session = RunSession(
                session_id=next(self._session_ids),
                index=index,
                test_name=descriptor.name,
                mode=mode,
                options=options,
            )
            self._session = session
            case = descriptor.case
            case.configure(options, functools.partial(self._on_complete, session.session_id))

            # Step 2: Run
            self._selection.set_running(descriptor.name, True)
            self._set_state(RunState.RUNNING)

            if mode is RunMode.MANUAL:
                session.remaining_seconds = MANUAL_COUNTDOWN_SENTINEL
            else:
                session.remaining_seconds = descriptor.capture_delay
                if self.config.view_test:
                    self.timer.start(
                        descriptor.capture_delay,
                        descriptor.name,
                        functools.partial(self._on_tick, session.session_id),
                    )

            log.info("Starting %s (%s, variants: %s)", descriptor.name, mode.value,
                     ", ".join(sorted(v.value for v in options)) or "none")

            try:
                case.start(mode)
            except Exception:
                log.error("Test %s failed to start", descriptor.name)
                self._abort(session)
                raise

            # Step 3: Wait, unless the test already completed inside start()
            if self._session is session and self._state is RunState.RUNNING:
                self._set_state(RunState.AWAITING_COMPLETION)

            return session

    def cancel_run(self) -> bool:
        """Suppress publication of the current run's results.

        The running test is not interrupted. No-op when idle.

        Returns:
            True if a run was marked cancelled.
        """
        with self._lock:
            if self._state is RunState.IDLE or self._session is None:
                return False
            self._session.cancelled = True
            log.info("Run of %s cancelled", self._session.test_name)
            return True

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until the current run has finished and been published.

        Returns:
            False if the timeout expired first.
        """
        with self._idle:
            return self._idle.wait_for(
                lambda: self._state is RunState.IDLE and not self._notifying,
                timeout=timeout,
            )

    def flags(self, index: int) -> TestFlags:
        """Selected/running flags for the test at ``index``."""
        name = self.registry.get(index).name
        with self._lock:
            return self._selection.flags(name)

    def select(self, index: int) -> None:
        name = self.registry.get(index).name
        with self._lock:
            self._selection.select(name)

    def deselect(self, index: int) -> None:
        name = self.registry.get(index).name
        with self._lock:
            self._selection.deselect(name)

    def toggle_selection(self, index: int) -> bool:
        """Flip the selected flag, returning the new value."""
        name = self.registry.get(index).name
        with self._lock:
            if self._selection.flags(name).selected:
                self._selection.deselect(name)
                return False
            self._selection.select(name)
            return True

    def selected_indices(self) -> list[int]:
        """Indices of selected tests in registry order."""
        with self._lock:
            selected = self._selection.selected
        return [i for i, d in enumerate(self.registry) if d.name in selected]

    def _on_complete(self, session_id: int, report: Any) -> None:
        """Completion callback bound to one run session."""
        with self._lock:
            session = self._session
            if (
                session is None
                or session.session_id != session_id
                or self._state not in (RunState.RUNNING, RunState.AWAITING_COMPLETION)
            ):
                log.warning("Ignoring completion from %s: run %d is no longer active",
                            getattr(report, "test_name", "?"), session_id)
                return

            # Reject the whole report before recording anything
            reported = {Variant.parse(kind): value for kind, value in report.results.items()}

            for variant, value in reported.items():
                if value is None:
                    continue
                if variant not in session.options:
                    log.debug("%s reported %s which was not requested", session.test_name,
                              variant.value)
                    continue
                self._aggregator.record(session.test_name, variant, value)
                session.reported.add(variant)

            if not report.final and not session.options <= session.reported:
                return

            results, cancelled = self._finalize(session)

        self._notify(session, results, cancelled)

    def _on_tick(self, session_id: int, label: str, remaining: int) -> None:
        with self._lock:
            session = self._session
            if session is None or session.session_id != session_id:
                return
            session.remaining_seconds = remaining
            # Held until displayed so a finished run's title is never overwritten
            if self.status is not None:
                self.status.on_tick(label, remaining)

    def _finalize(self, session: RunSession) -> tuple[list[ResultEntry], bool]:
        # Called with the lock held
        self._set_state(RunState.FINALIZING)
        self.timer.stop()
        self._selection.set_running(session.test_name, False)
        session.results = self._aggregator.snapshot()
        session.finished_at = time.time()

        if session.missing:
            log.info("%s finished without reporting: %s", session.test_name,
                     ", ".join(sorted(v.value for v in session.missing)))

        self._last_session = session
        self._session = None
        self._notifying = True
        self._set_state(RunState.IDLE)
        return session.results, session.cancelled

    def _notify(self, session: RunSession, results: list[ResultEntry], cancelled: bool) -> None:
        try:
            if self.status is not None:
                self.status.finished()
            if cancelled:
                log.info("Not publishing %d results of cancelled run %s",
                         len(results), session.test_name)
            elif self.reporter is not None:
                self.reporter.publish(results)
        finally:
            with self._idle:
                self._notifying = False
                self._idle.notify_all()

    def _abort(self, session: RunSession) -> None:
        # Called with the lock held when a test fails to start
        self.timer.stop()
        self._selection.set_running(session.test_name, False)
        session.finished_at = time.time()
        self._last_session = session
        self._session = None
        self._set_state(RunState.IDLE)
        self._idle.notify_all()

    def _set_state(self, state: RunState) -> None:
        log.debug("Run controller: %s -> %s", self._state.value, state.value)
        self._state = state
