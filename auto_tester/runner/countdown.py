"""Countdown timer driving the "time remaining" status of automatic runs."""

import logging
import threading
from typing import Callable, Optional, Protocol

log = logging.getLogger(__name__)

TickCallback = Callable[[str, int], None]


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback once after a delay."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...


class ThreadingScheduler:
    """Scheduler backed by ``threading.Timer`` daemon threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class CountdownTimer:
    """Repeating one-second countdown that stops itself at zero.

    Every tick decrements the remaining count and calls
    ``on_tick(label, remaining)``. Only one countdown is active at a time:
    starting again replaces the previous one.
    """

    def __init__(self, scheduler: Optional[Scheduler] = None, interval: float = 1.0):
        """Initialize countdown timer.

        Args:
            scheduler: Scheduler for ticks. Default: threading timers.
            interval: Seconds between ticks.
        """
        self.scheduler = scheduler or ThreadingScheduler()
        self.interval = interval
        self._lock = threading.Lock()
        self._pending: Optional[Cancellable] = None
        self._generation = 0
        self._remaining = 0
        self._label = ""
        self._on_tick: Optional[TickCallback] = None

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def label(self) -> str:
        return self._label

    @property
    def active(self) -> bool:
        return self._pending is not None

    def start(self, initial_seconds: int, label: str, on_tick: TickCallback) -> None:
        """Begin counting down from ``initial_seconds``.

        A countdown starting at zero or below produces no ticks.
        """
        with self._lock:
            self._cancel_pending()
            self._generation += 1
            self._remaining = max(0, int(initial_seconds))
            self._label = label
            self._on_tick = on_tick
            if self._remaining > 0:
                self._schedule(self._generation)

    def stop(self) -> None:
        """Cancel any pending tick. Safe to call when not running."""
        with self._lock:
            self._cancel_pending()
            self._generation += 1

    def _schedule(self, generation: int) -> None:
        self._pending = self.scheduler.call_later(
            self.interval, lambda: self._tick(generation)
        )

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _tick(self, generation: int) -> None:
        with self._lock:
            # Stale tick from a countdown that was stopped or restarted
            if generation != self._generation or self._pending is None:
                return
            self._pending = None
            if self._remaining <= 0:
                return
            self._remaining -= 1
            remaining = self._remaining
            label = self._label
            on_tick = self._on_tick
            if remaining > 0:
                self._schedule(generation)

        if on_tick is not None:
            try:
                on_tick(label, remaining)
            except Exception:
                log.exception("Countdown tick handler failed for %s", label)
