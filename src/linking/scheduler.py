"""
Debounced scan scheduling.

Two states:

    IDLE ──notify(path)──> PENDING(timer, path)
    PENDING ──notify(path')──> PENDING(restarted timer, path')   (latest wins)
    PENDING ──timer expiry──> IDLE, then run_scan(path) once

A scan that is already running is never cancelled; a notification that
arrives meanwhile starts a fresh timer and may launch an overlapping scan,
which merge idempotence makes harmless.

Timers come from an injectable factory so tests can fire them by hand.
"""

import threading
from enum import Enum
from pathlib import PurePosixPath
from typing import Any, Callable, Optional, Protocol

from src.shared.observability import get_logger
from src.shared.observability import metrics

logger = get_logger(__name__)


class Timer(Protocol):
    def start(self) -> None: ...

    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]
ScanCallback = Callable[[str], Any]


def threading_timer(delay: float, callback: Callable[[], None]) -> Timer:
    """Default timer: a daemon threading.Timer."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    return timer


class SchedulerState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


class DebouncedScanScheduler:
    """Coalesces bursts of change notifications into one scoped scan."""

    def __init__(
        self,
        run_scan: ScanCallback,
        debounce_seconds: float,
        extension: str = "md",
        timer_factory: TimerFactory = threading_timer,
    ):
        self.run_scan = run_scan
        self.debounce_seconds = debounce_seconds
        self.extension = extension.lstrip(".").lower()
        self.timer_factory = timer_factory

        self._lock = threading.Lock()
        self._timer: Optional[Timer] = None
        self._pending_scope: Optional[str] = None
        # Bumped on every (re)start so a superseded timer that fires late is ignored
        self._generation = 0

    @property
    def state(self) -> SchedulerState:
        with self._lock:
            if self._timer is not None:
                return SchedulerState.PENDING
            return SchedulerState.IDLE

    @property
    def pending_scope(self) -> Optional[str]:
        with self._lock:
            return self._pending_scope

    def qualifies(self, path: str) -> bool:
        return PurePosixPath(path).suffix.lstrip(".").lower() == self.extension

    def notify(self, path: str) -> bool:
        """
        Record a document change.

        Returns:
            False when the path does not have the document extension (ignored)
        """
        if not self.qualifies(path):
            return False

        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            generation = self._generation
            self._pending_scope = path
            self._timer = self.timer_factory(
                self.debounce_seconds, lambda: self._expire(generation)
            )
            self._timer.start()

        metrics.scheduler_triggers_total.inc()
        logger.debug("Scan scheduled", path=path, delay=self.debounce_seconds)
        return True

    def fire(self) -> bool:
        """Run the pending scan now, as if the timer had expired."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            generation = self._generation
        return self._expire(generation)

    def cancel(self) -> None:
        """Drop any pending scan."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending_scope = None
            self._generation += 1

    def update_debounce(self, debounce_seconds: float) -> None:
        """Applies to timers started after the call."""
        with self._lock:
            self.debounce_seconds = debounce_seconds

    def update_extension(self, extension: str) -> None:
        with self._lock:
            self.extension = extension.lstrip(".").lower()

    def _expire(self, generation: int) -> bool:
        with self._lock:
            if generation != self._generation or self._timer is None:
                return False
            scope = self._pending_scope
            self._timer = None
            self._pending_scope = None

        logger.debug("Quiescence window elapsed, scanning", path=scope)
        try:
            self.run_scan(scope)
        except Exception as e:
            # Timer thread: log instead of propagating
            logger.error("Scheduled scan failed", path=scope, error=str(e), exc_info=True)
        return True
