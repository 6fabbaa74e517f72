"""
Background clock handling.

* MatchScheduler: one cancellable delayed task per match id (used to flag a player the moment their clock runs out).
* ClockSweeper: periodic sweep over all timed matches so both participants see their clocks count down live.
"""

import logging
import threading
from typing import Callable, Protocol
from uuid import UUID

logger = logging.getLogger(__name__)


class MatchScheduler(Protocol):
    def schedule(self, match_id: UUID, delay: float, callback: Callable[[], None]) -> None:
        """Run `callback` after `delay` seconds, replacing any task pending for the same match."""
        ...

    def cancel(self, match_id: UUID) -> None:
        """Drop the pending task of the match (no-op if there is none)."""
        ...


class ThreadingMatchScheduler:
    """MatchScheduler backed by threading.Timer"""

    def __init__(self) -> None:
        self._timers: dict[UUID, threading.Timer] = {}
        self._lock = threading.Lock()

    def schedule(self, match_id: UUID, delay: float, callback: Callable[[], None]) -> None:
        timer = threading.Timer(max(0.0, delay), self._run, args=(match_id, callback))
        timer.daemon = True
        with self._lock:
            previous = self._timers.pop(match_id, None)
            if previous is not None:
                previous.cancel()
            self._timers[match_id] = timer
        timer.start()
        logger.debug(f"[timer-set] match={match_id} delay={delay:.2f}s")

    def cancel(self, match_id: UUID) -> None:
        with self._lock:
            timer = self._timers.pop(match_id, None)
        if timer is not None:
            timer.cancel()
            logger.debug(f"[timer-cancel] match={match_id}")

    def pending(self) -> list[UUID]:
        with self._lock:
            return list(self._timers)

    def shutdown(self) -> None:
        with self._lock:
            timers = list(self._timers.values())
            self._timers.clear()
        for timer in timers:
            timer.cancel()

    def _run(self, match_id: UUID, callback: Callable[[], None]) -> None:
        with self._lock:
            if self._timers.get(match_id) is threading.current_thread():
                del self._timers[match_id]
        logger.debug(f"[timer-fire] match={match_id}")
        try:
            callback()
        except Exception:
            logger.exception(f"Scheduled task for match {match_id} failed")


class ClockSweeper:
    """Calls `sweep` every `interval` seconds on a daemon thread until stopped."""

    def __init__(self, sweep: Callable[[], None], interval: float) -> None:
        if interval <= 0:
            raise ValueError(f"Sweep interval must be positive, got {interval}")
        self.sweep = sweep
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="go-clock-sweeper", daemon=True)
        self._thread.start()
        logger.info(f"Clock sweeper started (interval={self.interval}s)")

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Clock sweeper stopped")

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            self.run_once()

    def run_once(self) -> None:
        """One sweep. A failing sweep is logged, the next one runs as planned."""
        try:
            self.sweep()
        except Exception:
            logger.exception("Error in clock sweep")
