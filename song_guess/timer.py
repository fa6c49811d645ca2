"""Injectable tick scheduling and the per-round answer countdown."""

import logging
import threading
from collections.abc import Callable
from typing import Protocol

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TickScheduler(Protocol):
    """Runs `callback` once after `delay` seconds unless the handle is cancelled."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingTickScheduler:
    """Wall-clock scheduler backed by daemon `threading.Timer` threads."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class Countdown:
    """Counts whole seconds down to zero, then fires `on_expire` exactly once.

    Every start/cancel bumps a generation number; a tick that was already
    scheduled when the countdown was cancelled sees a stale generation and
    does nothing, even if its timer thread is already running.
    """

    def __init__(self, scheduler: TickScheduler) -> None:
        self._scheduler = scheduler
        self._lock = threading.Lock()
        self._generation = 0
        self._handle: TimerHandle | None = None
        self._remaining = 0
        self._running = False

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def running(self) -> bool:
        return self._running

    def start(
        self,
        seconds: int,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], None],
    ) -> None:
        with self._lock:
            self._cancel_locked()
            self._generation += 1
            self._remaining = max(0, seconds)
            self._running = True
            generation = self._generation

        if seconds <= 0:
            self._tick(generation, on_tick, on_expire, elapsed=False)
            return
        self._schedule_next(generation, on_tick, on_expire)

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()

    def _cancel_locked(self) -> None:
        self._generation += 1
        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule_next(
        self,
        generation: int,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], None],
    ) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._handle = self._scheduler.schedule(
                TICK_SECONDS,
                lambda: self._tick(generation, on_tick, on_expire),
            )

    def _tick(
        self,
        generation: int,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], None],
        elapsed: bool = True,
    ) -> None:
        with self._lock:
            if generation != self._generation:
                return
            if elapsed:
                self._remaining = max(0, self._remaining - 1)
            self._handle = None
            remaining = self._remaining
            expired = remaining <= 0
            if expired:
                self._running = False
                # Retire this generation so no later tick can fire a second expiry.
                self._generation += 1

        on_tick(remaining)
        if expired:
            on_expire()
            return
        self._schedule_next(generation, on_tick, on_expire)
