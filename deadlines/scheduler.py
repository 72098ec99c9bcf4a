from __future__ import annotations

from datetime import datetime
import logging
import threading
from typing import Any, Callable, Optional, Protocol

from .utils.time import seconds_until_next_midnight

logger = logging.getLogger(__name__)

MIDNIGHT_SLACK_SECONDS = 1.0


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]
Clock = Callable[[], datetime]


def thread_timer_factory(delay: float, fn: Callable[[], None]) -> TimerHandle:
    """Fallback for hosts without an event loop.

    ``fn`` runs on a timer thread, not the caller's. Hosts with an event loop
    pass a factory that schedules on that loop instead (see ``ui.menu_app``).
    """
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    timer.start()
    return timer


class MidnightScheduler:
    """Keeps exactly one timer pending for the next local midnight.

    After each firing the callback runs and the next midnight is computed
    again from the clock, so a changed wall clock is never carried over.
    """

    def __init__(
        self,
        callback: Callable[[], None],
        clock: Optional[Clock] = None,
        timer_factory: Optional[TimerFactory] = None,
    ) -> None:
        self.callback = callback
        self.clock = clock or datetime.now
        self.timer_factory = timer_factory or thread_timer_factory
        self._handle: Optional[TimerHandle] = None
        self._generation = 0
        self._stopped = True
        self.next_delay: Optional[float] = None

    @property
    def is_scheduled(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        self._stopped = False
        if self._handle is not None:
            return
        self._schedule()

    def stop(self) -> None:
        self._stopped = True
        handle, self._handle = self._handle, None
        self._generation += 1
        if handle is not None:
            handle.cancel()
            logger.debug("Midnight timer released")

    def _schedule(self) -> None:
        delay = seconds_until_next_midnight(self.clock()) + MIDNIGHT_SLACK_SECONDS
        self._generation += 1
        generation = self._generation
        self.next_delay = delay
        self._handle = self.timer_factory(delay, lambda: self._fire(generation))
        logger.debug("Next day-change tick in %.0f seconds", delay)

    def _fire(self, generation: int) -> None:
        if self._stopped or generation != self._generation:
            return
        self._handle = None
        try:
            self.callback()
        except Exception:
            logger.exception("Day-change callback failed")
        if not self._stopped and self._handle is None:
            self._schedule()
