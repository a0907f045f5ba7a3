"""Deferred-callback scheduling used by the draft debounce and print settle delay."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable


class TimerHandle(ABC):
    """Handle to one pending callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running. No-op if it already ran."""


class Scheduler(ABC):
    """Runs a callback once after a delay, with cancellation."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule *callback* to run after *delay* seconds."""


class _ThreadTimerHandle(TimerHandle):
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler(Scheduler):
    """Scheduler backed by daemon ``threading.Timer`` instances.

    Callbacks run on the timer thread.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return _ThreadTimerHandle(timer)
