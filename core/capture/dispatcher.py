# core/capture/dispatcher.py
"""
"Run fn after delay" primitive used by the capture scheduler.

Production code uses ThreadingDispatcher (one threading.Timer per call);
tests substitute a dispatcher driven by a simulated clock.
"""
import threading
from abc import ABC, abstractmethod
from typing import Callable


class ScheduledCall(ABC):
    @abstractmethod
    def cancel(self) -> None:
        """Prevent the call from running if it has not started; idempotent"""
        pass


class AbstractDispatcher(ABC):
    @abstractmethod
    def schedule(self, delay: float, fn: Callable[[], None]) -> ScheduledCall:
        pass


class _TimerCall(ScheduledCall):
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingDispatcher(AbstractDispatcher):
    def __init__(self, name: str = "CaptureTimer"):
        self.name = name

    def schedule(self, delay: float, fn: Callable[[], None]) -> ScheduledCall:
        timer = threading.Timer(max(0.0, delay), fn)
        timer.daemon = True
        timer.name = self.name
        timer.start()
        return _TimerCall(timer)
