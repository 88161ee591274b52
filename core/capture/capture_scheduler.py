# core/capture/capture_scheduler.py
"""
Recurring capture timer

Each tick runs tick_fn and only then arms the next delay, so two ticks can
never overlap. stop() cancels the pending delay; a tick body that is already
running finishes but is not re-armed.
"""
import threading
from enum import Enum
from typing import Callable, Optional

from config import config
from utils.logger import setup_logger
from .dispatcher import AbstractDispatcher, ScheduledCall, ThreadingDispatcher

logger = setup_logger(__name__)


class SchedulerState(str, Enum):
    IDLE = "idle"
    TICKING = "ticking"
    STOPPED = "stopped"


class CaptureScheduler:
    def __init__(self, dispatcher: Optional[AbstractDispatcher] = None):
        self.dispatcher = dispatcher or ThreadingDispatcher()
        self.interval: Optional[float] = None
        self.tick_count = 0
        self.failed_ticks = 0
        self._tick_fn: Optional[Callable[[], None]] = None
        self._pending: Optional[ScheduledCall] = None
        self._state = SchedulerState.IDLE
        self._lock = threading.Lock()

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def has_pending_tick(self) -> bool:
        return self._pending is not None

    def start(self, tick_fn: Callable[[], None], interval: float = None, initial_delay: float = 0.0) -> None:
        """
        Start ticking: first tick after `initial_delay`, then every `interval` seconds

        Args:
            tick_fn: work for one tick
            interval: seconds between ticks, defaults to config.CAPTURE_INTERVAL_SECONDS
            initial_delay: delay before the first tick
        """
        interval = interval if interval is not None else config.CAPTURE_INTERVAL_SECONDS
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        with self._lock:
            if self._state is not SchedulerState.IDLE:
                raise RuntimeError(f"CaptureScheduler cannot start from state {self._state.value}")
            self.interval = interval
            self._tick_fn = tick_fn
            self._state = SchedulerState.TICKING
            self._pending = self.dispatcher.schedule(initial_delay, self._dispatch)

        logger.info(f"Capture scheduler started (interval={interval}s)")

    def _dispatch(self) -> None:
        with self._lock:
            if self._state is not SchedulerState.TICKING:
                return
            self._pending = None
            tick_fn = self._tick_fn

        self.tick_count += 1
        try:
            tick_fn()
        except Exception as e:
            self.failed_ticks += 1
            logger.error(f"Capture tick {self.tick_count} failed: {e}", exc_info=True)

        with self._lock:
            if self._state is SchedulerState.TICKING:
                self._pending = self.dispatcher.schedule(self.interval, self._dispatch)

    def stop(self) -> None:
        """Cancel the pending tick; idempotent"""
        with self._lock:
            if self._state is SchedulerState.STOPPED:
                return
            previous = self._state
            self._state = SchedulerState.STOPPED
            pending, self._pending = self._pending, None

        if pending is not None:
            pending.cancel()
        if previous is SchedulerState.TICKING:
            logger.info(f"Capture scheduler stopped after {self.tick_count} ticks")
