# core/capture/__init__.py
from .base_capturer import (
    AbstractProjection,
    AbstractProjectionProvider,
    AbstractVirtualDisplay,
)
from .frame_queue import FrameQueue
from .frame_decoder import FrameDecoder
from .frame_source import FrameSource, Session
from .dispatcher import AbstractDispatcher, ScheduledCall, ThreadingDispatcher
from .capture_scheduler import CaptureScheduler, SchedulerState
from .presence import ForegroundPresence, LoggingPresence
from .lifecycle_manager import (
    CaptureLifecycleManager,
    CaptureStats,
    LifecycleState,
)
from .command_channel import CaptureCommandChannel
from .screenshot_capturer import ScreenshotProjectionProvider

__all__ = [
    "AbstractProjection",
    "AbstractProjectionProvider",
    "AbstractVirtualDisplay",
    "FrameQueue",
    "FrameDecoder",
    "FrameSource",
    "Session",
    "AbstractDispatcher",
    "ScheduledCall",
    "ThreadingDispatcher",
    "CaptureScheduler",
    "SchedulerState",
    "ForegroundPresence",
    "LoggingPresence",
    "CaptureLifecycleManager",
    "CaptureStats",
    "LifecycleState",
    "CaptureCommandChannel",
    "ScreenshotProjectionProvider",
]
