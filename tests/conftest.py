"""Shared pytest fixtures: a simulated clock and an in-memory screen mirror."""
from __future__ import annotations

import datetime
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from core.capture.base_capturer import AbstractProjection, AbstractProjectionProvider, AbstractVirtualDisplay
from core.capture.dispatcher import AbstractDispatcher, ScheduledCall
from core.capture.frame_queue import FrameQueue
from core.capture.presence import ForegroundPresence
from core.errors import CapabilityInvalid
from core.storage.image_store import ImageStore
from utils.data_models import Capability, DisplayMetrics, Plane, RawFrame

EPOCH = datetime.datetime(2026, 3, 14, 9, 0, 0)


def make_frame(
    width: int = 60,
    height: int = 40,
    row_stride: Optional[int] = None,
    pixel_stride: int = 4,
    fill: int = 0x7F,
    padding_fill: int = 0xFF,
) -> RawFrame:
    """Frame whose visible pixels are `fill` and whose stride padding is `padding_fill`."""
    row_stride = row_stride if row_stride is not None else width * pixel_stride
    visible = bytes([fill]) * (width * pixel_stride)
    padding = bytes([padding_fill]) * (row_stride - width * pixel_stride)
    buffer = (visible + padding) * height
    return RawFrame(
        width=width,
        height=height,
        planes=[Plane(buffer=buffer, pixel_stride=pixel_stride, row_stride=row_stride)],
    )


class _ManualCall(ScheduledCall):
    def __init__(self, due: float, seq: int, fn: Callable[[], None]):
        self.due = due
        self.seq = seq
        self.fn = fn
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualDispatcher(AbstractDispatcher):
    """Dispatcher driven by advance(); callbacks run on the test thread."""

    def __init__(self):
        self.now = 0.0
        self._seq = 0
        self._calls: List[_ManualCall] = []

    def schedule(self, delay: float, fn: Callable[[], None]) -> ScheduledCall:
        self._seq += 1
        call = _ManualCall(self.now + max(0.0, delay), self._seq, fn)
        self._calls.append(call)
        return call

    @property
    def pending(self) -> int:
        return sum(1 for c in self._calls if not c.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [c for c in self._calls if not c.cancelled and c.due <= target]
            if not due:
                break
            call = min(due, key=lambda c: (c.due, c.seq))
            self._calls.remove(call)
            self.now = call.due
            call.fn()
        self._calls = [c for c in self._calls if not c.cancelled]
        self.now = target


class FakeVirtualDisplay(AbstractVirtualDisplay):
    """Pushes a fresh frame every `frame_period` simulated seconds."""

    def __init__(self, frame_queue: FrameQueue, metrics: DisplayMetrics, dispatcher: ManualDispatcher,
                 frame_period: float, frame_factory: Callable[[], RawFrame]):
        self.frame_queue = frame_queue
        self.metrics = metrics
        self.dispatcher = dispatcher
        self.frame_period = frame_period
        self.frame_factory = frame_factory
        self.released = False
        self.frames_produced = 0
        self._pending: Optional[ScheduledCall] = None
        self.emit()

    def emit(self) -> None:
        if self.released:
            return
        self.frame_queue.push(self.frame_factory())
        self.frames_produced += 1
        self._pending = self.dispatcher.schedule(self.frame_period, self.emit)

    def release(self) -> None:
        self.released = True
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None


class FakeProjection(AbstractProjection):
    def __init__(self, provider: "FakeProvider", capability: Capability):
        self.provider = provider
        self.capability = capability
        self.callback: Optional[Callable[[], None]] = None
        self.displays: List[FakeVirtualDisplay] = []
        self.stopped = False

    def register_callback(self, on_stop: Callable[[], None]) -> None:
        if self.provider.register_error is not None:
            raise self.provider.register_error
        self.callback = on_stop

    def unregister_callback(self) -> None:
        self.callback = None

    def create_virtual_display(self, name, metrics, frame_queue):
        if self.provider.display_error is not None:
            raise self.provider.display_error
        display = FakeVirtualDisplay(
            frame_queue, metrics, self.provider.dispatcher,
            self.provider.frame_period, lambda: self.provider.frame_factory(),
        )
        self.displays.append(display)
        return display

    def stop(self) -> None:
        self.stopped = True
        for display in self.displays:
            display.release()

    def revoke(self) -> None:
        callback, self.callback = self.callback, None
        self.stop()
        if callback is not None:
            callback()


class FakeProvider(AbstractProjectionProvider):
    def __init__(self, dispatcher: ManualDispatcher, frame_period: float = 1.0):
        self.dispatcher = dispatcher
        self.frame_period = frame_period
        self.frame_factory: Callable[[], RawFrame] = make_frame
        self.display_error: Optional[Exception] = None
        self.register_error: Optional[Exception] = None
        self.metrics = DisplayMetrics(width=60, height=40, density=160)
        self.projections: List[FakeProjection] = []
        self._valid: set = set()
        self._issued = 0

    def issue(self) -> Capability:
        self._issued += 1
        capability = Capability(token=f"token-{self._issued}", payload={"resultCode": -1})
        self._valid.add(capability.token)
        return capability

    def get_display_metrics(self) -> DisplayMetrics:
        return self.metrics

    def get_projection(self, capability: Capability) -> FakeProjection:
        if capability.token not in self._valid:
            raise CapabilityInvalid(f"unknown capability {capability.token}")
        self._valid.discard(capability.token)
        projection = FakeProjection(self, capability)
        self.projections.append(projection)
        return projection

    @property
    def last_projection(self) -> FakeProjection:
        return self.projections[-1]


class RecordingPresence(ForegroundPresence):
    def __init__(self):
        self.events: List[str] = []
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    def acquire(self, title: str, text: str) -> None:
        self._active = True
        self.events.append("acquire")

    def release(self) -> None:
        if self._active:
            self._active = False
            self.events.append("release")


@pytest.fixture
def dispatcher() -> ManualDispatcher:
    return ManualDispatcher()


@pytest.fixture
def provider(dispatcher: ManualDispatcher) -> FakeProvider:
    return FakeProvider(dispatcher)


@pytest.fixture
def presence() -> RecordingPresence:
    return RecordingPresence()


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    return tmp_path / "data" / "screenshots"


@pytest.fixture
def store(storage_dir: Path, dispatcher: ManualDispatcher) -> ImageStore:
    """Store whose wall clock follows the simulated time."""
    return ImageStore(
        storage_dir=str(storage_dir),
        clock=lambda: EPOCH + datetime.timedelta(seconds=dispatcher.now),
    )
