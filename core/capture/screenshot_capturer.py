# core/capture/screenshot_capturer.py
"""
Desktop screen mirroring built on PIL's ImageGrab

The provider plays the part of the OS capture subsystem: it issues
capabilities (standing in for the user consent dialog), validates them,
revokes them, and mirrors the screen into a FrameQueue from a background
producer thread.
"""
import datetime
import threading
import uuid
from typing import Callable, Dict, List, Optional

from PIL import Image, ImageGrab

from config import config
from core.errors import CapabilityInvalid, DisplayUnavailable
from utils.data_models import Capability, DisplayMetrics, Plane, RawFrame
from utils.logger import setup_logger
from .base_capturer import AbstractProjection, AbstractProjectionProvider, AbstractVirtualDisplay
from .frame_queue import FrameQueue

logger = setup_logger(__name__)

GrabFn = Callable[[], Image.Image]

_ISSUED = "issued"
_IN_USE = "in_use"
_EXPIRED = "expired"


def image_to_raw_frame(image: Image.Image) -> RawFrame:
    """Pack a PIL image as a tightly strided RGBA frame"""
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    width, height = image.size
    return RawFrame(
        width=width,
        height=height,
        planes=[Plane(buffer=image.tobytes(), pixel_stride=4, row_stride=width * 4)],
    )


class ScreenshotVirtualDisplay(AbstractVirtualDisplay):
    """
    Producer thread that grabs the screen every `grab_interval` seconds
    """

    def __init__(
        self,
        name: str,
        metrics: DisplayMetrics,
        frame_queue: FrameQueue,
        grab_fn: GrabFn,
        grab_interval: float
    ):
        self.name = name
        self.metrics = metrics
        self.frame_queue = frame_queue
        self.grab_fn = grab_fn
        self.grab_interval = grab_interval
        self.frames_produced = 0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        # Grab once up front so an unusable screen fails the start attempt
        try:
            first = self._grab_frame()
        except Exception as e:
            raise DisplayUnavailable(f"Cannot mirror screen into '{self.name}': {e}") from e
        self.frame_queue.push(first)
        self.frames_produced += 1

        self._thread = threading.Thread(target=self._run, daemon=True, name=self.name)
        self._thread.start()
        logger.info(
            f"Virtual display '{self.name}' started "
            f"({self.metrics.width}x{self.metrics.height}, density={self.metrics.density})"
        )

    def _grab_frame(self) -> RawFrame:
        image = self.grab_fn()
        if image.size != (self.metrics.width, self.metrics.height):
            image = image.resize((self.metrics.width, self.metrics.height), Image.Resampling.LANCZOS)
        return image_to_raw_frame(image)

    def _run(self) -> None:
        while not self._stop_event.wait(self.grab_interval):
            try:
                frame = self._grab_frame()
            except Exception as e:
                logger.warning(f"Screen grab failed on '{self.name}': {e}")
                continue
            self.frame_queue.push(frame)
            self.frames_produced += 1

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def release(self) -> None:
        if self._stop_event.is_set():
            return
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=max(5.0, self.grab_interval * 2))
        logger.info(f"Virtual display '{self.name}' released ({self.frames_produced} frames produced)")


class ScreenshotProjection(AbstractProjection):
    def __init__(self, provider: "ScreenshotProjectionProvider", capability: Capability):
        self._provider = provider
        self.capability = capability
        self._callback: Optional[Callable[[], None]] = None
        self._displays: List[ScreenshotVirtualDisplay] = []
        self._lock = threading.Lock()
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    def register_callback(self, on_stop: Callable[[], None]) -> None:
        with self._lock:
            self._callback = on_stop

    def unregister_callback(self) -> None:
        with self._lock:
            self._callback = None

    def create_virtual_display(
        self,
        name: str,
        metrics: DisplayMetrics,
        frame_queue: FrameQueue
    ) -> ScreenshotVirtualDisplay:
        if self._stopped:
            raise DisplayUnavailable("Projection already stopped")
        display = ScreenshotVirtualDisplay(
            name=name,
            metrics=metrics,
            frame_queue=frame_queue,
            grab_fn=self._provider.grab_fn,
            grab_interval=self._provider.grab_interval,
        )
        display.start()
        with self._lock:
            stopped = self._stopped
            if not stopped:
                self._displays.append(display)
        if stopped:
            display.release()
            raise DisplayUnavailable("Projection stopped while the display was starting")
        return display

    def _release_displays(self) -> None:
        with self._lock:
            displays, self._displays = self._displays, []
        for display in displays:
            try:
                display.release()
            except Exception as e:
                logger.error(f"Failed to release display '{display.name}': {e}")

    def stop(self) -> None:
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
        self._release_displays()
        self._provider._expire(self.capability)

    def revoke(self) -> None:
        """Issuer-side stop: tear down, then notify the listener once"""
        with self._lock:
            if self._stopped:
                return
            callback, self._callback = self._callback, None
        self.stop()
        logger.info("Projection stopped by issuer")
        if callback is not None:
            callback()


class ScreenshotProjectionProvider(AbstractProjectionProvider):
    """
    Capability issuer for the local desktop
    """

    def __init__(
        self,
        grab_fn: Optional[GrabFn] = None,
        grab_interval: Optional[float] = None,
        density: Optional[int] = None
    ):
        self.grab_fn: GrabFn = grab_fn or ImageGrab.grab
        self.grab_interval = grab_interval if grab_interval is not None else config.GRAB_INTERVAL_SECONDS
        self.density = density if density is not None else config.DISPLAY_DENSITY
        self._grants: Dict[str, str] = {}
        self._projections: Dict[str, ScreenshotProjection] = {}
        self._lock = threading.Lock()
        logger.info(f"ScreenshotProjectionProvider initialized (grab_interval={self.grab_interval}s)")

    def request_capability(self, payload: Optional[dict] = None) -> Capability:
        """Grant a new capability; the desktop has no consent dialog"""
        capability = Capability(
            token=uuid.uuid4().hex,
            payload=dict(payload or {}),
            issued_at=datetime.datetime.now(datetime.timezone.utc),
        )
        with self._lock:
            self._grants[capability.token] = _ISSUED
        logger.info(f"Issued capture capability {capability.token[:8]}")
        return capability

    def get_display_metrics(self) -> DisplayMetrics:
        try:
            width, height = self.grab_fn().size
        except Exception as e:
            raise DisplayUnavailable(f"Cannot read screen size: {e}") from e
        return DisplayMetrics(width=width, height=height, density=self.density)

    def get_projection(self, capability: Capability) -> ScreenshotProjection:
        with self._lock:
            state = self._grants.get(capability.token)
            if state is None:
                raise CapabilityInvalid("Capability was not issued by this provider")
            if state != _ISSUED:
                raise CapabilityInvalid(f"Capability is no longer usable ({state})")
            self._grants[capability.token] = _IN_USE
            projection = ScreenshotProjection(self, capability)
            self._projections[capability.token] = projection
        return projection

    def revoke(self, capability: Capability) -> None:
        """Withdraw a capability, stopping its projection if one is live"""
        with self._lock:
            if self._grants.get(capability.token) is None:
                return
            projection = self._projections.get(capability.token)
            self._grants[capability.token] = _EXPIRED
        if projection is not None:
            projection.revoke()
        logger.info(f"Revoked capture capability {capability.token[:8]}")

    def _expire(self, capability: Capability) -> None:
        with self._lock:
            self._grants[capability.token] = _EXPIRED
            self._projections.pop(capability.token, None)
