# core/capture/lifecycle_manager.py
"""
Capture Lifecycle Manager

Owns one capture session end to end:
1. Declare foreground presence
2. Open the mirrored display (FrameSource)
3. Tick every interval: latest frame -> decode -> store
4. Tear everything down on stop(), revocation or process teardown

Host lifecycle hooks map to start(), stop(), on_revoked() and on_teardown().
State transitions are serialized by a lock, so the hooks may arrive from
any thread.
"""
import datetime
import threading
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Callable, Dict, Optional

from config import config
from core.errors import EncodeFailure, InvalidStateTransition, MalformedFrame, StorageUnavailable
from core.storage.image_store import ImageStore
from utils.data_models import Capability, StoredArtifact
from utils.logger import setup_logger
from .base_capturer import AbstractProjectionProvider
from .capture_scheduler import CaptureScheduler
from .dispatcher import AbstractDispatcher
from .frame_decoder import FrameDecoder
from .frame_source import FrameSource
from .presence import ForegroundPresence, LoggingPresence

logger = setup_logger(__name__)


class LifecycleState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING_EXTERNALLY = "stopping_externally"


@dataclass
class CaptureStats:
    """Counters for the current (or last) session"""
    ticks: int = 0
    frames_stored: int = 0
    frames_missing: int = 0
    malformed_frames: int = 0
    store_errors: int = 0
    start_time: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )


class CaptureLifecycleManager:
    def __init__(
        self,
        provider: AbstractProjectionProvider,
        store: Optional[ImageStore] = None,
        decoder: Optional[FrameDecoder] = None,
        presence: Optional[ForegroundPresence] = None,
        dispatcher: Optional[AbstractDispatcher] = None,
        interval: float = None,
        on_artifact_stored: Optional[Callable[[StoredArtifact], None]] = None
    ):
        """
        Args:
            provider: capability issuer used to open the mirrored display
            store: artifact store (created from config if not provided)
            decoder: frame decoder (created from config if not provided)
            presence: foreground presence declaration (logging only if not provided)
            dispatcher: timer primitive for the scheduler (threading timers if not provided)
            interval: seconds between captures, defaults to config.CAPTURE_INTERVAL_SECONDS
            on_artifact_stored: callback for every stored screenshot
        """
        self.provider = provider
        self.store = store or ImageStore()
        self.decoder = decoder or FrameDecoder()
        self.presence = presence or LoggingPresence()
        self.dispatcher = dispatcher
        self.interval = interval if interval is not None else config.CAPTURE_INTERVAL_SECONDS
        self.on_artifact_stored = on_artifact_stored

        self.stats = CaptureStats()
        self._state = LifecycleState.STOPPED
        self._lock = threading.RLock()
        self._frame_source: Optional[FrameSource] = None
        self._scheduler: Optional[CaptureScheduler] = None

        logger.info(f"CaptureLifecycleManager initialized (interval={self.interval}s)")

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is LifecycleState.RUNNING

    @property
    def frame_source(self) -> Optional[FrameSource]:
        return self._frame_source

    @property
    def scheduler(self) -> Optional[CaptureScheduler]:
        return self._scheduler

    def start(self, capability: Capability) -> None:
        """
        Begin a capture session.

        Raises:
            InvalidStateTransition: a session is already starting or running
            CapabilityInvalid, DisplayUnavailable: the session could not be
                established; everything acquired so far has been released
        """
        with self._lock:
            if self._state is not LifecycleState.STOPPED:
                raise InvalidStateTransition(f"Cannot start capture while {self._state.value}")
            self._state = LifecycleState.STARTING
            self.stats = CaptureStats()

            try:
                self.presence.acquire(config.PRESENCE_TITLE, config.PRESENCE_TEXT)
                frame_source = FrameSource(self.provider)
                frame_source.on_revoked = partial(self._on_source_revoked, frame_source)
                self._frame_source = frame_source
                frame_source.open(capability)

                self._scheduler = CaptureScheduler(dispatcher=self.dispatcher)
                self._scheduler.start(self._capture_tick, interval=self.interval)
            except Exception as e:
                logger.error(f"Failed to start capture: {e}")
                self._release_all()
                self._state = LifecycleState.STOPPED
                raise

            self._state = LifecycleState.RUNNING
        logger.info("Capture session running")

    def stop(self) -> None:
        """End the session; a no-op when already stopped"""
        with self._lock:
            if self._state is LifecycleState.STOPPED:
                logger.debug("stop() called while already stopped")
                return
            self._release_all()
            self._state = LifecycleState.STOPPED
        self._log_stats("Capture stopped")

    def on_revoked(self) -> None:
        """The issuer withdrew the capability: stop and never tick again"""
        with self._lock:
            if self._state is LifecycleState.STOPPED:
                return
            logger.info("Capture capability revoked externally, stopping")
            self._state = LifecycleState.STOPPING_EXTERNALLY
            self._release_all()
            self._state = LifecycleState.STOPPED
        self._log_stats("Capture stopped by revocation")

    def _on_source_revoked(self, frame_source: FrameSource) -> None:
        with self._lock:
            if frame_source is not self._frame_source:
                logger.debug("Ignoring revocation of an earlier session")
                return
            self.on_revoked()

    def on_teardown(self) -> None:
        """Process is going away: best-effort release from any state"""
        with self._lock:
            was_stopped = self._state is LifecycleState.STOPPED
            self._release_all()
            self._state = LifecycleState.STOPPED
        if not was_stopped:
            self._log_stats("Capture torn down")

    def _release_all(self) -> None:
        """Scheduler -> display and capability -> presence; each step guarded"""
        scheduler, self._scheduler = self._scheduler, None
        if scheduler is not None:
            try:
                scheduler.stop()
            except Exception as e:
                logger.error(f"Failed to stop capture scheduler: {e}")

        frame_source, self._frame_source = self._frame_source, None
        if frame_source is not None:
            try:
                frame_source.close()
            except Exception as e:
                logger.error(f"Failed to close frame source: {e}")

        try:
            self.presence.release()
        except Exception as e:
            logger.error(f"Failed to release foreground presence: {e}")

    def _capture_tick(self) -> None:
        """One tick: latest frame -> decode -> save. Failures only skip this tick."""
        frame_source = self._frame_source
        if frame_source is None:
            return
        self.stats.ticks += 1

        frame = frame_source.latest_frame()
        if frame is None:
            self.stats.frames_missing += 1
            logger.debug("No frame available yet, skipping tick")
            return

        try:
            image = self.decoder.decode(frame)
        except MalformedFrame as e:
            self.stats.malformed_frames += 1
            logger.error(f"Skipping malformed frame: {e}")
            return
        finally:
            frame.close()

        try:
            artifact = self.store.save(image)
        except (EncodeFailure, StorageUnavailable) as e:
            self.stats.store_errors += 1
            logger.error(f"Failed to save screenshot: {e}")
            return

        self.stats.frames_stored += 1
        if self.on_artifact_stored:
            self.on_artifact_stored(artifact)

    def get_stats(self) -> Dict[str, Any]:
        runtime = (
            datetime.datetime.now(datetime.timezone.utc) - self.stats.start_time
        ).total_seconds()
        return {
            "state": self._state.value,
            "ticks": self.stats.ticks,
            "frames_stored": self.stats.frames_stored,
            "frames_missing": self.stats.frames_missing,
            "malformed_frames": self.stats.malformed_frames,
            "store_errors": self.stats.store_errors,
            "runtime_seconds": runtime,
        }

    def _log_stats(self, prefix: str) -> None:
        logger.info(
            f"{prefix}. Stats: "
            f"ticks={self.stats.ticks}, "
            f"frames_stored={self.stats.frames_stored}, "
            f"frames_missing={self.stats.frames_missing}, "
            f"malformed_frames={self.stats.malformed_frames}, "
            f"store_errors={self.stats.store_errors}"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.on_teardown()
        return False
