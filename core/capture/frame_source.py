# core/capture/frame_source.py
"""
FrameSource: one capability -> one mirrored display session

open() validates the capability with the provider, registers the revocation
listener and creates the virtual display feeding a bounded FrameQueue.
close() tears the session down in the order display -> projection -> queue,
each step guarded so a failure does not leave the others held.
"""
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from config import config
from utils.data_models import Capability, DisplayMetrics, RawFrame
from utils.logger import setup_logger
from .base_capturer import AbstractProjection, AbstractProjectionProvider, AbstractVirtualDisplay
from .frame_queue import FrameQueue

logger = setup_logger(__name__)


@dataclass
class Session:
    """Resources owned by one capture run"""
    capability: Capability
    projection: AbstractProjection
    display: Optional[AbstractVirtualDisplay]
    frame_queue: FrameQueue
    metrics: DisplayMetrics


class FrameSource:
    def __init__(
        self,
        provider: AbstractProjectionProvider,
        on_revoked: Optional[Callable[[], None]] = None,
        queue_depth: int = None,
        display_name: str = None
    ):
        """
        Args:
            provider: capability issuer and projection factory
            on_revoked: called once if the issuer revokes the capability mid-session
            queue_depth: frame buffers in flight, defaults to config.FRAME_QUEUE_DEPTH
            display_name: virtual display name, defaults to config.VIRTUAL_DISPLAY_NAME
        """
        self.provider = provider
        self.on_revoked = on_revoked
        self.queue_depth = queue_depth if queue_depth is not None else config.FRAME_QUEUE_DEPTH
        self.display_name = display_name or config.VIRTUAL_DISPLAY_NAME
        self._session: Optional[Session] = None
        self._lock = threading.Lock()
        self._revocation_delivered = False

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def is_open(self) -> bool:
        return self._session is not None

    def open(self, capability: Capability) -> Session:
        """
        Raises:
            CapabilityInvalid: the provider rejected the capability
            DisplayUnavailable: the mirrored display could not be created
            RuntimeError: a session is already open
        """
        with self._lock:
            if self._session is not None:
                raise RuntimeError("FrameSource already has an open session")

            metrics = self.provider.get_display_metrics()
            frame_queue = FrameQueue(depth=self.queue_depth)
            projection = self.provider.get_projection(capability)
            session = Session(
                capability=capability,
                projection=projection,
                display=None,
                frame_queue=frame_queue,
                metrics=metrics,
            )
            self._revocation_delivered = False
            # From here on the capability is in use; any failure must release it
            try:
                projection.register_callback(self._handle_revoked)
                session.display = projection.create_virtual_display(self.display_name, metrics, frame_queue)
            except Exception:
                self._release(session)
                raise
            self._session = session

        logger.info(
            f"Frame source opened: {metrics.width}x{metrics.height} "
            f"density={metrics.density}, queue_depth={self.queue_depth}"
        )
        return session

    def latest_frame(self) -> Optional[RawFrame]:
        """Newest queued frame or None; never waits. Caller must close() the frame."""
        session = self._session
        if session is None:
            return None
        return session.frame_queue.acquire_latest()

    def close(self) -> None:
        """Release the display, projection and buffers; idempotent"""
        with self._lock:
            session, self._session = self._session, None
        if session is None:
            return
        self._release(session)
        logger.info("Frame source closed")

    def _release(self, session: Session) -> None:
        try:
            session.projection.unregister_callback()
        except Exception as e:
            logger.error(f"Failed to unregister revocation callback: {e}")

        if session.display is not None:
            try:
                session.display.release()
            except Exception as e:
                logger.error(f"Failed to release virtual display: {e}")
            session.display = None

        try:
            session.projection.stop()
        except Exception as e:
            logger.error(f"Failed to stop projection: {e}")

        try:
            session.frame_queue.close()
        except Exception as e:
            logger.error(f"Failed to close frame queue: {e}")

    def _handle_revoked(self) -> None:
        with self._lock:
            if self._revocation_delivered or self._session is None:
                return
            self._revocation_delivered = True

        logger.info("Capture capability revoked by issuer")
        if self.on_revoked is not None:
            self.on_revoked()
        else:
            self.close()
