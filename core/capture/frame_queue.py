# core/capture/frame_queue.py
"""
Bounded buffer between the mirrored display (producer) and the capture tick
(consumer).

At most `depth` frames are alive at any time, counting both queued frames and
frames a consumer has acquired but not yet closed. Neither side ever blocks:
- push() drops the oldest queued frame when the queue is full, or the
  incoming frame when every slot is held by an acquired frame
- acquire_latest() returns None when nothing is queued
"""
import threading
from collections import deque
from typing import Deque, Optional, Set

from utils.data_models import RawFrame
from utils.logger import setup_logger

logger = setup_logger(__name__)


class FrameQueue:
    def __init__(self, depth: int = 2):
        if depth < 1:
            raise ValueError(f"depth must be at least 1, got {depth}")
        self.depth = depth
        self._queued: Deque[RawFrame] = deque()
        self._acquired: Set[RawFrame] = set()
        self._lock = threading.Lock()
        self._closed = False
        self.dropped = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> int:
        """Frames currently holding a slot (queued + acquired)"""
        with self._lock:
            return len(self._queued) + len(self._acquired)

    def push(self, frame: RawFrame) -> bool:
        """
        Offer a frame from the producer.

        Returns:
            True if the frame was queued, False if it was dropped
        """
        evicted: Optional[RawFrame] = None
        with self._lock:
            if self._closed:
                rejected = True
            elif len(self._queued) + len(self._acquired) < self.depth:
                rejected = False
            elif self._queued:
                evicted = self._queued.popleft()
                self.dropped += 1
                rejected = False
            else:
                # Every slot is held by a frame the consumer has not released
                self.dropped += 1
                rejected = True
            if not rejected:
                self._queued.append(frame)

        if evicted is not None:
            evicted.close()
            logger.debug("Frame queue full, dropped oldest frame")
        if rejected:
            frame.close()
            if not self._closed:
                logger.warning(
                    f"All {self.depth} frame buffers are held by the consumer, dropping new frame"
                )
            return False
        return True

    def acquire_latest(self) -> Optional[RawFrame]:
        """
        Take the newest queued frame, discarding older ones.

        The caller owns the returned frame and must close() it.
        """
        stale = []
        with self._lock:
            if self._closed or not self._queued:
                return None
            latest = self._queued.pop()
            while self._queued:
                stale.append(self._queued.popleft())
            self._acquired.add(latest)
            latest.release_callback = self._release

        for frame in stale:
            frame.close()
        return latest

    def _release(self, frame: RawFrame) -> None:
        with self._lock:
            self._acquired.discard(frame)

    def close(self) -> None:
        """Release every queued frame and refuse further pushes; idempotent"""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            queued = list(self._queued)
            self._queued.clear()

        for frame in queued:
            frame.close()
        logger.debug(f"Frame queue closed ({len(queued)} queued frames released)")

    def __len__(self) -> int:
        with self._lock:
            return len(self._queued)
