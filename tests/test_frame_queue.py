"""Tests for the bounded frame queue."""
from __future__ import annotations

import pytest

from conftest import make_frame
from core.capture.frame_queue import FrameQueue


class TestFrameQueue:
    """Tests for FrameQueue."""

    def test_rejects_zero_depth(self):
        with pytest.raises(ValueError):
            FrameQueue(depth=0)

    def test_acquire_on_empty_returns_none(self):
        assert FrameQueue().acquire_latest() is None

    def test_acquire_returns_newest_and_releases_older(self):
        queue = FrameQueue(depth=2)
        first, second = make_frame(), make_frame()
        queue.push(first)
        queue.push(second)

        latest = queue.acquire_latest()
        assert latest is second
        assert first.closed
        assert len(queue) == 0
        assert queue.in_flight == 1

    def test_overflow_drops_oldest(self):
        """The producer never blocks: the oldest queued frame is evicted."""
        queue = FrameQueue(depth=2)
        frames = [make_frame() for _ in range(3)]
        for frame in frames:
            assert queue.push(frame) is True

        assert frames[0].closed
        assert not frames[1].closed
        assert len(queue) == 2
        assert queue.dropped == 1
        assert queue.acquire_latest() is frames[2]

    def test_acquired_frames_hold_slots(self):
        queue = FrameQueue(depth=2)
        queue.push(make_frame())
        held_one = queue.acquire_latest()
        queue.push(make_frame())
        held_two = queue.acquire_latest()

        incoming = make_frame()
        assert queue.push(incoming) is False
        assert incoming.closed
        assert queue.in_flight == 2

        held_one.close()
        assert queue.in_flight == 1
        assert queue.push(make_frame()) is True
        held_two.close()

    def test_close_releases_queued_frames(self):
        queue = FrameQueue(depth=2)
        frames = [make_frame(), make_frame()]
        for frame in frames:
            queue.push(frame)

        queue.close()
        queue.close()
        assert all(f.closed for f in frames)
        assert queue.in_flight == 0
        assert queue.acquire_latest() is None

    def test_push_after_close_is_dropped(self):
        queue = FrameQueue()
        queue.close()
        frame = make_frame()
        assert queue.push(frame) is False
        assert frame.closed

    def test_frame_released_after_queue_close(self):
        queue = FrameQueue()
        queue.push(make_frame())
        acquired = queue.acquire_latest()
        queue.close()
        assert queue.in_flight == 1
        acquired.close()
        assert queue.in_flight == 0
