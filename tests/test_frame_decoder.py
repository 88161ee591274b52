"""Tests for stride-aware frame decoding."""
from __future__ import annotations

import pytest

from conftest import make_frame
from core.capture.frame_decoder import FrameDecoder, padded_width
from core.errors import MalformedFrame
from utils.data_models import Plane, RawFrame


class TestPaddedWidth:
    def test_no_padding(self):
        assert padded_width(60, 240, 4) == 60

    def test_row_padding(self):
        assert padded_width(60, 256, 4) == 64


class TestFrameDecoder:
    """Tests for FrameDecoder."""

    def test_padded_stride_is_cropped(self):
        """rowStride=256, pixelStride=4, width=60: data length matches width x height."""
        frame = make_frame(width=60, height=10, row_stride=256, pixel_stride=4)
        image = FrameDecoder(crop_padding=True).decode(frame)

        assert image.width == 60
        assert image.height == 10
        assert len(image.pixels) == image.width * image.height * 4
        # Padding bytes are 0xFF, visible bytes are 0x7F
        assert set(image.pixels) == {0x7F}

    def test_padded_stride_kept(self):
        frame = make_frame(width=60, height=10, row_stride=256, pixel_stride=4)
        image = FrameDecoder(crop_padding=False).decode(frame)

        assert image.width == 64
        assert len(image.pixels) == image.width * image.height * 4
        assert image.to_pil().size == (64, 10)

    def test_empty_planes_is_malformed(self):
        frame = RawFrame(width=60, height=10, planes=[])
        with pytest.raises(MalformedFrame):
            FrameDecoder().decode(frame)

    def test_last_row_without_padding_accepted(self):
        frame = make_frame(width=60, height=4, row_stride=256)
        plane = frame.planes[0]
        plane.buffer = plane.buffer[:-(256 - 240)]
        image = FrameDecoder().decode(frame)
        assert len(image.pixels) == 60 * 4 * 4

    def test_short_buffer_is_malformed(self):
        frame = make_frame(width=60, height=4, row_stride=256)
        frame.planes[0].buffer = frame.planes[0].buffer[:500]
        with pytest.raises(MalformedFrame):
            FrameDecoder().decode(frame)

    def test_row_stride_smaller_than_width(self):
        frame = RawFrame(
            width=60, height=2,
            planes=[Plane(buffer=bytes(400), pixel_stride=4, row_stride=200)],
        )
        with pytest.raises(MalformedFrame):
            FrameDecoder().decode(frame)

    def test_unsupported_pixel_stride(self):
        frame = make_frame(width=8, height=2, pixel_stride=2)
        with pytest.raises(MalformedFrame):
            FrameDecoder().decode(frame)

    def test_rgb_frame(self):
        frame = make_frame(width=10, height=3, row_stride=32, pixel_stride=3)
        image = FrameDecoder().decode(frame)
        assert image.mode == "RGB"
        assert len(image.pixels) == 10 * 3 * 3

    def test_captured_at_follows_frame(self):
        frame = make_frame()
        assert FrameDecoder().decode(frame).captured_at == frame.timestamp
