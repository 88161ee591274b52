# core/capture/frame_decoder.py
"""
Raw frame -> NormalizedImage

Mirrored displays hand out buffers whose rows may be longer than the visible
width (rowStride > pixelStride * width). The padded width is

    width + (rowStride - pixelStride * width) / pixelStride

and the columns past `width` are padding. The decoder either crops them
(default) or keeps them as part of the image; in both cases the reported
width x height matches the pixel data it returns.
"""
import numpy as np

from config import config
from core.errors import MalformedFrame
from utils.data_models import PIXEL_MODES, NormalizedImage, RawFrame
from utils.logger import setup_logger

logger = setup_logger(__name__)


def padded_width(width: int, row_stride: int, pixel_stride: int) -> int:
    row_padding = row_stride - pixel_stride * width
    return width + row_padding // pixel_stride


class FrameDecoder:
    def __init__(self, crop_padding: bool = None):
        """
        Args:
            crop_padding: drop stride padding columns; defaults to config.CROP_ROW_PADDING
        """
        self.crop_padding = crop_padding if crop_padding is not None else config.CROP_ROW_PADDING

    def decode(self, frame: RawFrame) -> NormalizedImage:
        if not frame.planes:
            raise MalformedFrame("Frame has no planes")
        if frame.width <= 0 or frame.height <= 0:
            raise MalformedFrame(f"Invalid frame size {frame.width}x{frame.height}")

        plane = frame.planes[0]
        pixel_stride = plane.pixel_stride
        row_stride = plane.row_stride

        mode = PIXEL_MODES.get(pixel_stride)
        if mode is None:
            raise MalformedFrame(f"Unsupported pixel stride {pixel_stride}")
        if row_stride < pixel_stride * frame.width:
            raise MalformedFrame(
                f"Row stride {row_stride} shorter than {frame.width} pixels of {pixel_stride} bytes"
            )

        # The last row is allowed to stop right after its visible pixels
        minimum_length = row_stride * (frame.height - 1) + pixel_stride * frame.width
        buffer = np.frombuffer(plane.buffer, dtype=np.uint8)
        if buffer.size < minimum_length:
            raise MalformedFrame(
                f"Buffer holds {buffer.size} bytes, {minimum_length} needed "
                f"for {frame.width}x{frame.height} at row stride {row_stride}"
            )

        full_length = row_stride * frame.height
        if buffer.size < full_length:
            buffer = np.concatenate([buffer, np.zeros(full_length - buffer.size, dtype=np.uint8)])
        rows = buffer[:full_length].reshape(frame.height, row_stride)

        out_width = frame.width if self.crop_padding else padded_width(frame.width, row_stride, pixel_stride)
        pixels = rows[:, :out_width * pixel_stride]

        logger.debug(
            f"Decoded frame {frame.width}x{frame.height} "
            f"(row_stride={row_stride}, pixel_stride={pixel_stride}) -> {out_width}x{frame.height}"
        )
        return NormalizedImage(
            width=out_width,
            height=frame.height,
            mode=mode,
            pixels=np.ascontiguousarray(pixels).tobytes(),
            captured_at=frame.timestamp,
        )
