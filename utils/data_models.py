# utils/data_models.py
import datetime
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, model_validator

# Bytes per pixel -> PIL mode
PIXEL_MODES = {
    3: "RGB",
    4: "RGBA",
}


class Capability(BaseModel):
    """Opaque, issuer-signed permission to mirror the screen"""
    model_config = ConfigDict(frozen=True)

    token: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    issued_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )


class DisplayMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    density: int = Field(gt=0)


@dataclass
class Plane:
    """One pixel plane of a raw frame"""
    buffer: bytes
    pixel_stride: int
    row_stride: int


@dataclass(eq=False)
class RawFrame:
    """
    A buffer handed out by the frame queue.

    The frame occupies a queue slot until close() is called, so every
    consumer must release it once decoded.
    """
    width: int
    height: int
    planes: List[Plane]
    timestamp: datetime.datetime = field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )
    release_callback: Optional[Callable[["RawFrame"], None]] = field(default=None, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)
    _close_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the buffer; safe to call more than once"""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
            callback, self.release_callback = self.release_callback, None
            self.planes = []
        if callback is not None:
            callback(self)

    def __enter__(self) -> "RawFrame":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class NormalizedImage(BaseModel):
    """Stride-free pixel grid, rows packed back to back"""
    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    mode: str = "RGBA"
    pixels: bytes
    captured_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )

    @property
    def bytes_per_pixel(self) -> int:
        return len(self.mode)

    @model_validator(mode="after")
    def _check_dimensions(self) -> "NormalizedImage":
        if self.mode not in PIXEL_MODES.values():
            raise ValueError(f"unsupported pixel mode: {self.mode}")
        expected = self.width * self.height * self.bytes_per_pixel
        if len(self.pixels) != expected:
            raise ValueError(
                f"pixel data length {len(self.pixels)} does not match "
                f"{self.width}x{self.height}x{self.bytes_per_pixel}={expected}"
            )
        return self

    def to_pil(self) -> Image.Image:
        return Image.frombytes(self.mode, (self.width, self.height), self.pixels)


class StoredArtifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    path: Path
    captured_at: datetime.datetime
    width: int
    height: int
    size_bytes: int


class CommandResult(BaseModel):
    """Reply to an inbound command"""
    success: bool
    message: str
    error_code: Optional[str] = None

    @classmethod
    def ok(cls, message: str) -> "CommandResult":
        return cls(success=True, message=message)

    @classmethod
    def error(cls, error_code: str, message: str) -> "CommandResult":
        return cls(success=False, message=message, error_code=error_code)
