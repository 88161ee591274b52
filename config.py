# config.py
"""
ScreenWatch configuration

Values are read from the process environment, after loading an optional
.env file from the working directory. Use as:

    from config import config
    config.CAPTURE_INTERVAL_SECONDS
"""
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from core.errors import ConfigError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _get_str(env: Mapping[str, str], key: str, default: str) -> str:
    value = env.get(key)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _get_float(env: Mapping[str, str], key: str, default: float, minimum: float = 0.0) -> float:
    raw = _get_str(env, key, str(default))
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got {raw!r}")
    if value <= minimum:
        raise ConfigError(f"{key} must be greater than {minimum}, got {value}")
    return value


def _get_int(env: Mapping[str, str], key: str, default: int, minimum: int = 0, maximum: Optional[int] = None) -> int:
    raw = _get_str(env, key, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}")
    if value < minimum or (maximum is not None and value > maximum):
        raise ConfigError(f"{key} out of range: {value}")
    return value


def _get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = _get_str(env, key, "true" if default else "false").lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigError(f"{key} must be a boolean, got {raw!r}")


class Config:
    """Snapshot of the capture settings."""

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        env = os.environ if env is None else env

        # Logging
        self.LOG_LEVEL = _get_str(env, "LOG_LEVEL", "INFO").upper()

        # Storage
        self.STORAGE_ROOT = _get_str(env, "STORAGE_ROOT", "./data")
        self.SCREENSHOT_DIR_NAME = _get_str(env, "SCREENSHOT_DIR_NAME", "screenshots")
        self.PNG_COMPRESS_LEVEL = _get_int(env, "PNG_COMPRESS_LEVEL", 6, minimum=0, maximum=9)

        # Scheduling
        self.CAPTURE_INTERVAL_SECONDS = _get_float(env, "CAPTURE_INTERVAL_SECONDS", 300.0)

        # Frame pipeline
        self.FRAME_QUEUE_DEPTH = _get_int(env, "FRAME_QUEUE_DEPTH", 2, minimum=1)
        self.CROP_ROW_PADDING = _get_bool(env, "CROP_ROW_PADDING", True)

        # Desktop mirror
        self.GRAB_INTERVAL_SECONDS = _get_float(env, "GRAB_INTERVAL_SECONDS", 1.0)
        self.DISPLAY_DENSITY = _get_int(env, "DISPLAY_DENSITY", 96, minimum=1)
        self.VIRTUAL_DISPLAY_NAME = _get_str(env, "VIRTUAL_DISPLAY_NAME", "ScreenWatchVirtualDisplay")

        # Foreground presence
        self.PRESENCE_TITLE = _get_str(env, "PRESENCE_TITLE", "ScreenWatch running")
        self.PRESENCE_TEXT = _get_str(env, "PRESENCE_TEXT", "Capturing screen periodically...")

    @property
    def SCREENSHOT_DIR(self) -> Path:
        return Path(self.STORAGE_ROOT) / self.SCREENSHOT_DIR_NAME

    def __repr__(self) -> str:
        return (
            f"Config(storage={self.SCREENSHOT_DIR}, "
            f"interval={self.CAPTURE_INTERVAL_SECONDS}s, "
            f"queue_depth={self.FRAME_QUEUE_DEPTH})"
        )


load_dotenv()
config = Config()
