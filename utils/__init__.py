from .logger import logger, setup_logger, set_log_level
from .data_models import (
    Capability,
    DisplayMetrics,
    Plane,
    RawFrame,
    NormalizedImage,
    StoredArtifact,
    CommandResult,
)

__all__ = [
    "logger",
    "setup_logger",
    "set_log_level",
    # Data models
    "Capability",
    "DisplayMetrics",
    "Plane",
    "RawFrame",
    "NormalizedImage",
    "StoredArtifact",
    "CommandResult",
]
