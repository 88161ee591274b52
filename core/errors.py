# core/errors.py
"""
Exception hierarchy for the capture pipeline.

Start-time errors (CapabilityInvalid, DisplayUnavailable) end a start attempt
and reach the caller. Per-tick errors (MalformedFrame, EncodeFailure,
StorageUnavailable) are caught inside the tick and only counted.
"""


class CaptureError(Exception):
    """Base class for every error raised by the capture pipeline."""


class ConfigError(CaptureError):
    """A configuration value could not be parsed."""


class CapabilityInvalid(CaptureError):
    """The capability was never issued, was revoked, or has expired."""


class DisplayUnavailable(CaptureError):
    """The mirrored display could not be created."""


class MalformedFrame(CaptureError):
    """A raw frame cannot be decoded (no planes, bad strides, short buffer)."""


class EncodeFailure(CaptureError):
    """The image could not be encoded to the storage format."""


class StorageUnavailable(CaptureError):
    """The storage directory or file could not be written."""


class InvalidStateTransition(CaptureError):
    """A lifecycle operation was requested from a state that does not allow it."""
