# core/capture/command_channel.py
"""
Inbound command surface for the outer application shell.

    channel = CaptureCommandChannel(manager)
    channel.handle("startCapture", {"capability": capability})
    channel.handle("stopCapture")
"""
from typing import Any, Callable, Dict, Optional

from core.errors import CaptureError
from utils.data_models import Capability, CommandResult
from utils.logger import setup_logger
from .lifecycle_manager import CaptureLifecycleManager

logger = setup_logger(__name__)

START_CAPTURE = "startCapture"
STOP_CAPTURE = "stopCapture"


class CaptureCommandChannel:
    def __init__(self, manager: CaptureLifecycleManager):
        self.manager = manager
        self._handlers: Dict[str, Callable[[Dict[str, Any]], CommandResult]] = {
            START_CAPTURE: self._start_capture,
            STOP_CAPTURE: self._stop_capture,
        }

    def handle(self, method: str, arguments: Optional[Dict[str, Any]] = None) -> CommandResult:
        handler = self._handlers.get(method)
        if handler is None:
            logger.warning(f"Unknown command: {method}")
            return CommandResult.error("NOT_IMPLEMENTED", f"Command '{method}' is not implemented")
        logger.info(f"{method} called")
        return handler(arguments or {})

    def _start_capture(self, arguments: Dict[str, Any]) -> CommandResult:
        capability = arguments.get("capability")
        if not isinstance(capability, Capability):
            return CommandResult.error("MISSING_CAPABILITY", "startCapture requires a capability")
        try:
            self.manager.start(capability)
        except CaptureError as e:
            return CommandResult.error(type(e).__name__, str(e))
        return CommandResult.ok("Capture started.")

    def _stop_capture(self, arguments: Dict[str, Any]) -> CommandResult:
        self.manager.stop()
        return CommandResult.ok("Capture stopped.")
