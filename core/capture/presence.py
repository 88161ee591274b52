# core/capture/presence.py
"""
Foreground presence: telling the host that long-running capture work is in
progress so the process is not reclaimed.
"""
from abc import ABC, abstractmethod

from utils.logger import setup_logger

logger = setup_logger(__name__)


class ForegroundPresence(ABC):
    @abstractmethod
    def acquire(self, title: str, text: str) -> None:
        pass

    @abstractmethod
    def release(self) -> None:
        """Retract the declaration; must be idempotent"""
        pass

    @property
    @abstractmethod
    def is_active(self) -> bool:
        pass


class LoggingPresence(ForegroundPresence):
    """
    Desktop processes are never reclaimed for running in the background,
    so declaring presence only needs to be visible in the log.
    """

    def __init__(self):
        self._active = False

    @property
    def is_active(self) -> bool:
        return self._active

    def acquire(self, title: str, text: str) -> None:
        self._active = True
        logger.info(f"Foreground presence acquired: {title} - {text}")

    def release(self) -> None:
        if not self._active:
            return
        self._active = False
        logger.info("Foreground presence released")
