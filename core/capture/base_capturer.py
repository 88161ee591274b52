# core/capture/base_capturer.py
from abc import ABC, abstractmethod
from typing import Callable

from utils.data_models import Capability, DisplayMetrics
from .frame_queue import FrameQueue


class AbstractVirtualDisplay(ABC):
    """
    A mirrored output surface feeding frames into a FrameQueue
    """

    @abstractmethod
    def release(self) -> None:
        """
        Stop producing frames and free the surface. Must be idempotent.
        """
        pass


class AbstractProjection(ABC):
    """
    A live screen-mirroring grant obtained from a Capability
    """

    @abstractmethod
    def register_callback(self, on_stop: Callable[[], None]) -> None:
        """
        Register the listener invoked (at most once) when the issuer revokes the grant
        """
        pass

    @abstractmethod
    def unregister_callback(self) -> None:
        pass

    @abstractmethod
    def create_virtual_display(
        self,
        name: str,
        metrics: DisplayMetrics,
        frame_queue: FrameQueue
    ) -> AbstractVirtualDisplay:
        """
        Create a display mirroring the screen into frame_queue.
        Raises DisplayUnavailable when the feed cannot be established.
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """
        Give the grant back to the issuer. Must be idempotent.
        """
        pass


class AbstractProjectionProvider(ABC):
    """
    The subsystem that issues capabilities and turns them into projections
    """

    @abstractmethod
    def get_display_metrics(self) -> DisplayMetrics:
        pass

    @abstractmethod
    def get_projection(self, capability: Capability) -> AbstractProjection:
        """
        Raises CapabilityInvalid for unknown, revoked or already used capabilities
        """
        pass
