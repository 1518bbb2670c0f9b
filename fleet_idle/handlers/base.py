"""Base classes for position handlers."""

from abc import ABC, abstractmethod
from typing import Protocol

from ..data.models import Event, Position


class HandlerCallback(Protocol):
    """Receives handler results for one position."""

    def event_detected(self, event: Event) -> None:
        ...

    def processed(self, handled: bool) -> None:
        ...


class BasePositionHandler(ABC):
    """Base class for handlers that process one position at a time."""

    @abstractmethod
    def on_position(self, position: Position, callback: HandlerCallback) -> None:
        """
        Process a position.

        Args:
            position: Position being processed
            callback: Receiver for detected events and the processed signal
        """
        pass
