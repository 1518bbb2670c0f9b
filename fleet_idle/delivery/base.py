"""
Event delivery.

A delivery writes one idle event at a time to its destination. Writes that
fail with an I/O error are retried after a fixed delay; an event that cannot
be encoded is failed at once since retrying cannot help.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import orjson
import structlog


class DeliveryStatus(Enum):
    """Outcome of delivering one event."""
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass
class DeliveryResult:
    """Outcome of delivering one event, with the number of write attempts."""
    event: dict[str, Any]
    status: DeliveryStatus
    attempts: int
    error: Optional[Exception] = None

    @property
    def delivered(self) -> bool:
        return self.status is DeliveryStatus.DELIVERED


class BaseEventDelivery(ABC):
    """Writes idle events to a single destination."""

    def __init__(self, name: str):
        self.name = name
        self.logger = structlog.get_logger(f"event.delivery.{name}")

    @abstractmethod
    def write(self, event: dict[str, Any]) -> None:
        """
        Write a single event.

        Raises:
            OSError: If the destination cannot be written
            orjson.JSONEncodeError: If the event cannot be serialized
        """

    def deliver(
        self,
        events: list[dict[str, Any]],
        max_retries: int = 3,
        retry_delay: float = 1.0
    ) -> list[DeliveryResult]:
        """Deliver events in order, each with up to max_retries retries."""
        return [self._deliver_event(event, max_retries, retry_delay) for event in events]

    def _deliver_event(
        self,
        event: dict[str, Any],
        max_retries: int,
        retry_delay: float
    ) -> DeliveryResult:
        attempts = 0
        while True:
            attempts += 1
            try:
                self.write(event)
            except orjson.JSONEncodeError as e:
                self.logger.error(
                    "Event cannot be encoded",
                    delivery_name=self.name,
                    device_id=event.get("device_id"),
                    error=str(e)
                )
                return DeliveryResult(event, DeliveryStatus.FAILED, attempts, e)
            except OSError as e:
                if attempts > max_retries:
                    self.logger.error(
                        "Event delivery failed",
                        delivery_name=self.name,
                        device_id=event.get("device_id"),
                        attempts=attempts,
                        error=str(e)
                    )
                    return DeliveryResult(event, DeliveryStatus.FAILED, attempts, e)

                self.logger.warning(
                    "Event delivery attempt failed, retrying",
                    delivery_name=self.name,
                    attempt=attempts,
                    retry_delay=retry_delay,
                    error=str(e)
                )
                time.sleep(retry_delay)
                continue

            return DeliveryResult(event, DeliveryStatus.DELIVERED, attempts)
