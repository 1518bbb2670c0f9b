"""
Position processing pipeline.

Orchestrates the handling of each incoming position: parsing, speed
adjustment, latest-position tracking, idle event detection and event
delivery.
"""

from pathlib import Path
from typing import Any, Iterable, Optional, Union

import structlog

from .config.event_delivery import (
    DeliveryMethod,
    EventDeliveryConfig,
    parse_delivery_config,
)
from .config.loader import ConfigLoader
from .data.cache import DeviceCache
from .data.models import Device, Event, Position
from .data.parsers import parse_position
from .delivery.base import BaseEventDelivery
from .delivery.file_delivery import FileEventDelivery
from .delivery.stdout_delivery import StdoutEventDelivery
from .errors import ConfigurationError, DataQualityError, PersistenceError
from .handlers.idle import IdleEventHandler
from .handlers.speed import SpeedAdjustmentHandler
from .logging import configure_logging
from .persistence.device_store import DeviceStore

logger = structlog.get_logger(__name__)


class PositionCallback:
    """Collects the results reported by handlers for a single position."""

    def __init__(self):
        self.events: list[Event] = []
        self.handled = False
        self.processed_count = 0

    def event_detected(self, event: Event) -> None:
        self.events.append(event)

    def processed(self, handled: bool) -> None:
        self.processed_count += 1
        self.handled = self.handled or handled


class PositionPipeline:
    """
    Main coordinator for position processing.

    Manages the processing pipeline:
    Payload → Position → Speed Adjustment → Latest Tracking → Idle Detection → Events
    """

    def __init__(
        self,
        config_dir: Optional[Union[str, Path]] = None,
        config: Optional[ConfigLoader] = None,
        store: Optional[DeviceStore] = None,
        cache: Optional[DeviceCache] = None,
        delivery_config: Optional[EventDeliveryConfig] = None,
        configure_logs: bool = True
    ) -> None:
        """
        Initialize the pipeline and its collaborators.

        Args:
            configure_logs: Apply the `logging` configuration section to structlog
        """
        self.logger = logger

        self.config = config or ConfigLoader.create(
            Path(config_dir) if config_dir is not None else None
        )

        if configure_logs:
            logging_params = self.config.section("logging")
            configure_logging(
                level=logging_params.get("level", "INFO"),
                format_json=bool(logging_params.get("format_json", False))
            )

        if store is None:
            storage = self.config.section("storage")
            store = DeviceStore(
                storage.get("database", "devices.db"),
                timeout=storage.get("timeout_seconds", 30.0)
            )
        self.store = store
        self.cache = cache or DeviceCache(store=self.store)

        self.speed_handler = SpeedAdjustmentHandler(self.cache)
        self.idle_handler = IdleEventHandler(self.cache, self.config, self.store)

        self.delivery_config = delivery_config or parse_delivery_config(
            self.config.section("delivery")
        )
        self.deliveries = self._create_deliveries(self.delivery_config)

        self.logger.info(
            "Position pipeline initialized",
            destinations=[d.name for d in self.deliveries]
        )

    def _create_deliveries(self, delivery_config: EventDeliveryConfig) -> list[BaseEventDelivery]:
        deliveries: list[BaseEventDelivery] = []
        for destination in delivery_config.destinations:
            if not destination.enabled:
                continue
            if destination.method == DeliveryMethod.FILE_OUTPUT:
                deliveries.append(FileEventDelivery(destination.name, destination.config))
            else:
                deliveries.append(StdoutEventDelivery(destination.name, destination.config))
        return deliveries

    def register_device(self, device: Device) -> None:
        """Persist a device and make it available to the handlers."""
        self.store.add_device(device)
        self.cache.put(device)

        self.logger.info(
            "Registered device",
            device_id=device.id,
            unique_id=device.unique_id
        )

    def process_position(
        self,
        payload: Union[Position, bytes, str, dict[str, Any]],
        deliver: bool = True
    ) -> list[Event]:
        """
        Process a single position.

        Args:
            payload: Position object or raw JSON position payload
            deliver: Send detected events to the configured destinations

        Returns:
            Events detected for this position
        """
        try:
            position = payload if isinstance(payload, Position) else parse_position(payload)

            callback = PositionCallback()
            self.speed_handler.on_position(position, callback)
            self.cache.update_latest(position)
            self.idle_handler.on_position(position, callback)

        except DataQualityError as e:
            self.logger.warning(
                "Data quality issue, position skipped",
                error=str(e),
                error_type=type(e).__name__,
                context=e.context
            )
            return []

        except ConfigurationError as e:
            self.logger.warning(
                "Configuration issue, position skipped",
                error=str(e),
                field=e.field
            )
            return []

        except PersistenceError as e:
            self.logger.warning(
                "Device storage unavailable, position skipped",
                error=str(e),
                operation=e.operation,
                target=e.target
            )
            return []

        if callback.events:
            self.logger.info(
                "Events detected",
                device_id=position.device_id,
                position_id=position.id,
                events=[event.type for event in callback.events]
            )
            if deliver:
                self.deliver(callback.events)

        return callback.events

    def process_positions(
        self,
        payloads: Iterable[Union[Position, bytes, str, dict[str, Any]]],
        deliver: bool = True
    ) -> list[Event]:
        """Process positions in order, returning all detected events."""
        events = []
        for payload in payloads:
            events.extend(self.process_position(payload, deliver=deliver))
        return events

    def deliver(self, events: list[Event]) -> None:
        """Send events to every destination that accepts them."""
        records = [event.to_dict() for event in events]
        destinations = {
            d.name: d for d in self.delivery_config.destinations if d.enabled
        }

        for delivery in self.deliveries:
            destination = destinations.get(delivery.name)
            selected = [
                record for record in records
                if destination is None or destination.accepts(record)
            ]
            if not selected:
                continue

            results = delivery.deliver(
                selected,
                max_retries=self.delivery_config.max_retries,
                retry_delay=self.delivery_config.retry_delay_seconds
            )
            failed = [r for r in results if not r.delivered]
            if failed:
                self.logger.error(
                    "Event delivery failed",
                    delivery_name=delivery.name,
                    failed=len(failed),
                    total=len(results)
                )

    def get_device(self, device_id: int) -> Optional[Device]:
        return self.cache.get(device_id)
