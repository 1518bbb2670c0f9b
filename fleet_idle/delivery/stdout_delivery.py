"""Standard output event delivery."""

import sys
from datetime import UTC, datetime
from typing import Any

import orjson

from ..config.event_delivery import StdoutDeliveryConfig
from .base import BaseEventDelivery


class StdoutEventDelivery(BaseEventDelivery):
    """Prints events as JSON lines or as a one-line human-readable summary."""

    def __init__(self, name: str, config: StdoutDeliveryConfig):
        super().__init__(name)
        self.config = config

    def write(self, event: dict[str, Any]) -> None:
        print(self._format_event(event), file=sys.stdout, flush=True)

    def _format_event(self, event: dict[str, Any]) -> str:
        if self.config.format == "pretty":
            output = (
                f"[{datetime.now(UTC).isoformat()}] EVENT: {event['type']} "
                f"device={event['device_id']} at {event.get('event_time')}"
            )
            duration = event.get("attributes", {}).get("duration")
            if duration is not None:
                output += f" (duration: {duration / 1000:.1f}s)"
            return output

        if self.config.include_timestamp:
            event = {**event, "stdout_timestamp": datetime.now(UTC).isoformat()}
        return orjson.dumps(event).decode()
