"""JSONL file event delivery."""

from pathlib import Path
from typing import Any

import orjson

from ..config.event_delivery import FileDeliveryConfig
from .base import BaseEventDelivery


class FileEventDelivery(BaseEventDelivery):
    """Appends events to a JSONL file, one event per line."""

    def __init__(self, name: str, config: FileDeliveryConfig):
        super().__init__(name)
        self.config = config
        self.output_path = Path(config.output_path)

        if config.create_dirs:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)

        # Without append mode each run starts a fresh file
        if not config.append_mode:
            self.output_path.write_bytes(b"")

    def write(self, event: dict[str, Any]) -> None:
        line = orjson.dumps(event, option=orjson.OPT_APPEND_NEWLINE)
        with open(self.output_path, "ab") as f:
            f.write(line)

        self.logger.debug(
            "Event written to file",
            delivery_name=self.name,
            device_id=event.get("device_id"),
            output_path=str(self.output_path)
        )
