"""Configuration for event delivery mechanisms."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class DeliveryMethod(Enum):
    """Supported event delivery methods."""
    FILE_OUTPUT = "file_output"
    STDOUT = "stdout"


@dataclass(frozen=True)
class FileDeliveryConfig:
    """Configuration for file-based delivery."""
    output_path: str
    append_mode: bool = True
    create_dirs: bool = True


@dataclass(frozen=True)
class StdoutDeliveryConfig:
    """Configuration for stdout delivery."""
    format: str = "json"  # json, pretty
    include_timestamp: bool = True


@dataclass(frozen=True)
class DeliveryDestination:
    """Single event delivery destination."""
    name: str
    method: DeliveryMethod
    config: Any  # FileDeliveryConfig | StdoutDeliveryConfig
    enabled: bool = True

    # Only deliver these event types when set
    types_filter: Optional[list[str]] = None

    def accepts(self, event: dict[str, Any]) -> bool:
        if not self.enabled:
            return False
        return self.types_filter is None or event.get("type") in self.types_filter


@dataclass(frozen=True)
class EventDeliveryConfig:
    """Complete event delivery configuration."""
    destinations: list[DeliveryDestination] = field(default_factory=list)
    max_retries: int = 3
    retry_delay_seconds: float = 1.0


def get_default_delivery_config() -> EventDeliveryConfig:
    """Default delivery: events printed to stdout as JSON."""
    return EventDeliveryConfig(
        destinations=[
            DeliveryDestination(
                name="stdout",
                method=DeliveryMethod.STDOUT,
                config=StdoutDeliveryConfig(),
            )
        ]
    )


def parse_delivery_config(section: dict[str, Any]) -> EventDeliveryConfig:
    """Build delivery configuration from the `delivery` section of server.yaml."""
    destinations = []
    for item in section.get("destinations", []) or []:
        method = DeliveryMethod(item["method"])
        options = dict(item.get("config") or {})
        if method == DeliveryMethod.FILE_OUTPUT:
            config = FileDeliveryConfig(**options)
        else:
            config = StdoutDeliveryConfig(**options)
        destinations.append(DeliveryDestination(
            name=item.get("name", method.value),
            method=method,
            config=config,
            enabled=item.get("enabled", True),
            types_filter=item.get("types_filter"),
        ))

    if not destinations:
        return get_default_delivery_config()

    return EventDeliveryConfig(
        destinations=destinations,
        max_retries=section.get("max_retries", 3),
        retry_delay_seconds=section.get("retry_delay_seconds", 1.0),
    )
