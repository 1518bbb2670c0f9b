"""
Canonical data models for devices, positions and derived events.

Positions arrive already normalized from the ingestion layer. Devices are
the cached device records whose idle columns are persisted. Events are the
derived records forwarded to the surrounding pipeline.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from ..utils.time import format_timestamp


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


@dataclass
class Position:
    """Single position report for a device."""

    KEY_MOTION = "motion"
    KEY_IGNITION = "ignition"

    device_id: int
    fix_time: Optional[datetime]          # UTC fix time reported by the device
    id: int = 0
    valid: bool = True
    speed: float = 0.0                    # Knots
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    device_time: Optional[datetime] = None
    server_time: Optional[datetime] = None
    attributes: dict[str, Any] = field(default_factory=dict)

    def get_boolean(self, key: str) -> bool:
        """Boolean attribute value, False when absent."""
        value = self.attributes.get(key)
        if value is None:
            return False
        return _as_bool(value)

    def get_double(self, key: str) -> Optional[float]:
        value = self.attributes.get(key)
        if value is None:
            return None
        return float(value)


@dataclass
class Device:
    """Cached device record including its persisted idle columns."""

    id: int
    name: str = ""
    unique_id: str = ""

    # Idle tracking columns
    idle_state: bool = False
    idle_time: Optional[datetime] = None
    idle_position_id: int = 0

    # Per-device configuration overrides
    attributes: dict[str, Any] = field(default_factory=dict)

    def has_attribute(self, key: str) -> bool:
        return self.attributes.get(key) is not None

    def get_double(self, key: str) -> Optional[float]:
        """Numeric attribute value, None when absent or not numeric."""
        value = self.attributes.get(key)
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    def get_integer(self, key: str) -> Optional[int]:
        value = self.get_double(key)
        return int(value) if value is not None else None

    def get_boolean(self, key: str) -> Optional[bool]:
        value = self.attributes.get(key)
        if value is None:
            return None
        return _as_bool(value)


@dataclass
class Event:
    """Derived event forwarded to the pipeline."""

    TYPE_DEVICE_IDLE_START = "deviceIdleStart"
    TYPE_DEVICE_IDLE_END = "deviceIdleEnd"

    type: str
    device_id: int
    position_id: int = 0
    event_time: Optional[datetime] = None
    attributes: dict[str, Any] = field(default_factory=dict)

    def set(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation used by event delivery."""
        return {
            "type": self.type,
            "device_id": self.device_id,
            "position_id": self.position_id,
            "event_time": format_timestamp(self.event_time),
            "attributes": dict(self.attributes),
        }
