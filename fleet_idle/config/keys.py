"""Configuration keys resolved per device with fallback to global configuration."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class ConfigKey:
    """Named configuration value with its type and built-in default."""
    name: str
    value_type: type
    default: Optional[Any] = None
    device_only: bool = False    # Not read from global configuration


EVENT_MOTION_PROCESS_INVALID_POSITIONS = ConfigKey(
    name="event.motion.processInvalidPositions",
    value_type=bool,
    default=False,
)

# Seconds
REPORT_IDLE_MINIMAL_DURATION = ConfigKey(
    name="report.idle.minimalDuration",
    value_type=int,
    default=300,
)

SPEED_ADJUSTMENT_FACTOR = ConfigKey(
    name="speedAdjustmentFactor",
    value_type=float,
    default=None,
    device_only=True,
)

ALL_KEYS = (
    EVENT_MOTION_PROCESS_INVALID_POSITIONS,
    REPORT_IDLE_MINIMAL_DURATION,
    SPEED_ADJUSTMENT_FACTOR,
)
