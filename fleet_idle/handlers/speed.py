"""Per-device speed correction."""

import structlog

from ..config.keys import SPEED_ADJUSTMENT_FACTOR
from ..data.cache import DeviceCache
from ..data.models import Position
from .base import BasePositionHandler, HandlerCallback

logger = structlog.get_logger(__name__)


class SpeedAdjustmentHandler(BasePositionHandler):
    """Multiplies reported speed by the device's speedAdjustmentFactor when positive."""

    def __init__(self, cache: DeviceCache):
        self.logger = logger
        self.cache = cache

    def on_position(self, position: Position, callback: HandlerCallback) -> None:
        device = self.cache.get(position.device_id)
        if device is None:
            self.logger.warning("Device not found in cache", device_id=position.device_id)
        else:
            factor = device.get_double(SPEED_ADJUSTMENT_FACTOR.name)
            if factor is not None and factor > 0:
                original_speed = position.speed
                position.speed = original_speed * factor
                self.logger.debug(
                    "Speed adjusted",
                    device_id=device.id,
                    original_speed=original_speed,
                    adjusted_speed=position.speed,
                    factor=factor
                )
        callback.processed(False)
