"""
Idle event detection handler.

Runs the idle state machine for each latest position of a known device,
persists the device's idle columns when they change and forwards any
resulting event to the pipeline.
"""

import structlog

from ..config.keys import EVENT_MOTION_PROCESS_INVALID_POSITIONS, REPORT_IDLE_MINIMAL_DURATION
from ..config.loader import ConfigLoader
from ..data.cache import DeviceCache
from ..data.models import Position
from ..errors import MalformedDataError, StorageError
from ..persistence.device_store import DeviceStore
from ..state.machine import update_idle_state
from ..state.models import IdleState
from .base import BasePositionHandler, HandlerCallback

logger = structlog.get_logger(__name__)

IDLE_COLUMNS = ("idle_state", "idle_time", "idle_position_id")


class IdleEventHandler(BasePositionHandler):
    """Detects idle periods and emits deviceIdleStart events once they end."""

    def __init__(self, cache: DeviceCache, config: ConfigLoader, storage: DeviceStore):
        self.logger = logger
        self.cache = cache
        self.config = config
        self.storage = storage

    def on_position(self, position: Position, callback: HandlerCallback) -> None:
        try:
            self._handle(position, callback)
        finally:
            callback.processed(False)

    def _handle(self, position: Position, callback: HandlerCallback) -> None:
        device_id = position.device_id
        device = self.cache.get(device_id)
        if device is None or not self.cache.is_latest(position):
            self.logger.debug(
                "Skipping position for unknown device or stale fix",
                device_id=device_id,
                position_id=position.id,
                known_device=device is not None
            )
            return

        process_invalid = self.config.lookup(EVENT_MOTION_PROCESS_INVALID_POSITIONS, device)
        if not process_invalid and not position.valid:
            self.logger.debug(
                "Skipping invalid position",
                device_id=device_id,
                position_id=position.id
            )
            return

        minimal_idle_duration = self.config.lookup(REPORT_IDLE_MINIMAL_DURATION, device) * 1000

        state = IdleState.from_device(device)
        try:
            update_idle_state(state, position, minimal_idle_duration)
        except MalformedDataError as e:
            self.logger.warning(
                "Skipping position that cannot update idle state",
                device_id=device_id,
                position_id=position.id,
                error=str(e)
            )
            return

        if state.changed:
            state.to_device(device)
            try:
                self.storage.update_object(
                    device,
                    columns=IDLE_COLUMNS,
                    condition={"id": device.id}
                )
            except StorageError as e:
                self.logger.warning(
                    "Update device idle state error",
                    device_id=device_id,
                    error=str(e),
                    exc_info=True
                )

        if state.event is not None:
            callback.event_detected(state.event)
