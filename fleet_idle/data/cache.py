"""
Read-through device cache with latest-position tracking.

Holds the device records used by the position handlers and remembers the
most recent position known for each device so that stale positions can be
recognized and ignored.
"""

import threading
from typing import TYPE_CHECKING, Optional

import structlog

from ..utils.time import ensure_utc
from .models import Device, Position

if TYPE_CHECKING:
    from ..persistence.device_store import DeviceStore

logger = structlog.get_logger(__name__)


class DeviceCache:
    """In-memory device cache keyed by device id."""

    def __init__(self, store: Optional["DeviceStore"] = None):
        self.logger = logger
        self.store = store
        self._devices: dict[int, Device] = {}
        self._latest: dict[int, Position] = {}
        self._lock = threading.Lock()

    def put(self, device: Device) -> None:
        """Add or replace a cached device record."""
        with self._lock:
            self._devices[device.id] = device

    def get(self, device_id: int) -> Optional[Device]:
        """
        Get a device record, loading it from storage on a cache miss.

        Returns:
            Cached Device, or None when the device is unknown
        """
        with self._lock:
            device = self._devices.get(device_id)
        if device is not None or self.store is None:
            return device

        device = self.store.get_device(device_id)
        if device is not None:
            with self._lock:
                device = self._devices.setdefault(device_id, device)
            self.logger.debug("Device loaded into cache", device_id=device_id)
        return device

    def invalidate(self, device_id: int) -> None:
        """Drop a device and its latest position from the cache."""
        with self._lock:
            self._devices.pop(device_id, None)
            self._latest.pop(device_id, None)

    def update_latest(self, position: Position) -> bool:
        """
        Record a position as the device's latest if it is not older.

        Returns:
            True if the position became the latest known position
        """
        with self._lock:
            current = self._latest.get(position.device_id)
            if current is not None and _is_older(position, current):
                return False
            self._latest[position.device_id] = position
            return True

    def get_latest(self, device_id: int) -> Optional[Position]:
        with self._lock:
            return self._latest.get(device_id)

    def is_latest(self, position: Position) -> bool:
        """True if no newer fix is known for the position's device."""
        latest = self.get_latest(position.device_id)
        if latest is None or latest is position:
            return True
        return not _is_older(position, latest)


def _is_older(position: Position, other: Position) -> bool:
    if position.fix_time is None or other.fix_time is None:
        return False
    return ensure_utc(position.fix_time) < ensure_utc(other.fix_time)
