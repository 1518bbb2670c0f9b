"""Pytest configuration and shared fixtures."""

import pytest
from datetime import datetime, timezone, timedelta
from pathlib import Path
from unittest.mock import Mock

from fleet_idle.config.loader import ConfigLoader
from fleet_idle.data.cache import DeviceCache
from fleet_idle.data.models import Device, Position
from fleet_idle.persistence.device_store import DeviceStore


T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_position(
    position_id: int,
    fix_time: datetime,
    motion: bool,
    ignition: bool,
    device_id: int = 1,
    valid: bool = True,
    speed: float = 0.0
) -> Position:
    """Build a position with motion/ignition attributes."""
    return Position(
        id=position_id,
        device_id=device_id,
        fix_time=fix_time,
        valid=valid,
        speed=speed,
        attributes={Position.KEY_MOTION: motion, Position.KEY_IGNITION: ignition},
    )


def at(seconds: float) -> datetime:
    """Fix time relative to T0."""
    return T0 + timedelta(seconds=seconds)


@pytest.fixture
def device() -> Device:
    """Not-idle device with no open idle segment."""
    return Device(id=1, name="Test Vehicle", unique_id="123456789012345")


@pytest.fixture
def empty_config_dir(tmp_path: Path) -> Path:
    """Config directory without server.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def config(empty_config_dir: Path) -> ConfigLoader:
    """Defaults with a 3 second minimal idle duration."""
    return ConfigLoader.create(
        empty_config_dir,
        overrides={"attributes": {"report.idle.minimalDuration": 3}}
    )


@pytest.fixture
def store(tmp_path: Path) -> DeviceStore:
    """Fresh SQLite device store."""
    return DeviceStore(str(tmp_path / "devices.db"))


@pytest.fixture
def cache(device: Device) -> DeviceCache:
    """Cache holding the test device."""
    cache = DeviceCache()
    cache.put(device)
    return cache


@pytest.fixture
def callback() -> Mock:
    """Pipeline callback recording event_detected/processed calls."""
    return Mock()
