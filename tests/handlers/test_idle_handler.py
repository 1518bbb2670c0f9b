"""Tests for the idle event handler."""

import pytest
from unittest.mock import Mock, patch

from fleet_idle.config.loader import ConfigLoader
from fleet_idle.data.cache import DeviceCache
from fleet_idle.data.models import Device, Event, Position
from fleet_idle.errors import StorageError
from fleet_idle.handlers.idle import IDLE_COLUMNS, IdleEventHandler

from conftest import T0, at, make_position


@pytest.fixture
def storage() -> Mock:
    return Mock()


@pytest.fixture
def handler(cache, config, storage) -> IdleEventHandler:
    return IdleEventHandler(cache, config, storage)


def deliver(handler: IdleEventHandler, cache: DeviceCache, position: Position, callback: Mock):
    """Record the position as latest, as the pipeline does, then handle it."""
    cache.update_latest(position)
    handler.on_position(position, callback)


class TestIdleEventHandler:
    """Test position orchestration around the state machine."""

    def test_onset_persists_idle_columns(self, handler, cache, storage, callback, device):
        """Test that becoming idle writes exactly the idle columns."""
        deliver(handler, cache, make_position(100, T0, False, True), callback)

        storage.update_object.assert_called_once_with(
            device, columns=IDLE_COLUMNS, condition={"id": 1}
        )
        assert device.idle_state is True
        assert device.idle_time == T0
        assert device.idle_position_id == 100
        callback.event_detected.assert_not_called()
        callback.processed.assert_called_once_with(False)

    def test_idle_period_emits_event(self, handler, cache, storage, callback, device):
        """Scenario B through the handler: one event and reset columns."""
        deliver(handler, cache, make_position(100, T0, False, True), callback)
        deliver(handler, cache, make_position(101, at(5), True, True), callback)

        callback.event_detected.assert_called_once()
        event = callback.event_detected.call_args.args[0]
        assert event.type == Event.TYPE_DEVICE_IDLE_START
        assert event.position_id == 100
        assert event.event_time == T0
        assert event.get("duration") == 5000
        assert device.idle_state is False
        assert device.idle_time is None
        assert device.idle_position_id == 0
        assert storage.update_object.call_count == 2

    def test_unchanged_state_is_not_persisted(self, handler, cache, storage, callback):
        """Test that a moving device produces no storage call."""
        deliver(handler, cache, make_position(100, T0, True, True), callback)

        storage.update_object.assert_not_called()
        callback.event_detected.assert_not_called()

    def test_scenario_d_unknown_device(self, handler, cache, storage, callback):
        """Unknown device: no state change, no event, no persistence."""
        position = make_position(100, T0, False, True, device_id=999)

        deliver(handler, cache, position, callback)

        storage.update_object.assert_not_called()
        callback.event_detected.assert_not_called()
        callback.processed.assert_called_once_with(False)

    def test_stale_position_is_ignored(self, handler, cache, storage, callback, device):
        """Test that an older fix than the latest known one is skipped."""
        cache.update_latest(make_position(200, at(60), True, True))

        handler.on_position(make_position(100, T0, False, True), callback)

        storage.update_object.assert_not_called()
        assert device.idle_state is False

    def test_invalid_position_skipped_by_default(self, handler, cache, storage, callback, device):
        """Test that invalid positions are ignored when processing is disabled."""
        deliver(handler, cache, make_position(100, T0, False, True, valid=False), callback)

        storage.update_object.assert_not_called()
        assert device.idle_state is False

    def test_invalid_position_processed_with_device_override(
        self, handler, cache, storage, callback, device
    ):
        """Test the per-device override of invalid position processing."""
        device.attributes["event.motion.processInvalidPositions"] = True

        deliver(handler, cache, make_position(100, T0, False, True, valid=False), callback)

        storage.update_object.assert_called_once()
        assert device.idle_state is True

    def test_device_minimal_duration_override(self, handler, cache, callback, device):
        """Test that the device's minimal duration overrides the global one."""
        device.attributes["report.idle.minimalDuration"] = 10

        deliver(handler, cache, make_position(100, T0, False, True), callback)
        deliver(handler, cache, make_position(101, at(5), True, True), callback)

        callback.event_detected.assert_not_called()
        assert device.idle_time is None

    def test_storage_failure_still_emits_event(self, handler, cache, storage, callback, device):
        """Test that a persistence failure is logged and the event still delivered."""
        device.idle_state = True
        device.idle_time = T0
        device.idle_position_id = 100
        storage.update_object.side_effect = StorageError("database is locked")

        with patch.object(handler, "logger") as mock_logger:
            deliver(handler, cache, make_position(101, at(5), True, True), callback)

        mock_logger.warning.assert_called_once()
        callback.event_detected.assert_called_once()
        callback.processed.assert_called_once_with(False)
        # The cached record keeps the new values for the next position
        assert device.idle_time is None

    def test_missing_fix_time_is_skipped(self, handler, cache, storage, callback, device):
        """Test that a position that cannot update idle state is logged and skipped."""
        device.idle_state = True
        device.idle_time = T0
        device.idle_position_id = 100
        position = Position(device_id=1, fix_time=None, id=101,
                            attributes={"motion": True, "ignition": True})

        with patch.object(handler, "logger") as mock_logger:
            handler.on_position(position, callback)

        mock_logger.warning.assert_called_once()
        storage.update_object.assert_not_called()
        callback.event_detected.assert_not_called()
        callback.processed.assert_called_once_with(False)
        assert device.idle_time == T0

    def test_works_with_real_storage(self, config, store, callback):
        """Test that the idle columns reach the database."""
        device = Device(id=5, name="Truck")
        store.add_device(device)
        cache = DeviceCache(store=store)
        handler = IdleEventHandler(cache, config, store)

        deliver(handler, cache, make_position(100, T0, False, True, device_id=5), callback)

        stored = store.get_device(5)
        assert stored.idle_state is True
        assert stored.idle_time == T0
        assert stored.idle_position_id == 100
