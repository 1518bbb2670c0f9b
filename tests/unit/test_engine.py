"""Tests for the position processing pipeline."""

import json
import pytest
from unittest.mock import patch

from fleet_idle.config.event_delivery import (
    DeliveryDestination,
    DeliveryMethod,
    EventDeliveryConfig,
    FileDeliveryConfig,
)
from fleet_idle.config.loader import ConfigLoader
from fleet_idle.data.models import Device, Event
from fleet_idle.engine import PositionCallback, PositionPipeline
from fleet_idle.errors import ConfigurationError, StorageError

from conftest import T0, at, make_position


@pytest.fixture
def events_path(tmp_path):
    return tmp_path / "events.jsonl"


@pytest.fixture
def pipeline(config, store, events_path) -> PositionPipeline:
    delivery_config = EventDeliveryConfig(
        destinations=[DeliveryDestination(
            name="file",
            method=DeliveryMethod.FILE_OUTPUT,
            config=FileDeliveryConfig(output_path=str(events_path)),
        )],
        max_retries=0,
    )
    pipeline = PositionPipeline(config=config, store=store, delivery_config=delivery_config)
    pipeline.register_device(Device(id=1, name="Van"))
    return pipeline


def payload(position_id, seconds, motion, ignition, device_id=1, **extra):
    data = {
        "id": position_id,
        "deviceId": device_id,
        "fixTime": at(seconds).isoformat(),
        "attributes": {"motion": motion, "ignition": ignition},
    }
    data.update(extra)
    return data


class TestPositionCallback:
    """Test result collection."""

    def test_collects_events_and_processed(self):
        """Test that events are kept in order and handled flags are OR-ed."""
        callback = PositionCallback()
        first = Event(type=Event.TYPE_DEVICE_IDLE_START, device_id=1)

        callback.event_detected(first)
        callback.processed(False)
        callback.processed(True)

        assert callback.events == [first]
        assert callback.handled is True
        assert callback.processed_count == 2


class TestPositionPipeline:
    """Test PositionPipeline end to end with real collaborators."""

    def test_idle_period_produces_event(self, pipeline, store, events_path):
        """Test an idle period reported when the vehicle drives off."""
        events = pipeline.process_positions([
            payload(1, 0, True, True),
            payload(2, 10, False, True),
            payload(3, 20, False, True),
            payload(4, 30, True, True),
        ])

        assert len(events) == 1
        assert events[0].type == Event.TYPE_DEVICE_IDLE_START
        assert events[0].position_id == 2
        assert events[0].event_time == at(10)
        assert events[0].get("duration") == 20000

        lines = events_path.read_text().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["position_id"] == 2

        stored = store.get_device(1)
        assert stored.idle_state is False
        assert stored.idle_time is None

    def test_state_survives_restart(self, config, store, pipeline, events_path):
        """Test that idle state persisted by one pipeline is used by the next."""
        pipeline.process_position(payload(1, 0, False, True))

        restarted = PositionPipeline(
            config=config, store=store, delivery_config=pipeline.delivery_config
        )
        events = restarted.process_position(payload(2, 60, True, True))

        assert len(events) == 1
        assert events[0].get("duration") == 60000

    def test_speed_adjusted_before_idle_detection(self, pipeline, store):
        """Test that the speed factor is applied to processed positions."""
        device = pipeline.get_device(1)
        device.attributes["speedAdjustmentFactor"] = 2.0
        position = make_position(1, T0, True, True, speed=10.0)

        pipeline.process_position(position)

        assert position.speed == 20.0

    def test_stale_position_ignored(self, pipeline, store):
        """Test that an out-of-order position does not open an idle segment."""
        pipeline.process_position(payload(2, 60, True, True))
        pipeline.process_position(payload(1, 0, False, True))

        assert store.get_device(1).idle_state is False

    def test_unknown_device(self, pipeline):
        """Test that positions of unknown devices produce nothing."""
        assert pipeline.process_position(payload(1, 0, False, True, device_id=99)) == []

    def test_malformed_payload_skipped(self, pipeline):
        """Test that a bad payload is logged and skipped."""
        with patch.object(pipeline, "logger") as mock_logger:
            events = pipeline.process_position(b'{"deviceId": 1}')

        assert events == []
        mock_logger.warning.assert_called_once()

    def test_bad_device_configuration_skipped(self, pipeline):
        """Test that an unusable device attribute skips the position."""
        pipeline.get_device(1).attributes["report.idle.minimalDuration"] = "soon"

        with patch.object(pipeline, "logger") as mock_logger:
            events = pipeline.process_position(payload(1, 0, False, True))

        assert events == []
        mock_logger.warning.assert_called_once()

    def test_deliver_flag(self, pipeline, events_path):
        """Test that delivery can be disabled per call."""
        pipeline.process_position(payload(1, 0, False, True), deliver=False)
        events = pipeline.process_position(payload(2, 60, True, True), deliver=False)

        assert len(events) == 1
        assert not events_path.exists()

    def test_naive_position_followed_by_parsed_payload(self, pipeline):
        """Test that naive and timezone-aware fix times can be mixed."""
        onset = make_position(1, T0.replace(tzinfo=None), False, True)

        pipeline.process_position(onset)
        events = pipeline.process_position(payload(2, 5, True, True))

        assert len(events) == 1
        assert events[0].get("duration") == 5000

    def test_storage_unavailable_skips_position(self, pipeline, store):
        """Test that a failing device lookup is logged instead of raised."""
        pipeline.cache.invalidate(1)

        with patch.object(store, "get_device", side_effect=StorageError("database is locked")), \
                patch.object(pipeline, "logger") as mock_logger:
            events = pipeline.process_position(payload(1, 0, False, True))

        assert events == []
        mock_logger.warning.assert_called_once()


class TestPipelineLogging:
    """Test that the logging section configures structlog."""

    def test_logging_section_applied(self, empty_config_dir, store):
        """Test that level and format come from configuration."""
        config = ConfigLoader.create(
            empty_config_dir,
            overrides={"logging": {"level": "DEBUG", "format_json": True}}
        )

        with patch("fleet_idle.engine.configure_logging") as mock_configure:
            PositionPipeline(config=config, store=store, delivery_config=EventDeliveryConfig())

        mock_configure.assert_called_once_with(level="DEBUG", format_json=True)

    def test_logging_configuration_can_be_skipped(self, config, store):
        """Test that embedding applications can keep their own logging setup."""
        with patch("fleet_idle.engine.configure_logging") as mock_configure:
            PositionPipeline(
                config=config, store=store,
                delivery_config=EventDeliveryConfig(), configure_logs=False
            )

        mock_configure.assert_not_called()

    def test_unknown_level_rejected(self, empty_config_dir, store):
        """Test that an invalid logging level fails pipeline construction."""
        config = ConfigLoader.create(empty_config_dir, overrides={"logging": {"level": "LOUD"}})

        with pytest.raises(ConfigurationError):
            PositionPipeline(config=config, store=store, delivery_config=EventDeliveryConfig())
