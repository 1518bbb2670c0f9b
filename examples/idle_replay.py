#!/usr/bin/env python3
"""
Idle Replay Example - Fleet Idle Pipeline

Replays a short drive for one vehicle through the position pipeline:
the vehicle drives, idles at a stop with the engine running for seven
minutes, then drives off. Leaving idle produces one deviceIdleStart
event carrying the onset time and the idle duration.

Run: python examples/idle_replay.py
"""

import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

from fleet_idle.config.loader import ConfigLoader
from fleet_idle.data.models import Device
from fleet_idle.engine import PositionPipeline
from fleet_idle.persistence.device_store import DeviceStore


def build_positions(device_id: int, start: datetime) -> list[dict]:
    """Positions as the protocol decoders emit them."""
    timeline = [
        # (offset seconds, motion, ignition, speed)
        (0, True, True, 25.0),
        (60, False, True, 0.0),     # stopped, engine running
        (180, False, True, 0.0),
        (300, False, True, 0.0),
        (480, True, True, 12.0),    # drives off after 7 minutes
        (540, True, True, 30.0),
    ]
    positions = []
    for index, (offset, motion, ignition, speed) in enumerate(timeline, start=1):
        positions.append({
            "id": index,
            "deviceId": device_id,
            "fixTime": (start + timedelta(seconds=offset)).isoformat(),
            "valid": True,
            "speed": speed,
            "attributes": {"motion": motion, "ignition": ignition},
        })
    return positions


def main():
    with tempfile.TemporaryDirectory() as temp_dir:
        store = DeviceStore(str(Path(temp_dir) / "devices.db"))
        config = ConfigLoader.create(overrides={
            "attributes": {"report.idle.minimalDuration": 120}
        })
        pipeline = PositionPipeline(config=config, store=store)

        pipeline.register_device(Device(
            id=1,
            name="Delivery van",
            unique_id="356307042441013",
            attributes={"speedAdjustmentFactor": 1.05},
        ))

        start = datetime(2024, 5, 1, 8, 0, tzinfo=UTC)
        events = pipeline.process_positions(build_positions(1, start))

        print(f"\nDetected {len(events)} event(s)")
        for event in events:
            print(f"  {event.type} at {event.event_time.isoformat()} "
                  f"lasting {event.get('duration') / 1000:.0f}s")

        device = store.get_device(1)
        print(f"Stored idle columns: state={device.idle_state} "
              f"time={device.idle_time} position={device.idle_position_id}")


if __name__ == "__main__":
    main()
