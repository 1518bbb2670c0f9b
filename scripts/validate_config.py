#!/usr/bin/env python3
"""Configuration validation script."""

import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fleet_idle.config.loader import ConfigLoader
from fleet_idle.config.validation import ConfigValidator
from fleet_idle.errors import ConfigurationError
from fleet_idle.persistence.device_store import DeviceStore


def main():
    """Validate server.yaml and, when the database exists, every device's overrides."""
    config_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else None

    print("Validating fleet idle configuration...")

    try:
        loader = ConfigLoader.create(config_dir)
    except ConfigurationError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    all_valid = True

    errors = ConfigValidator.validate_config(loader.settings)
    if errors:
        print(f"Found {len(errors)} validation errors in {loader.config_dir / 'server.yaml'}:")
        for error in errors:
            print(f"  - {error.field}: {error.message} (value: {error.value})")
        all_valid = False
    else:
        print("Global configuration is valid")

    database = Path(loader.section("storage").get("database", "devices.db"))
    if database.exists():
        store = DeviceStore(str(database))
        for device in store.get_devices():
            device_errors = ConfigValidator.validate_attributes(device.attributes)
            if device_errors:
                print(f"Device {device.id} ({device.name}) has invalid attributes:")
                for error in device_errors:
                    print(f"  - {error.field}: {error.message} (value: {error.value})")
                all_valid = False

    if all_valid:
        print("All configuration validation passed")
        sys.exit(0)
    else:
        print("Configuration validation failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
