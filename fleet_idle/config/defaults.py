"""Default configuration parameters for the idle detection pipeline."""

from dataclasses import dataclass

from .keys import ALL_KEYS


@dataclass(frozen=True)
class StorageParams:
    """Device storage parameters."""
    database: str = "devices.db"
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class LoggingParams:
    """Logging parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    attributes: dict
    storage: StorageParams
    logging: LoggingParams


def get_default_attributes() -> dict:
    """Built-in values of the globally configurable keys."""
    return {key.name: key.default for key in ALL_KEYS if not key.device_only}


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        attributes=get_default_attributes(),
        storage=StorageParams(),
        logging=LoggingParams(),
    )
