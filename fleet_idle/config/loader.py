"""Configuration loader with device override over global configuration."""

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import yaml

from ..errors import ConfigurationError
from .defaults import DefaultConfig, get_default_config
from .keys import ConfigKey

if TYPE_CHECKING:
    from ..data.models import Device


_TRUE_STRINGS = ("true", "1", "yes", "on")
_FALSE_STRINGS = ("false", "0", "no", "off", "")


@dataclass(frozen=True)
class ConfigLoader:
    """Loads server configuration and resolves per-device attributes."""

    config_dir: Path
    defaults: DefaultConfig
    settings: dict[str, Any]

    @classmethod
    def create(
        cls,
        config_dir: Optional[Path] = None,
        overrides: Optional[dict[str, Any]] = None
    ) -> "ConfigLoader":
        """Create a ConfigLoader from config_dir/server.yaml merged over defaults."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"
        config_dir = Path(config_dir)

        defaults = get_default_config()
        settings = cls._dataclass_to_dict(defaults)
        settings = cls._deep_merge(settings, cls.load_server_config(config_dir))
        if overrides:
            settings = cls._deep_merge(settings, overrides)

        return cls(
            config_dir=config_dir,
            defaults=defaults,
            settings=settings,
        )

    @staticmethod
    def load_server_config(config_dir: Path) -> dict[str, Any]:
        """Load server.yaml, returning an empty mapping when it does not exist."""
        server_file = Path(config_dir) / "server.yaml"

        if not server_file.exists():
            return {}

        try:
            with open(server_file) as f:
                server_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Unable to read configuration file {server_file}: {e}",
                context={"path": str(server_file)}
            ) from e

        if server_config is None:
            return {}
        if not isinstance(server_config, dict):
            raise ConfigurationError(
                f"Configuration file {server_file} must contain a mapping",
                context={"path": str(server_file)}
            )
        return server_config

    def section(self, name: str) -> dict[str, Any]:
        """Get a top-level configuration section such as storage or logging."""
        return self.settings.get(name, {}) or {}

    def get_global(self, key: ConfigKey) -> Any:
        """Resolve a key from global configuration, falling back to its default."""
        if key.device_only:
            return key.default
        value = self.section("attributes").get(key.name)
        if value is None:
            return key.default
        return self.coerce(key, value)

    def lookup(self, key: ConfigKey, device: Optional["Device"] = None) -> Any:
        """
        Resolve a configuration key for a device.

        Priority order:
        1. Device attribute override (highest priority)
        2. Global configuration
        3. Built-in key default (lowest priority)
        """
        if device is not None:
            value = device.attributes.get(key.name)
            if value is not None:
                return self.coerce(key, value)
        return self.get_global(key)

    @staticmethod
    def coerce(key: ConfigKey, value: Any) -> Any:
        """Convert a raw configuration value to the key's type."""
        try:
            if key.value_type is bool:
                if isinstance(value, bool):
                    return value
                if isinstance(value, str):
                    text = value.strip().lower()
                    if text in _TRUE_STRINGS:
                        return True
                    if text in _FALSE_STRINGS:
                        return False
                    raise ValueError(f"not a boolean: {value!r}")
                return bool(value)
            if key.value_type is int:
                if isinstance(value, bool):
                    raise ValueError(f"not an integer: {value!r}")
                return int(float(value))
            return key.value_type(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid value for {key.name}: {value!r}",
                field=key.name
            ) from e

    @classmethod
    def _dataclass_to_dict(cls, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = cls._dataclass_to_dict(value)
                elif isinstance(value, dict):
                    result[field_name] = dict(value)
                else:
                    result[field_name] = value
            return result
        return obj  # type: ignore[no-any-return]

    @classmethod
    def _deep_merge(cls, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = cls._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
