"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

from .keys import (
    EVENT_MOTION_PROCESS_INVALID_POSITIONS,
    REPORT_IDLE_MINIMAL_DURATION,
    SPEED_ADJUSTMENT_FACTOR,
)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_attributes(params: dict[str, Any]) -> list[ValidationError]:
        """Validate idle-related attributes (global or per device)."""
        errors = []

        name = EVENT_MOTION_PROCESS_INVALID_POSITIONS.name
        if params.get(name) is not None:
            value = params[name]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field=name,
                    message="Must be a boolean",
                    value=value
                ))

        name = REPORT_IDLE_MINIMAL_DURATION.name
        if params.get(name) is not None:
            value = params[name]
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                errors.append(ValidationError(
                    field=name,
                    message="Must be a non-negative integer number of seconds",
                    value=value
                ))

        name = SPEED_ADJUSTMENT_FACTOR.name
        if params.get(name) is not None:
            value = params[name]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field=name,
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_storage_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate storage parameters."""
        errors = []

        if "database" in params:
            value = params["database"]
            if not isinstance(value, str) or not value:
                errors.append(ValidationError(
                    field="storage.database",
                    message="Must be a non-empty path",
                    value=value
                ))

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(ValidationError(
                    field="storage.timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in _LOG_LEVELS:
                errors.append(ValidationError(
                    field="logging.level",
                    message=f"Must be one of {', '.join(_LOG_LEVELS)}",
                    value=value
                ))

        if "format_json" in params:
            value = params["format_json"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="logging.format_json",
                    message="Must be a boolean",
                    value=value
                ))

        return errors

    @classmethod
    def validate_config(cls, config: dict[str, Any]) -> list[ValidationError]:
        """Validate a complete merged configuration."""
        errors = []

        if "attributes" in config:
            errors.extend(cls.validate_attributes(config["attributes"] or {}))

        if "storage" in config:
            errors.extend(cls.validate_storage_params(config["storage"] or {}))

        if "logging" in config:
            errors.extend(cls.validate_logging_params(config["logging"] or {}))

        return errors
