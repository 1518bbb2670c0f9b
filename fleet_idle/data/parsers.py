"""
Position payload parsers.

Converts JSON position payloads produced by the protocol decoders into
Position objects with proper type conversion and error handling.
"""

from typing import Any, Union

import orjson

from ..errors import MalformedDataError, MissingDataError
from ..utils.time import parse_timestamp
from .models import Position, _as_bool


def _parse_time(payload: dict[str, Any], key: str, required: bool = False):
    raw = payload.get(key)
    if raw is None:
        if required:
            raise MissingDataError(f"Position payload is missing '{key}'", field=key)
        return None
    try:
        return parse_timestamp(raw)
    except (TypeError, ValueError) as e:
        raise MalformedDataError(
            f"Invalid timestamp in '{key}': {e}",
            raw_data=str(raw),
            expected_format="ISO-8601 string or epoch milliseconds"
        ) from e


def _parse_float(payload: dict[str, Any], key: str, default=None):
    raw = payload.get(key)
    if raw is None:
        return default
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise MalformedDataError(
            f"Invalid number in '{key}'",
            raw_data=str(raw),
            expected_format="number"
        ) from e


def parse_position_dict(payload: dict[str, Any]) -> Position:
    """
    Build a Position from an already decoded payload mapping.

    Args:
        payload: Mapping with deviceId, fixTime and optional fields

    Returns:
        Normalized Position

    Raises:
        MissingDataError: If deviceId or fixTime is absent
        MalformedDataError: If a field has the wrong type
    """
    if not isinstance(payload, dict):
        raise MalformedDataError(
            "Position payload must be an object",
            raw_data=str(payload)[:200],
            expected_format="object"
        )

    device_id = payload.get("deviceId")
    if device_id is None:
        raise MissingDataError("Position payload is missing 'deviceId'", field="deviceId")

    attributes = payload.get("attributes") or {}
    if not isinstance(attributes, dict):
        raise MalformedDataError(
            "Position attributes must be an object",
            raw_data=str(attributes)[:200],
            expected_format="object"
        )

    try:
        position_id = int(payload.get("id") or 0)
        device_id = int(device_id)
    except (TypeError, ValueError) as e:
        raise MalformedDataError(
            "Position identifiers must be integers",
            raw_data=str(payload)[:200],
            expected_format="integer"
        ) from e

    return Position(
        id=position_id,
        device_id=device_id,
        fix_time=_parse_time(payload, "fixTime", required=True),
        device_time=_parse_time(payload, "deviceTime"),
        server_time=_parse_time(payload, "serverTime"),
        valid=_as_bool(payload.get("valid", True)),
        speed=_parse_float(payload, "speed", 0.0),
        latitude=_parse_float(payload, "latitude"),
        longitude=_parse_float(payload, "longitude"),
        attributes=dict(attributes),
    )


def parse_position(raw: Union[bytes, str, dict[str, Any]]) -> Position:
    """
    Parse a JSON position payload.

    Args:
        raw: JSON bytes/text or an already decoded mapping

    Returns:
        Normalized Position
    """
    if isinstance(raw, dict):
        return parse_position_dict(raw)

    try:
        payload = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise MalformedDataError(
            f"Invalid JSON position payload: {e}",
            raw_data=str(raw)[:200],
            expected_format="JSON object"
        ) from e

    return parse_position_dict(payload)


def parse_positions(raw: Union[bytes, str]) -> list[Position]:
    """Parse a JSON array of position payloads."""
    try:
        payload = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise MalformedDataError(
            f"Invalid JSON position payload: {e}",
            raw_data=str(raw)[:200],
            expected_format="JSON array"
        ) from e

    if not isinstance(payload, list):
        payload = [payload]
    return [parse_position_dict(item) for item in payload]
