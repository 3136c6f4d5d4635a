# skynet_client/validation.py
"""
Input validation helpers.

All helpers raise ValidationError and never touch the network, so public
operations call them first and fail fast on caller bugs.
"""

from __future__ import annotations

import json
from typing import Any

from .errors import ValidationError
from .utils import is_hex_string

MAX_UINT64: int = (1 << 64) - 1


def throw_validation_error(name: str, value: Any, value_kind: str, expected: str) -> None:
    raise ValidationError(name, value, value_kind, expected)


def validate_string(name: str, value: Any, value_kind: str) -> None:
    if not isinstance(value, str):
        throw_validation_error(name, value, value_kind, "type 'str'")


def validate_string_len(name: str, value: Any, value_kind: str, length: int) -> None:
    validate_string(name, value, value_kind)
    if len(value) != length:
        throw_validation_error(name, value, value_kind, f"type 'str' of length {length}")


def validate_hex_string(name: str, value: Any, value_kind: str) -> None:
    validate_string(name, value, value_kind)
    if not is_hex_string(value):
        throw_validation_error(name, value, value_kind, "a hex-encoded string")


def validate_bytes(name: str, value: Any, value_kind: str) -> None:
    if not isinstance(value, (bytes, bytearray)):
        throw_validation_error(name, value, value_kind, "type 'bytes'")


def validate_bytes_len(name: str, value: Any, value_kind: str, length: int) -> None:
    validate_bytes(name, value, value_kind)
    if len(value) != length:
        throw_validation_error(name, value, value_kind, f"type 'bytes' of length {length}")


def validate_object(name: str, value: Any, value_kind: str) -> None:
    """JSON documents must be JSON objects (dicts)."""
    if not isinstance(value, dict):
        throw_validation_error(name, value, value_kind, "a JSON object")


def validate_uint64(name: str, value: Any, value_kind: str) -> None:
    # bool is an int subclass; reject it explicitly
    if not isinstance(value, int) or isinstance(value, bool):
        throw_validation_error(name, value, value_kind, "type 'int'")
    if value < 0 or value > MAX_UINT64:
        throw_validation_error(name, value, value_kind, "an unsigned 64-bit integer")


def validate_boolean(name: str, value: Any, value_kind: str) -> None:
    if not isinstance(value, bool):
        throw_validation_error(name, value, value_kind, "type 'bool'")


def serialize_json(name: str, value: Any, value_kind: str) -> str:
    """
    Strict JSON text for value.

    NaN and Infinity are refused because they are not JSON, and other
    portals and clients cannot parse documents that contain them.
    """
    try:
        return json.dumps(value, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            name, value, value_kind, "JSON-serializable, without NaN or Infinity"
        ) from exc
