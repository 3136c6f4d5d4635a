# skynet_client/skylink/format.py
"""
Canonical skylink strings and base32/base64 conversion.
"""

from __future__ import annotations

from ..utils import trim_uri_prefix
from ..validation import validate_string
from .sia import (
    URI_SKYNET_PREFIX,
    decode_skylink_base32,
    decode_skylink_base64,
    encode_skylink_base32,
    encode_skylink_base64,
)


def format_skylink(skylink: str) -> str:
    """Prefix a skylink with sia:// unless empty or already prefixed."""
    validate_string("skylink", skylink, "parameter")
    if skylink == "":
        return skylink
    if not skylink.startswith(URI_SKYNET_PREFIX):
        skylink = f"{URI_SKYNET_PREFIX}{skylink}"
    return skylink


def convert_skylink_to_base32(skylink: str) -> str:
    """base64 (optionally sia: prefixed) -> lowercase base32."""
    validate_string("skylink", skylink, "parameter")
    raw = decode_skylink_base64(trim_uri_prefix(skylink, URI_SKYNET_PREFIX))
    return encode_skylink_base32(raw)


def convert_skylink_to_base64(skylink: str) -> str:
    """base32 (optionally sia: prefixed) -> URL-safe base64."""
    validate_string("skylink", skylink, "parameter")
    raw = decode_skylink_base32(trim_uri_prefix(skylink, URI_SKYNET_PREFIX))
    return encode_skylink_base64(raw)
