# skynet_client/skylink/__init__.py
"""
Skylink Codec

Components:
    sia:    34-byte binary layout, v1/v2 construction, base64/base32
    format: canonical sia:// strings, encoding conversion
    parse:  skylink extraction from URIs, URLs and subdomains
"""

from .sia import (
    BASE32_ENCODED_SKYLINK_SIZE,
    BASE64_ENCODED_SKYLINK_SIZE,
    EMPTY_SKYLINK,
    RAW_SKYLINK_SIZE,
    URI_SKYNET_PREFIX,
    SiaPublicKey,
    Skylink,
    decode_skylink,
    decode_skylink_base32,
    decode_skylink_base64,
    derive_registry_entry_id,
    encode_skylink_base32,
    encode_skylink_base64,
    new_ed25519_public_key,
    new_skylink_v1,
    new_skylink_v2,
    new_specifier,
)

from .format import (
    convert_skylink_to_base32,
    convert_skylink_to_base64,
    format_skylink,
)

from .parse import parse_skylink

__all__ = [
    # Layout
    "BASE32_ENCODED_SKYLINK_SIZE",
    "BASE64_ENCODED_SKYLINK_SIZE",
    "EMPTY_SKYLINK",
    "RAW_SKYLINK_SIZE",
    "URI_SKYNET_PREFIX",
    "SiaPublicKey",
    "Skylink",
    "derive_registry_entry_id",
    "new_ed25519_public_key",
    "new_skylink_v1",
    "new_skylink_v2",
    "new_specifier",
    # Encoding
    "decode_skylink",
    "decode_skylink_base32",
    "decode_skylink_base64",
    "encode_skylink_base32",
    "encode_skylink_base64",
    "convert_skylink_to_base32",
    "convert_skylink_to_base64",
    "format_skylink",
    # Parsing
    "parse_skylink",
]
