# skynet_client/skylink/sia.py
"""
Skylink Binary Layout

A skylink is 34 raw bytes:

    ┌──────────────┬──────────────────────────────────────┐
    │ bitfield u16 │ merkle root / entry ID (32 bytes)    │
    │  (LE, 2 B)   │                                      │
    └──────────────┴──────────────────────────────────────┘

Bitfield (version 1):
    bits 0-1   version - 1 (0)
    next k+1   mode: k one-bits terminated by a zero-bit (k in 0..7)
    next 3     fetch size, in units of the mode alignment
    remaining  offset, in units of the mode alignment

    alignment = 4096 << mode
    fetch     = (bits + 1) * alignment, plus 4 * alignment when mode > 0

Version 2 skylinks have bitfield 1 and carry the registry entry ID
H(sia_public_key || tweak) instead of a merkle root; they resolve to
whatever the registry entry currently points at.

String forms:
    base64   46 chars, URL-safe alphabet, no padding
    base32   55 chars, RFC 4648 "hex" alphabet, lowercase, no padding
"""

from __future__ import annotations

import base64
import re
import struct
from dataclasses import dataclass
from typing import Tuple

from ..crypto.common import HASH_LENGTH, encode_number, hash_all
from ..crypto.keys import PUBLIC_KEY_SIZE
from ..errors import ValidationError
from ..utils import trim_uri_prefix
from ..validation import (
    throw_validation_error,
    validate_bytes_len,
    validate_hex_string,
    validate_string,
)

# =============================================================================
# Constants
# =============================================================================

RAW_SKYLINK_SIZE: int = 34
BASE64_ENCODED_SKYLINK_SIZE: int = 46
BASE32_ENCODED_SKYLINK_SIZE: int = 55

# Deletion sentinel written to registry entries by SkyDB
EMPTY_SKYLINK: bytes = bytes(RAW_SKYLINK_SIZE)

URI_SKYNET_PREFIX: str = "sia://"

SPECIFIER_LEN: int = 16

MAX_FETCH_SIZE: int = 1 << 22  # 4 MiB
_BASE_ALIGN: int = 4096
_MAX_MODE: int = 7

_BASE64_RE = re.compile(r"^[a-zA-Z0-9_-]{46}$")
_BASE32_RE = re.compile(r"^[0-9a-vA-V]{55}$")


# =============================================================================
# Encodings
# =============================================================================

def encode_skylink_base64(raw: bytes) -> str:
    validate_bytes_len("raw", raw, "parameter", RAW_SKYLINK_SIZE)
    return base64.urlsafe_b64encode(bytes(raw)).decode("ascii").rstrip("=")


def decode_skylink_base64(encoded: str) -> bytes:
    validate_string("encoded", encoded, "parameter")
    if not _BASE64_RE.match(encoded):
        throw_validation_error("encoded", encoded, "parameter", "a base64 skylink of length 46")
    raw = base64.urlsafe_b64decode(encoded + "==")
    validate_bytes_len("raw", raw, "decoded skylink", RAW_SKYLINK_SIZE)
    return raw


def encode_skylink_base32(raw: bytes) -> str:
    validate_bytes_len("raw", raw, "parameter", RAW_SKYLINK_SIZE)
    return base64.b32hexencode(bytes(raw)).decode("ascii").rstrip("=").lower()


def decode_skylink_base32(encoded: str) -> bytes:
    validate_string("encoded", encoded, "parameter")
    if not _BASE32_RE.match(encoded):
        throw_validation_error("encoded", encoded, "parameter", "a base32 skylink of length 55")
    raw = base64.b32hexdecode(encoded.upper() + "=")
    validate_bytes_len("raw", raw, "decoded skylink", RAW_SKYLINK_SIZE)
    return raw


def decode_skylink(encoded: str) -> bytes:
    """
    Decode a skylink string of either encoding, with or without the sia:
    prefix, into its 34 raw bytes.
    """
    validate_string("encoded", encoded, "parameter")
    encoded = trim_uri_prefix(encoded, URI_SKYNET_PREFIX)
    if len(encoded) == BASE32_ENCODED_SKYLINK_SIZE:
        return decode_skylink_base32(encoded)
    if len(encoded) == BASE64_ENCODED_SKYLINK_SIZE:
        return decode_skylink_base64(encoded)
    raise ValidationError("encoded", encoded, "parameter", "a skylink of length 46 or 55")


# =============================================================================
# Public Keys
# =============================================================================

def new_specifier(name: str) -> bytes:
    """Zero-padded 16-byte type specifier."""
    raw = name.encode("utf-8")
    if len(raw) > SPECIFIER_LEN:
        raise ValidationError("name", name, "parameter", f"at most {SPECIFIER_LEN} bytes")
    return raw + bytes(SPECIFIER_LEN - len(raw))


@dataclass(frozen=True)
class SiaPublicKey:
    algorithm: bytes
    key: bytes

    def marshal_sia(self) -> bytes:
        """specifier(16) || u64 key length || key"""
        return self.algorithm + encode_number(len(self.key)) + self.key


def new_ed25519_public_key(public_key: str) -> SiaPublicKey:
    validate_hex_string("publicKey", public_key, "parameter")
    key = bytes.fromhex(public_key)
    validate_bytes_len("publicKey", key, "parameter", PUBLIC_KEY_SIZE)
    return SiaPublicKey(algorithm=new_specifier("ed25519"), key=key)


# =============================================================================
# Skylink
# =============================================================================

@dataclass(frozen=True)
class Skylink:
    """Parsed 34-byte skylink."""
    bitfield: int
    merkle_root: bytes

    @property
    def version(self) -> int:
        return (self.bitfield & 3) + 1

    def to_bytes(self) -> bytes:
        return struct.pack("<H", self.bitfield) + self.merkle_root

    def to_string(self) -> str:
        return encode_skylink_base64(self.to_bytes())

    def to_base32(self) -> str:
        return encode_skylink_base32(self.to_bytes())

    def __str__(self) -> str:
        return self.to_string()

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Skylink":
        validate_bytes_len("raw", raw, "parameter", RAW_SKYLINK_SIZE)
        (bitfield,) = struct.unpack("<H", bytes(raw[:2]))
        return cls(bitfield=bitfield, merkle_root=bytes(raw[2:]))

    @classmethod
    def from_string(cls, encoded: str) -> "Skylink":
        return cls.from_bytes(decode_skylink(encoded))

    def offset_and_fetch_size(self) -> Tuple[int, int]:
        """Offset and fetch size encoded in a version 1 bitfield."""
        if self.version != 1:
            raise ValidationError("bitfield", self.bitfield, "skylink field", "a version 1 bitfield")
        bitfield = self.bitfield >> 2

        mode = 0
        while bitfield & 1:
            mode += 1
            bitfield >>= 1
        if mode > _MAX_MODE:
            raise ValidationError("bitfield", self.bitfield, "skylink field", "a valid mode")
        bitfield >>= 1

        align = _BASE_ALIGN << mode
        fetch_size = ((bitfield & 7) + 1) * align
        if mode > 0:
            fetch_size += align << 2
        bitfield >>= 3

        offset = bitfield * align
        if offset + fetch_size > MAX_FETCH_SIZE:
            raise ValidationError(
                "bitfield", self.bitfield, "skylink field", "an offset and fetch size within 4 MiB"
            )
        return offset, fetch_size


def new_skylink_v1(merkle_root: bytes, offset: int, fetch_size: int) -> Skylink:
    """
    Build a version 1 skylink for data at [offset, offset + fetch_size).

    fetch_size is rounded up to the next size the bitfield can express;
    offset must be aligned to the chosen mode.
    """
    validate_bytes_len("merkleRoot", merkle_root, "parameter", HASH_LENGTH)
    if fetch_size <= 0 or offset < 0 or offset + fetch_size > MAX_FETCH_SIZE:
        raise ValidationError(
            "fetchSize", fetch_size, "parameter", "positive, with offset + fetch size within 4 MiB"
        )

    for mode in range(_MAX_MODE + 1):
        align = _BASE_ALIGN << mode
        base = (align << 2) if mode > 0 else 0
        if fetch_size <= base + 8 * align:
            break
    else:
        raise ValidationError("fetchSize", fetch_size, "parameter", "expressible in a bitfield")

    fetch_bits = max(0, -(-(fetch_size - base) // align) - 1)
    if offset % align != 0:
        raise ValidationError("offset", offset, "parameter", f"aligned to {align} bytes")
    offset_units = offset // align
    if offset_units >= 1 << (10 - mode):
        raise ValidationError("offset", offset, "parameter", "expressible in a bitfield")

    bitfield = (
        (offset_units << (mode + 6))
        | (fetch_bits << (mode + 3))
        | (((1 << mode) - 1) << 2)
    )
    return Skylink(bitfield=bitfield, merkle_root=bytes(merkle_root))


def derive_registry_entry_id(public_key: SiaPublicKey, tweak: bytes) -> bytes:
    return hash_all(public_key.marshal_sia(), tweak)


def new_skylink_v2(public_key: SiaPublicKey, tweak: bytes) -> Skylink:
    """Skylink pointing at the registry entry (public_key, tweak)."""
    validate_bytes_len("tweak", tweak, "parameter", HASH_LENGTH)
    return Skylink(bitfield=1, merkle_root=derive_registry_entry_id(public_key, bytes(tweak)))
