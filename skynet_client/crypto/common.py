# skynet_client/crypto/common.py
"""
Skynet Crypto: Hashing and Sia Encoding

Wire Format Specification:
  - Integers: unsigned 64-bit little-endian ("<Q")
  - Byte strings: 8-byte little-endian length prefix followed by the bytes
  - Hash: BLAKE2b with a 32-byte digest over the concatenated inputs

These encodings are what the portal recomputes when it checks a registry
signature, so they are bit-exact, not a local convention.
"""

from __future__ import annotations

import hashlib
import struct
from typing import Protocol

from ..validation import validate_uint64

# =============================================================================
# Constants
# =============================================================================

HASH_LENGTH: int = 32


class HashableEntry(Protocol):
    data_key: str
    data: bytes
    revision: int


# =============================================================================
# Encoding
# =============================================================================

def encode_number(value: int) -> bytes:
    """Encode an unsigned 64-bit integer, little-endian."""
    validate_uint64("value", value, "number")
    return struct.pack("<Q", value)


def encode_prefixed_bytes(data: bytes) -> bytes:
    """Length-prefix the given bytes."""
    return struct.pack("<Q", len(data)) + bytes(data)


def encode_utf8_string(value: str) -> bytes:
    """Length-prefixed UTF-8 encoding of a string."""
    return encode_prefixed_bytes(value.encode("utf-8"))


# =============================================================================
# Hashing
# =============================================================================

def hash_all(*chunks: bytes) -> bytes:
    """Compute BLAKE2b-256 of concatenated inputs."""
    h = hashlib.blake2b(digest_size=HASH_LENGTH)
    for c in chunks:
        h.update(c)
    return h.digest()


def hash_data_key(data_key: str) -> bytes:
    """Canonical 32-byte hash of a plain-text data key."""
    return hash_all(encode_utf8_string(data_key))


def hash_registry_entry(entry: HashableEntry, hashed_data_key_hex: bool) -> bytes:
    """
    Digest that registry signatures are made over.

    H(data_key_hash || prefixed(data) || uint64_le(revision))

    When hashed_data_key_hex is set the data key is already the hex form of
    its hash and is decoded rather than hashed a second time.
    """
    if hashed_data_key_hex:
        data_key_bytes = bytes.fromhex(entry.data_key)
    else:
        data_key_bytes = hash_data_key(entry.data_key)
    return hash_all(
        data_key_bytes,
        encode_prefixed_bytes(entry.data),
        encode_number(entry.revision),
    )
