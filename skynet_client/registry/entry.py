# skynet_client/registry/entry.py
"""
Registry Entry Types and Wire Codec

An entry is addressed by (public key, data key) and carries up to 113
bytes of data plus a revision that only ever increases.

Wire format (portal /skynet/registry):

    GET response  {"data": hex, "revision": "<u64>" | <u64>, "signature": hex}
    POST body     {"publickey": {"algorithm": "ed25519", "key": [u8...]},
                   "datakey": hex, "revision": <u64 literal>,
                   "data": [u8...], "signature": [u8...]}

Python ints are arbitrary precision, so the revision travels as a bare
decimal literal through the json module without any string surgery;
revision_from_wire also accepts the quoted form older portals send.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..crypto.common import hash_data_key
from ..crypto.keys import PUBLIC_KEY_SIZE, SIGNATURE_SIZE
from ..errors import IntegrityError
from ..utils import trim_prefix
from ..validation import (
    MAX_UINT64,
    throw_validation_error,
    validate_bytes,
    validate_bytes_len,
    validate_hex_string,
    validate_string,
    validate_uint64,
)

ED25519_PREFIX: str = "ed25519:"

# Largest payload the portal stores in a single entry
MAX_REGISTRY_ENTRY_DATA_SIZE: int = 113

_DECIMAL_RE = re.compile(r"[0-9]+")

INCOMPLETE_ENTRY_MESSAGE: str = (
    "Did not get a complete entry response despite a successful request. "
    "Please try again and report this issue to the devs if it persists."
)


@dataclass(frozen=True)
class RegistryEntry:
    """
    Unsigned registry entry.

    Attributes:
        data_key: Plain-text key, or the hex hash of one when the
            hashed_data_key_hex option is set
        data: Entry payload, usually a raw 34-byte skylink
        revision: Unsigned 64-bit revision
    """
    data_key: str
    data: bytes
    revision: int


@dataclass(frozen=True)
class SignedRegistryEntry:
    """Entry with its signature. Both are None when nothing is stored."""
    entry: Optional[RegistryEntry] = None
    signature: Optional[bytes] = None

    @property
    def found(self) -> bool:
        return self.entry is not None


# =============================================================================
# Validation
# =============================================================================

def validate_public_key(name: str, public_key: Any, value_kind: str = "parameter") -> str:
    """Validate a hex Ed25519 public key, accepting an ed25519: prefix; return bare hex."""
    validate_string(name, public_key, value_kind)
    key = trim_prefix(public_key, ED25519_PREFIX)
    validate_hex_string(name, key, value_kind)
    if len(key) != PUBLIC_KEY_SIZE * 2:
        throw_validation_error(
            name, public_key, value_kind, f"a hex-encoded {PUBLIC_KEY_SIZE}-byte public key"
        )
    return key


def validate_registry_entry(name: str, entry: Any, value_kind: str = "parameter") -> None:
    if not isinstance(entry, RegistryEntry):
        throw_validation_error(name, entry, value_kind, "type 'RegistryEntry'")
    validate_string(f"{name}.data_key", entry.data_key, f"{value_kind} field")
    validate_bytes(f"{name}.data", entry.data, f"{value_kind} field")
    if len(entry.data) > MAX_REGISTRY_ENTRY_DATA_SIZE:
        throw_validation_error(
            f"{name}.data",
            entry.data,
            f"{value_kind} field",
            f"at most {MAX_REGISTRY_ENTRY_DATA_SIZE} bytes",
        )
    validate_uint64(f"{name}.revision", entry.revision, f"{value_kind} field")


def validate_data_key(data_key: Any, hashed_data_key_hex: bool) -> None:
    if hashed_data_key_hex:
        validate_hex_string("dataKey", data_key, "parameter")
    else:
        validate_string("dataKey", data_key, "parameter")


def data_key_to_hex(data_key: str, hashed_data_key_hex: bool) -> str:
    """Data key as sent on the wire: the given hex, or the hex of its hash."""
    if hashed_data_key_hex:
        return data_key
    return hash_data_key(data_key).hex()


# =============================================================================
# Wire Codec
# =============================================================================

def revision_from_wire(value: Any) -> int:
    """
    Decode a revision sent as a JSON integer or an ASCII decimal string.

    Raises:
        IntegrityError: Anything that is not an unsigned 64-bit integer
    """
    if isinstance(value, bool):
        raise IntegrityError(INCOMPLETE_ENTRY_MESSAGE)
    if isinstance(value, str):
        if not _DECIMAL_RE.fullmatch(value):
            raise IntegrityError(INCOMPLETE_ENTRY_MESSAGE)
        value = int(value)
    if not isinstance(value, int):
        raise IntegrityError(INCOMPLETE_ENTRY_MESSAGE)
    if value < 0 or value > MAX_UINT64:
        raise IntegrityError(f"Returned revision {value} is not an unsigned 64-bit integer")
    return value


def entry_from_wire(body: Any, data_key: str) -> Tuple[RegistryEntry, bytes]:
    """Parse a registry GET body into the entry and its raw signature."""
    if not isinstance(body, dict):
        raise IntegrityError(INCOMPLETE_ENTRY_MESSAGE)
    data = body.get("data")
    revision = body.get("revision")
    signature = body.get("signature")
    if not isinstance(data, str) or not isinstance(signature, str) or revision is None:
        raise IntegrityError(INCOMPLETE_ENTRY_MESSAGE)

    try:
        data_bytes = bytes.fromhex(data)
        signature_bytes = bytes.fromhex(signature)
    except ValueError as exc:
        raise IntegrityError(INCOMPLETE_ENTRY_MESSAGE) from exc

    entry = RegistryEntry(
        data_key=data_key,
        data=data_bytes,
        revision=revision_from_wire(revision),
    )
    return entry, signature_bytes


def entry_to_wire(
    public_key: str,
    entry: RegistryEntry,
    signature: bytes,
    hashed_data_key_hex: bool,
) -> Dict[str, Any]:
    """Registry POST body for a signed entry."""
    validate_bytes_len("signature", signature, "parameter", SIGNATURE_SIZE)
    return {
        "publickey": {
            "algorithm": "ed25519",
            "key": list(bytes.fromhex(public_key)),
        },
        "datakey": data_key_to_hex(entry.data_key, hashed_data_key_hex),
        "revision": entry.revision,
        "data": list(entry.data),
        "signature": list(signature),
    }
