# skynet_client/registry/__init__.py
"""
Skynet Registry

Components:
    entry:  RegistryEntry / SignedRegistryEntry, validation, wire codec
    client: Registry (get/set/post entries), entry URLs and entry links
"""

from .entry import (
    ED25519_PREFIX,
    MAX_REGISTRY_ENTRY_DATA_SIZE,
    RegistryEntry,
    SignedRegistryEntry,
    data_key_to_hex,
    entry_from_wire,
    entry_to_wire,
    revision_from_wire,
    validate_public_key,
    validate_registry_entry,
)

from .client import (
    DEFAULT_GET_ENTRY_TIMEOUT,
    Registry,
    get_entry_link,
    get_entry_url_for_portal,
    sign_entry,
)

__all__ = [
    # Types
    "ED25519_PREFIX",
    "MAX_REGISTRY_ENTRY_DATA_SIZE",
    "RegistryEntry",
    "SignedRegistryEntry",
    # Codec
    "data_key_to_hex",
    "entry_from_wire",
    "entry_to_wire",
    "revision_from_wire",
    "validate_public_key",
    "validate_registry_entry",
    # Client
    "DEFAULT_GET_ENTRY_TIMEOUT",
    "Registry",
    "get_entry_link",
    "get_entry_url_for_portal",
    "sign_entry",
]
