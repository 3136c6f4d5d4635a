# skynet_client/crypto/__init__.py
"""
Skynet Crypto Layer

Components:
    common: BLAKE2b hashing and Sia binary encodings
    keys:   Ed25519 key pairs, detached sign/verify (PyNaCl)
"""

from .common import (
    HASH_LENGTH,
    encode_number,
    encode_prefixed_bytes,
    encode_utf8_string,
    hash_all,
    hash_data_key,
    hash_registry_entry,
)

from .keys import (
    KeyPair,
    KeyPairAndSeed,
    MIN_SEED_LENGTH,
    PRIVATE_KEY_SIZE,
    PUBLIC_KEY_SIZE,
    SIGNATURE_SIZE,
    derive_child_seed,
    gen_key_pair_and_seed,
    gen_key_pair_from_seed,
    public_key_from_private_key,
    sign,
    verify,
)

__all__ = [
    # Hashing
    "HASH_LENGTH",
    "encode_number",
    "encode_prefixed_bytes",
    "encode_utf8_string",
    "hash_all",
    "hash_data_key",
    "hash_registry_entry",
    # Keys
    "KeyPair",
    "KeyPairAndSeed",
    "MIN_SEED_LENGTH",
    "PRIVATE_KEY_SIZE",
    "PUBLIC_KEY_SIZE",
    "SIGNATURE_SIZE",
    "derive_child_seed",
    "gen_key_pair_and_seed",
    "gen_key_pair_from_seed",
    "public_key_from_private_key",
    "sign",
    "verify",
]
