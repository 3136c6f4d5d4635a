# tests/test_crypto.py
"""
Skynet Crypto Tests

    1. Key derivation
    2. Data key and entry hashing
    3. Signatures
"""

from __future__ import annotations

import hashlib
import struct

import pytest

from skynet_client.crypto import (
    derive_child_seed,
    encode_number,
    encode_prefixed_bytes,
    gen_key_pair_and_seed,
    gen_key_pair_from_seed,
    hash_all,
    hash_data_key,
    hash_registry_entry,
    public_key_from_private_key,
    sign,
    verify,
)
from skynet_client.errors import ValidationError
from skynet_client.registry import RegistryEntry
from skynet_client.validation import MAX_UINT64

SEED = "insecure test seed"


# =============================================================================
# 1. Key Derivation
# =============================================================================

def test_key_pair_from_seed_is_deterministic():
    """1.1: Same seed, same key pair; hex sizes are 32 and 64 bytes."""
    a = gen_key_pair_from_seed(SEED)
    b = gen_key_pair_from_seed(SEED)
    assert a == b
    assert len(a.public_key) == 64
    assert len(a.private_key) == 128
    assert a.private_key.endswith(a.public_key)


def test_different_seeds_give_different_keys():
    """1.2: Distinct seeds do not collide."""
    assert gen_key_pair_from_seed(SEED).public_key != gen_key_pair_from_seed(SEED + "!").public_key


def test_short_seed_is_rejected():
    """1.3: Seeds below the minimum length fail validation."""
    with pytest.raises(ValidationError):
        gen_key_pair_from_seed("short")


def test_random_key_pair_matches_its_seed():
    """1.4: gen_key_pair_and_seed returns the pair its seed derives."""
    keys = gen_key_pair_and_seed()
    again = gen_key_pair_from_seed(keys.seed)
    assert (again.public_key, again.private_key) == (keys.public_key, keys.private_key)


def test_public_key_from_private_key():
    """1.5: Public key is recoverable from the private key."""
    keys = gen_key_pair_from_seed(SEED)
    assert public_key_from_private_key(keys.private_key) == keys.public_key


def test_derive_child_seed():
    """1.6: Child seeds are deterministic and depend on both inputs."""
    child = derive_child_seed(SEED, "app")
    assert child == derive_child_seed(SEED, "app")
    assert child != derive_child_seed(SEED, "other")
    assert len(child) == 64


# =============================================================================
# 2. Hashing
# =============================================================================

def test_hash_data_key_layout():
    """2.1: H(u64le(len) || utf8(key))."""
    key = "app/settings.json"
    raw = key.encode("utf-8")
    expected = hashlib.blake2b(struct.pack("<Q", len(raw)) + raw, digest_size=32).digest()
    assert hash_data_key(key) == expected


def test_hash_registry_entry_layout():
    """2.2: H(datakey hash || prefixed(data) || u64le(revision))."""
    entry = RegistryEntry(data_key="foo", data=b"\x01\x02\x03", revision=11)
    expected = hash_all(
        hash_data_key("foo"),
        struct.pack("<Q", 3) + b"\x01\x02\x03",
        struct.pack("<Q", 11),
    )
    assert hash_registry_entry(entry, False) == expected


def test_hashed_data_key_hex_is_not_hashed_twice():
    """2.3: A pre-hashed hex key produces the same digest as the plain key."""
    plain = RegistryEntry(data_key="foo", data=b"x", revision=0)
    hashed = RegistryEntry(data_key=hash_data_key("foo").hex(), data=b"x", revision=0)
    assert hash_registry_entry(plain, False) == hash_registry_entry(hashed, True)
    assert hash_registry_entry(hashed, False) != hash_registry_entry(hashed, True)


def test_encode_number_range():
    """2.4: Only unsigned 64-bit integers encode."""
    assert encode_number(MAX_UINT64) == b"\xff" * 8
    with pytest.raises(ValidationError):
        encode_number(-1)
    with pytest.raises(ValidationError):
        encode_number(MAX_UINT64 + 1)
    with pytest.raises(ValidationError):
        encode_number(True)


def test_encode_prefixed_bytes():
    """2.5: Eight-byte little-endian length prefix."""
    assert encode_prefixed_bytes(b"ab") == b"\x02" + bytes(7) + b"ab"


# =============================================================================
# 3. Signatures
# =============================================================================

def test_sign_verify_round_trip():
    """3.1: A signature over the entry hash verifies."""
    keys = gen_key_pair_from_seed(SEED)
    entry = RegistryEntry(data_key="foo", data=b"hello", revision=3)
    digest = hash_registry_entry(entry, False)
    signature = sign(keys.private_key, digest)
    assert len(signature) == 64
    assert verify(bytes.fromhex(keys.public_key), digest, signature)


@pytest.mark.parametrize("index", [0, 2, 4])
def test_flipping_a_data_byte_breaks_the_signature(index):
    """3.2: Any change to entry data invalidates the signature."""
    keys = gen_key_pair_from_seed(SEED)
    entry = RegistryEntry(data_key="foo", data=b"hello", revision=3)
    signature = sign(keys.private_key, hash_registry_entry(entry, False))

    data = bytearray(entry.data)
    data[index] ^= 0x01
    tampered = RegistryEntry(data_key="foo", data=bytes(data), revision=3)
    assert not verify(
        bytes.fromhex(keys.public_key), hash_registry_entry(tampered, False), signature
    )


def test_changing_revision_breaks_the_signature():
    """3.3: The revision is covered by the signature."""
    keys = gen_key_pair_from_seed(SEED)
    entry = RegistryEntry(data_key="foo", data=b"hello", revision=3)
    signature = sign(keys.private_key, hash_registry_entry(entry, False))
    bumped = RegistryEntry(data_key="foo", data=b"hello", revision=4)
    assert not verify(bytes.fromhex(keys.public_key), hash_registry_entry(bumped, False), signature)


def test_verify_never_raises_on_garbage():
    """3.4: Malformed signatures just fail."""
    keys = gen_key_pair_from_seed(SEED)
    assert not verify(bytes.fromhex(keys.public_key), b"\x00" * 32, b"\x01" * 10)


def test_sign_rejects_malformed_private_key():
    """3.5: Private keys must be 64 bytes of hex."""
    with pytest.raises(ValidationError):
        sign("abcd", b"\x00" * 32)
    with pytest.raises(ValidationError):
        sign("zz" * 64, b"\x00" * 32)
