# skynet_client/crypto/keys.py
"""
Skynet Crypto: Ed25519 Key Pairs

Key layout follows NaCl:
    public key  32 bytes
    private key 64 bytes  (32-byte seed || public key)

Both are passed around as hex strings at the API boundary.

Usage:
    keys = gen_key_pair_from_seed("my secret seed")
    sig = sign(keys.private_key, digest)
    assert verify(keys.public_key, digest, sig)
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from ..validation import (
    throw_validation_error,
    validate_bytes_len,
    validate_hex_string,
    validate_string,
)
from .common import encode_utf8_string, hash_all

# =============================================================================
# Constants
# =============================================================================

PUBLIC_KEY_SIZE: int = 32
PRIVATE_KEY_SIZE: int = 64
SIGNATURE_SIZE: int = 64

# Shortest seed string accepted for deterministic key derivation
MIN_SEED_LENGTH: int = 8

PBKDF2_ITERATIONS: int = 1000


@dataclass(frozen=True)
class KeyPair:
    """Hex-encoded Ed25519 key pair."""
    public_key: str
    private_key: str


@dataclass(frozen=True)
class KeyPairAndSeed(KeyPair):
    seed: str = ""


# =============================================================================
# Derivation
# =============================================================================

def gen_key_pair_and_seed(length: int = 64) -> KeyPairAndSeed:
    """Generate a random seed of `length` bytes (hex) and its key pair."""
    seed = secrets.token_bytes(length).hex()
    keys = gen_key_pair_from_seed(seed)
    return KeyPairAndSeed(public_key=keys.public_key, private_key=keys.private_key, seed=seed)


def gen_key_pair_from_seed(seed: str) -> KeyPair:
    """
    Deterministically derive a key pair from a seed string.

    The seed is stretched with PBKDF2-HMAC-SHA256 (empty salt, 1000
    iterations) into the 32-byte Ed25519 seed.
    """
    validate_string("seed", seed, "parameter")
    if len(seed) < MIN_SEED_LENGTH:
        throw_validation_error(
            "seed", seed, "parameter", f"a string of at least {MIN_SEED_LENGTH} characters"
        )
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=b"",
        iterations=PBKDF2_ITERATIONS,
    )
    derived = kdf.derive(seed.encode("utf-8"))
    signing_key = SigningKey(derived)
    public_key = bytes(signing_key.verify_key)
    return KeyPair(
        public_key=public_key.hex(),
        private_key=(derived + public_key).hex(),
    )


def derive_child_seed(master_seed: str, seed: str) -> str:
    """Derive a child seed from a master seed, hex-encoded."""
    validate_string("masterSeed", master_seed, "parameter")
    validate_string("seed", seed, "parameter")
    return hash_all(encode_utf8_string(master_seed), encode_utf8_string(seed)).hex()


def public_key_from_private_key(private_key: str) -> str:
    """Recover the hex public key from a hex 64-byte private key."""
    return bytes(_signing_key(private_key).verify_key).hex()


# =============================================================================
# Signatures
# =============================================================================

def sign(private_key: str, digest: bytes) -> bytes:
    """Detached Ed25519 signature over digest."""
    return bytes(_signing_key(private_key).sign(digest).signature)


def verify(public_key: bytes, digest: bytes, signature: bytes) -> bool:
    """Check a detached Ed25519 signature. Never raises on a bad signature."""
    try:
        VerifyKey(bytes(public_key)).verify(bytes(digest), bytes(signature))
        return True
    except (BadSignatureError, ValueError):
        return False


def _signing_key(private_key: str) -> SigningKey:
    validate_hex_string("privateKey", private_key, "parameter")
    raw = bytes.fromhex(private_key)
    validate_bytes_len("privateKey", raw, "parameter", PRIVATE_KEY_SIZE)
    return SigningKey(raw[:32])
