# skynet_client/mysky/encrypted_files.py
"""
MySky Hidden (Encrypted) Files

Path seeds:
    Every path has a secret seed derived from its parent's seed, so sharing
    a directory seed shares everything beneath it and nothing above:

        child = SHA512(SALT_ENCRYPTED_CHILD || SHA512(parent || is_dir || name))

    Seeds are truncated to 64 bytes for directories, 32 bytes for files.

Keys from a file path seed (seed passed as its hex string, UTF-8):
    tweak  = SHA512(SHA512(SALT_ENCRYPTED_TWEAK) || SHA512(seed))[:32]
    key    = SHA512(SHA512(SALT_ENCRYPTION)      || SHA512(seed))[:32]

File layout:

    ┌──────────┬─────────────────────┬──────────────────────────────┐
    │ nonce 24 │ metadata 16 (v = 1) │ secretbox(padded JSON) + MAC │
    └──────────┴─────────────────────┴──────────────────────────────┘

The total length is padded to a block boundary so ciphertext sizes leak
only a coarse bucket: up to (2^n)*80 KiB the block is (2^n)*4 KiB.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any, Dict

from nacl.exceptions import CryptoError
from nacl.secret import SecretBox
from nacl.utils import random as random_bytes

from ..errors import IntegrityError, ValidationError
from ..validation import (
    serialize_json,
    throw_validation_error,
    validate_bytes,
    validate_bytes_len,
    validate_hex_string,
    validate_object,
    validate_string,
)

# =============================================================================
# Constants
# =============================================================================

ENCRYPTED_JSON_RESPONSE_VERSION: int = 1

ENCRYPTION_KEY_LENGTH: int = 32
ENCRYPTION_NONCE_LENGTH: int = 24
ENCRYPTION_OVERHEAD_LENGTH: int = 16
ENCRYPTION_HIDDEN_FIELD_METADATA_LENGTH: int = 16

ENCRYPTION_PATH_SEED_DIRECTORY_LENGTH: int = 64
ENCRYPTION_PATH_SEED_FILE_LENGTH: int = 32

SALT_ENCRYPTED_CHILD: bytes = b"encrypted filesystem child"
SALT_ENCRYPTED_TWEAK: bytes = b"encrypted filesystem tweak"
SALT_ENCRYPTION: bytes = b"encryption"
SALT_ROOT_PATH_SEED: bytes = b"root path seed"

_KIB = 1 << 10


@dataclass(frozen=True)
class EncryptedFileMetadata:
    version: int = ENCRYPTED_JSON_RESPONSE_VERSION


def _sha512(*chunks: bytes) -> bytes:
    h = hashlib.sha512()
    for c in chunks:
        h.update(c)
    return h.digest()


# =============================================================================
# Derivation
# =============================================================================

def derive_root_path_seed(user_seed: bytes) -> str:
    """Hex directory seed at the root of a user's hidden filesystem."""
    validate_bytes("userSeed", user_seed, "parameter")
    return _sha512(SALT_ROOT_PATH_SEED, bytes(user_seed))[:ENCRYPTION_PATH_SEED_DIRECTORY_LENGTH].hex()


def derive_encrypted_path_seed(path_seed: str, sub_path: str, is_directory: bool) -> str:
    """
    Seed for sub_path beneath the directory whose seed is path_seed.

    Every component but the last is a directory; the last is a directory
    only when is_directory is set.
    """
    validate_hex_string("pathSeed", path_seed, "parameter")
    validate_string("subPath", sub_path, "parameter")
    if len(path_seed) != ENCRYPTION_PATH_SEED_DIRECTORY_LENGTH * 2:
        throw_validation_error(
            "pathSeed", path_seed, "parameter",
            f"a directory path seed of length {ENCRYPTION_PATH_SEED_DIRECTORY_LENGTH * 2}",
        )

    seed = bytes.fromhex(path_seed)
    names = sub_path.split("/")
    for index, name in enumerate(names):
        directory = is_directory if index == len(names) - 1 else True
        derivation_path = _sha512(seed, bytes([1 if directory else 0]), name.encode("utf-8"))
        seed = _sha512(SALT_ENCRYPTED_CHILD, derivation_path)

    length = ENCRYPTION_PATH_SEED_DIRECTORY_LENGTH if is_directory else ENCRYPTION_PATH_SEED_FILE_LENGTH
    return seed[:length].hex()


def derive_encrypted_file_tweak(path_seed: str) -> str:
    """Hex registry data key for a hidden file."""
    validate_hex_string("pathSeed", path_seed, "parameter")
    hashed = _sha512(_sha512(SALT_ENCRYPTED_TWEAK), _sha512(path_seed.encode("utf-8")))
    return hashed[:32].hex()


def derive_encrypted_file_key_entropy(path_seed: str) -> bytes:
    """32-byte secretbox key for a hidden file."""
    validate_hex_string("pathSeed", path_seed, "parameter")
    hashed = _sha512(_sha512(SALT_ENCRYPTION), _sha512(path_seed.encode("utf-8")))
    return hashed[:ENCRYPTION_KEY_LENGTH]


# =============================================================================
# Padding
# =============================================================================

def pad_file_size(initial_size: int) -> int:
    """Round initial_size up to its padding block."""
    for n in range(53):
        if initial_size <= (1 << n) * 80 * _KIB:
            block = (1 << n) * 4 * _KIB
            if initial_size % block == 0:
                return initial_size
            return initial_size - (initial_size % block) + block
    raise ValidationError("initialSize", initial_size, "parameter", "a size that can be padded")


def check_padded_block(size: int) -> bool:
    for n in range(53):
        if size <= (1 << n) * 80 * _KIB:
            return size % ((1 << n) * 4 * _KIB) == 0
    raise ValidationError("size", size, "parameter", "a size that can be padded")


# =============================================================================
# Metadata
# =============================================================================

def encode_encrypted_file_metadata(metadata: EncryptedFileMetadata) -> bytes:
    if not 0 <= metadata.version <= 255:
        raise ValidationError("metadata.version", metadata.version, "parameter", "a single byte")
    return bytes([metadata.version]) + bytes(ENCRYPTION_HIDDEN_FIELD_METADATA_LENGTH - 1)


def decode_encrypted_file_metadata(raw: bytes) -> EncryptedFileMetadata:
    validate_bytes_len("metadata", raw, "parameter", ENCRYPTION_HIDDEN_FIELD_METADATA_LENGTH)
    return EncryptedFileMetadata(version=raw[0])


# =============================================================================
# Encrypt / Decrypt
# =============================================================================

def encrypt_json_file(
    json_data: Dict[str, Any],
    metadata: EncryptedFileMetadata,
    key: bytes,
) -> bytes:
    """Serialize, pad and seal json_data."""
    validate_object("json", json_data, "parameter")
    validate_bytes_len("key", key, "parameter", ENCRYPTION_KEY_LENGTH)

    data = serialize_json("json", json_data, "parameter").encode("utf-8")
    overhead = (
        ENCRYPTION_OVERHEAD_LENGTH + ENCRYPTION_NONCE_LENGTH + ENCRYPTION_HIDDEN_FIELD_METADATA_LENGTH
    )
    final_size = pad_file_size(len(data) + overhead) - overhead
    data = data + bytes(final_size - len(data))

    nonce = random_bytes(ENCRYPTION_NONCE_LENGTH)
    sealed = SecretBox(bytes(key)).encrypt(data, nonce)
    return nonce + encode_encrypted_file_metadata(metadata) + sealed.ciphertext


def decrypt_json_file(data: bytes, key: bytes) -> Dict[str, Any]:
    """
    Open a file produced by encrypt_json_file.

    Raises:
        IntegrityError: Bad padding, unknown version, failed MAC or bad JSON
    """
    validate_bytes("data", data, "parameter")
    validate_bytes_len("key", key, "parameter", ENCRYPTION_KEY_LENGTH)

    if not check_padded_block(len(data)):
        raise IntegrityError(
            f"Expected parameter 'data' to be padded encrypted data, length was "
            f"'{len(data)}', nearest padded block is '{pad_file_size(len(data))}'"
        )

    nonce = bytes(data[:ENCRYPTION_NONCE_LENGTH])
    rest = bytes(data[ENCRYPTION_NONCE_LENGTH:])
    metadata = decode_encrypted_file_metadata(rest[:ENCRYPTION_HIDDEN_FIELD_METADATA_LENGTH])
    ciphertext = rest[ENCRYPTION_HIDDEN_FIELD_METADATA_LENGTH:]
    if metadata.version != ENCRYPTED_JSON_RESPONSE_VERSION:
        raise IntegrityError(
            f"Received unrecognized JSON response version '{metadata.version}' in metadata, "
            f"expected '{ENCRYPTED_JSON_RESPONSE_VERSION}'"
        )

    try:
        plaintext = SecretBox(bytes(key)).decrypt(ciphertext, nonce)
    except CryptoError as exc:
        raise IntegrityError("Could not decrypt given encrypted JSON file") from exc

    plaintext = plaintext.rstrip(b"\x00")
    try:
        decoded = json.loads(plaintext.decode("utf-8"))
    except ValueError as exc:
        raise IntegrityError("Decrypted file is not valid JSON") from exc
    if not isinstance(decoded, dict):
        raise IntegrityError("Decrypted file is not a JSON object")
    return decoded
