# skynet_client/mysky/tweak.py
"""
MySky discoverable-file data keys.

A path maps to a registry data key through a versioned bucket tweak:

    components = trim_slashes(path).split("/")
    encoding   = [version=1] || H(component_1) || ... || H(component_n)
    data key   = hex(H(encoding))

H is BLAKE2b-256 over the raw UTF-8 component, no length prefix. The
result is already a hash, so callers set hashed_data_key_hex.
"""

from __future__ import annotations

from typing import List

from ..crypto.common import hash_all
from ..utils import trim_forward_slash
from ..validation import validate_string

DISCOVERABLE_BUCKET_TWEAK_VERSION: int = 1


class DiscoverableBucketTweak:
    """Hashed path components of a discoverable file."""

    def __init__(self, path: str):
        self.version = DISCOVERABLE_BUCKET_TWEAK_VERSION
        self.path: List[bytes] = [hash_path_component(p) for p in split_path(path)]

    def encode(self) -> bytes:
        return bytes([self.version]) + b"".join(self.path)

    def get_hash(self) -> bytes:
        return hash_all(self.encode())


def split_path(path: str) -> List[str]:
    return trim_forward_slash(path).split("/")


def hash_path_component(component: str) -> bytes:
    return hash_all(component.encode("utf-8"))


def derive_discoverable_file_tweak(path: str) -> str:
    """Hex data key for a discoverable file path."""
    validate_string("path", path, "parameter")
    return DiscoverableBucketTweak(path).get_hash().hex()


def get_path_domain(path: str) -> str:
    """First path component, the skapp domain that owns the path."""
    return split_path(path)[0]
