# skynet_client/mysky/__init__.py
"""
MySky Identity Layer

Components:
    core:            MySky session, delegate interface, permissions
    delegate:        SeedDelegate (in-process seed holder)
    tweak:           discoverable path -> data key
    encrypted_files: hidden path seeds, keys, padded secretbox files
"""

from .core import (
    EncryptedJSONResponse,
    MySky,
    MySkyDelegate,
    PermCategory,
    Permission,
    PermissionsResponse,
    PermType,
    load_mysky,
)

from .delegate import SeedDelegate

from .tweak import (
    DiscoverableBucketTweak,
    derive_discoverable_file_tweak,
    get_path_domain,
)

from .encrypted_files import (
    ENCRYPTED_JSON_RESPONSE_VERSION,
    EncryptedFileMetadata,
    check_padded_block,
    decrypt_json_file,
    derive_encrypted_file_key_entropy,
    derive_encrypted_file_tweak,
    derive_encrypted_path_seed,
    derive_root_path_seed,
    encrypt_json_file,
    pad_file_size,
)

__all__ = [
    # Session
    "EncryptedJSONResponse",
    "MySky",
    "MySkyDelegate",
    "PermCategory",
    "Permission",
    "PermissionsResponse",
    "PermType",
    "SeedDelegate",
    "load_mysky",
    # Tweaks
    "DiscoverableBucketTweak",
    "derive_discoverable_file_tweak",
    "get_path_domain",
    # Encrypted files
    "ENCRYPTED_JSON_RESPONSE_VERSION",
    "EncryptedFileMetadata",
    "check_padded_block",
    "decrypt_json_file",
    "derive_encrypted_file_key_entropy",
    "derive_encrypted_file_tweak",
    "derive_encrypted_path_seed",
    "derive_root_path_seed",
    "encrypt_json_file",
    "pad_file_size",
]
