# skynet_client/__init__.py
"""
Skynet Client

Python client for Skynet portals: content-addressed uploads and
downloads, signed mutable registry entries, the SkyDB JSON document
store built on them, and MySky user-identity sessions.

Quick Start:
    import asyncio
    from skynet_client import SkynetClient, gen_key_pair_from_seed

    async def main():
        client = SkynetClient("https://siasky.net")
        keys = gen_key_pair_from_seed("this seed was chosen by a fair dice roll")
        await client.db.set_json(keys.private_key, "app.json", {"hello": "world"})
        resp = await client.db.get_json(keys.public_key, "app.json")
        print(resp.data, resp.data_link)

    asyncio.run(main())
"""

__version__ = "0.1.0"

from .errors import (
    IntegrityError,
    InvalidSignatureError,
    PermissionDeniedError,
    RevisionExhaustedError,
    SkynetError,
    TransportError,
    ValidationError,
)

from .options import (
    DEFAULT_OPTIONS,
    ClientOptions,
    resolve_options,
)

from .crypto import (
    KeyPair,
    KeyPairAndSeed,
    derive_child_seed,
    gen_key_pair_and_seed,
    gen_key_pair_from_seed,
    hash_data_key,
    hash_registry_entry,
)

from .skylink import (
    EMPTY_SKYLINK,
    RAW_SKYLINK_SIZE,
    Skylink,
    convert_skylink_to_base32,
    convert_skylink_to_base64,
    decode_skylink,
    format_skylink,
    parse_skylink,
)

from .registry import (
    Registry,
    RegistryEntry,
    SignedRegistryEntry,
    get_entry_link,
    get_entry_url_for_portal,
    sign_entry,
)

from .db import (
    JSONResponse,
    RawBytesResponse,
    SkyDB,
    get_next_revision_from_entry,
)

from .mysky import (
    MySky,
    MySkyDelegate,
    PermCategory,
    Permission,
    PermType,
    SeedDelegate,
)

from .transport import (
    HTTPResponse,
    HTTPTransport,
    HttpxTransport,
    MockHTTPTransport,
)

from .client import (
    DEFAULT_PORTAL_URL,
    GetFileContentResponse,
    SkynetClient,
    UploadResponse,
    get_skylink_url_for_portal,
)

__all__ = [
    "__version__",
    # Errors
    "IntegrityError",
    "InvalidSignatureError",
    "PermissionDeniedError",
    "RevisionExhaustedError",
    "SkynetError",
    "TransportError",
    "ValidationError",
    # Options
    "DEFAULT_OPTIONS",
    "ClientOptions",
    "resolve_options",
    # Crypto
    "KeyPair",
    "KeyPairAndSeed",
    "derive_child_seed",
    "gen_key_pair_and_seed",
    "gen_key_pair_from_seed",
    "hash_data_key",
    "hash_registry_entry",
    # Skylinks
    "EMPTY_SKYLINK",
    "RAW_SKYLINK_SIZE",
    "Skylink",
    "convert_skylink_to_base32",
    "convert_skylink_to_base64",
    "decode_skylink",
    "format_skylink",
    "parse_skylink",
    # Registry
    "Registry",
    "RegistryEntry",
    "SignedRegistryEntry",
    "get_entry_link",
    "get_entry_url_for_portal",
    "sign_entry",
    # SkyDB
    "JSONResponse",
    "RawBytesResponse",
    "SkyDB",
    "get_next_revision_from_entry",
    # MySky
    "MySky",
    "MySkyDelegate",
    "PermCategory",
    "Permission",
    "PermType",
    "SeedDelegate",
    # Transport
    "HTTPResponse",
    "HTTPTransport",
    "HttpxTransport",
    "MockHTTPTransport",
    # Client
    "DEFAULT_PORTAL_URL",
    "GetFileContentResponse",
    "SkynetClient",
    "UploadResponse",
    "get_skylink_url_for_portal",
]
