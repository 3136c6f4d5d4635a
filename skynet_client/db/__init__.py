# skynet_client/db/__init__.py
"""SkyDB document store."""

from .skydb import (
    JSON_RESPONSE_VERSION,
    MAX_ENTRY_LENGTH,
    EntryData,
    JSONResponse,
    RawBytesResponse,
    SkyDB,
    build_skynet_json_object,
    data_key_filename,
    decode_cached_data_link,
    get_next_revision_from_entry,
    parse_data_link,
    parse_skynet_json_object,
    validate_entry_data,
)

__all__ = [
    "JSON_RESPONSE_VERSION",
    "MAX_ENTRY_LENGTH",
    "EntryData",
    "JSONResponse",
    "RawBytesResponse",
    "SkyDB",
    "build_skynet_json_object",
    "data_key_filename",
    "decode_cached_data_link",
    "get_next_revision_from_entry",
    "parse_data_link",
    "parse_skynet_json_object",
    "validate_entry_data",
]
