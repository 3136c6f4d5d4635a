# skynet_client/db/skydb.py
"""
SkyDB: JSON Documents over the Registry

A document lives in two places:

    registry (pk, data key) ──► data = raw 34-byte skylink ──► blob {_data, _v: 2}

Write path (set_json):

    ┌─ upload wrapped blob ─────┐
    │                           ├─► next revision ─► sign ─► POST entry
    └─ get current entry ───────┘
         (concurrent, joined)

The read of the current revision and the registry POST are not atomic. A
concurrent writer that lands in between is overwritten or rejected by the
portal's strict revision check; nothing here serialises writers. Callers
that need serialisation per key must provide it themselves.

Deletion writes an all-zero skylink of the raw length. The slot stays
"found" at the registry layer while get_json reports no data.

Usage:
    db = client.db
    await db.set_json(private_key, "app/settings.json", {"theme": "dark"})
    resp = await db.get_json(public_key, "app/settings.json")
    resp.data       # {"theme": "dark"}
    resp.data_link  # sia://...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple

from ..crypto.keys import public_key_from_private_key
from ..errors import IntegrityError, RevisionExhaustedError, ValidationError
from ..options import ClientOptions, resolve_options
from ..registry.entry import (
    RegistryEntry,
    validate_data_key,
    validate_public_key,
)
from ..skylink.format import format_skylink
from ..skylink.sia import (
    BASE64_ENCODED_SKYLINK_SIZE,
    EMPTY_SKYLINK,
    RAW_SKYLINK_SIZE,
    decode_skylink,
    encode_skylink_base64,
)
from ..tasks import fork_join
from ..validation import (
    MAX_UINT64,
    serialize_json,
    throw_validation_error,
    validate_bytes,
    validate_hex_string,
    validate_object,
    validate_string,
)

if TYPE_CHECKING:
    from ..client import SkynetClient

logger = logging.getLogger("skynet.db")

# =============================================================================
# Constants
# =============================================================================

JSON_RESPONSE_VERSION: int = 2

# Raw entry data written through set_entry_data; leaves room for metadata
MAX_ENTRY_LENGTH: int = 70


# =============================================================================
# Response Types
# =============================================================================

@dataclass
class JSONResponse:
    """
    Document read/write result.

    data is None both when nothing is stored and when the cached data
    link still matches; data_link tells the two apart.
    """
    data: Optional[Dict[str, Any]] = None
    data_link: Optional[str] = None


@dataclass
class RawBytesResponse:
    data: Optional[bytes] = None
    data_link: Optional[str] = None


@dataclass
class EntryData:
    """Raw registry entry payload, None when absent or deleted."""
    data: Optional[bytes] = None


# =============================================================================
# Pure Helpers
# =============================================================================

def get_next_revision_from_entry(entry: Optional[RegistryEntry]) -> int:
    """
    0 for an absent entry, otherwise revision + 1.

    Raises:
        RevisionExhaustedError: entry already holds 2^64 - 1
    """
    if entry is None:
        return 0
    if entry.revision >= MAX_UINT64:
        raise RevisionExhaustedError(entry.revision)
    return entry.revision + 1


def build_skynet_json_object(data: Dict[str, Any]) -> Dict[str, Any]:
    return {"_data": data, "_v": JSON_RESPONSE_VERSION}


def parse_skynet_json_object(data: Any, data_key: str) -> Dict[str, Any]:
    """
    Unwrap a downloaded document.

    Current documents are {_data, _v}; anything else that is a JSON
    object is a legacy document and is returned unchanged.
    """
    if not isinstance(data, dict):
        raise IntegrityError(f"File data for the entry at data key '{data_key}' is not JSON.")
    if "_data" not in data or "_v" not in data:
        logger.warning("Legacy document format at data key '%s'", data_key)
        return data
    actual = data["_data"]
    if not isinstance(actual, dict):
        raise IntegrityError(
            f"File data '_data' for the entry at data key '{data_key}' is not JSON."
        )
    return actual


def parse_data_link(data: bytes, legacy: bool) -> str:
    """
    Bare base64 skylink from entry data.

    Accepts the raw 34-byte form, and with legacy=True also the 46-byte
    UTF-8 base64 string older clients stored.
    """
    if legacy and len(data) == BASE64_ENCODED_SKYLINK_SIZE:
        logger.warning("Entry data holds a legacy base64 skylink")
        try:
            raw_data_link = bytes(data).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise IntegrityError("Entry data is not a valid legacy skylink") from exc
        try:
            decode_skylink(raw_data_link)
        except ValidationError as exc:
            raise IntegrityError("Entry data is not a valid legacy skylink") from exc
        return raw_data_link
    if len(data) == RAW_SKYLINK_SIZE:
        return encode_skylink_base64(bytes(data))
    raise IntegrityError(
        f"Expected returned entry data 'entry.data' to be length {RAW_SKYLINK_SIZE} bytes, "
        f"was {len(data)} bytes"
    )


def decode_cached_data_link(cached_data_link: Optional[str]) -> Optional[bytes]:
    """
    Raw bytes of a caller-supplied cached data link, None if unset.

    Accepts any string form of the skylink. Raises ValidationError for a
    malformed link, so callers check it before any request is made.
    """
    if not cached_data_link:
        return None
    validate_string("cachedDataLink", cached_data_link, "optional parameter")
    return decode_skylink(cached_data_link)


def data_key_filename(data_key: str, hashed_data_key_hex: bool) -> str:
    """Upload filename for a document: dk:<hex>."""
    if hashed_data_key_hex:
        return f"dk:{data_key}"
    return f"dk:{data_key.encode('utf-8').hex()}"


def is_empty_entry_data(data: bytes) -> bool:
    return bytes(data) == EMPTY_SKYLINK


# =============================================================================
# SkyDB
# =============================================================================

class SkyDB:
    """SkyDB operations bound to a SkynetClient."""

    def __init__(self, client: "SkynetClient"):
        self._client = client

    def _resolve(self, opts: Optional[ClientOptions]) -> ClientOptions:
        return resolve_options(self._client.custom_options, opts)

    # -------------------------------------------------------------------------
    # JSON
    # -------------------------------------------------------------------------

    async def get_json(
        self,
        public_key: str,
        data_key: str,
        opts: Optional[ClientOptions] = None,
    ) -> JSONResponse:
        """
        Read the document at (public_key, data_key).

        Returns:
            JSONResponse(None, None) if never written or deleted;
            JSONResponse(None, link) if opts.cached_data_link is current;
            JSONResponse(doc, link) otherwise
        """
        opts = self._resolve(opts)
        validate_public_key("publicKey", public_key)
        validate_data_key(data_key, opts.hashed_data_key_hex)
        cached = decode_cached_data_link(opts.cached_data_link)

        data_link = await self._get_data_link(public_key, data_key, legacy=True, opts=opts)
        if data_link is None:
            return JSONResponse(data=None, data_link=None)
        if cached is not None and decode_skylink(data_link) == cached:
            logger.debug("Cached data link still current for '%s'", data_key)
            return JSONResponse(data=None, data_link=data_link)

        content = await self._client.get_file_content(data_link, opts)
        return JSONResponse(
            data=parse_skynet_json_object(content.data, data_key),
            data_link=data_link,
        )

    async def set_json(
        self,
        private_key: str,
        data_key: str,
        json_data: Dict[str, Any],
        opts: Optional[ClientOptions] = None,
    ) -> JSONResponse:
        """
        Upload json_data and point (public_key, data_key) at it.

        Raises:
            RevisionExhaustedError: The entry can never be updated again
        """
        opts = self._resolve(opts)
        validate_hex_string("privateKey", private_key, "parameter")
        validate_data_key(data_key, opts.hashed_data_key_hex)
        validate_object("json", json_data, "parameter")

        public_key = public_key_from_private_key(private_key)
        entry, data_link = await self.get_or_create_registry_entry(
            public_key, data_key, json_data, opts
        )
        await self._client.registry.set_entry(private_key, entry, opts)
        return JSONResponse(data=json_data, data_link=data_link)

    async def delete_json(
        self,
        private_key: str,
        data_key: str,
        opts: Optional[ClientOptions] = None,
    ) -> None:
        """Overwrite the entry with the empty skylink. No upload."""
        opts = self._resolve(opts)
        validate_hex_string("privateKey", private_key, "parameter")
        validate_data_key(data_key, opts.hashed_data_key_hex)

        public_key = public_key_from_private_key(private_key)
        entry = await self.get_next_registry_entry(public_key, data_key, EMPTY_SKYLINK, opts)
        await self._client.registry.set_entry(private_key, entry, opts)

    async def set_data_link(
        self,
        private_key: str,
        data_key: str,
        data_link: str,
        opts: Optional[ClientOptions] = None,
    ) -> None:
        """Point the entry at an existing skylink. No upload."""
        opts = self._resolve(opts)
        validate_hex_string("privateKey", private_key, "parameter")
        validate_data_key(data_key, opts.hashed_data_key_hex)
        validate_string("dataLink", data_link, "parameter")

        data = decode_skylink(data_link)
        public_key = public_key_from_private_key(private_key)
        entry = await self.get_next_registry_entry(public_key, data_key, data, opts)
        await self._client.registry.set_entry(private_key, entry, opts)

    # -------------------------------------------------------------------------
    # Entry Data
    # -------------------------------------------------------------------------

    async def get_entry_data(
        self,
        public_key: str,
        data_key: str,
        opts: Optional[ClientOptions] = None,
    ) -> EntryData:
        """Raw entry payload; None for absent and deleted entries."""
        opts = self._resolve(opts)
        signed = await self._client.registry.get_entry(public_key, data_key, opts)
        if signed.entry is None or is_empty_entry_data(signed.entry.data):
            return EntryData(data=None)
        return EntryData(data=signed.entry.data)

    async def set_entry_data(
        self,
        private_key: str,
        data_key: str,
        data: bytes,
        opts: Optional[ClientOptions] = None,
    ) -> EntryData:
        """Store up to MAX_ENTRY_LENGTH raw bytes directly in the entry."""
        opts = self._resolve(opts)
        validate_hex_string("privateKey", private_key, "parameter")
        validate_data_key(data_key, opts.hashed_data_key_hex)
        validate_entry_data(data, allow_deletion_entry_data=False)

        public_key = public_key_from_private_key(private_key)
        entry = await self.get_next_registry_entry(public_key, data_key, bytes(data), opts)
        await self._client.registry.set_entry(private_key, entry, opts)
        return EntryData(data=bytes(data))

    async def delete_entry_data(
        self,
        private_key: str,
        data_key: str,
        opts: Optional[ClientOptions] = None,
    ) -> None:
        await self.delete_json(private_key, data_key, opts)

    # -------------------------------------------------------------------------
    # Raw Bytes
    # -------------------------------------------------------------------------

    async def get_raw_bytes(
        self,
        public_key: str,
        data_key: str,
        opts: Optional[ClientOptions] = None,
    ) -> RawBytesResponse:
        """Like get_json, without the JSON wrapper and legacy entry data."""
        opts = self._resolve(opts)
        validate_public_key("publicKey", public_key)
        validate_data_key(data_key, opts.hashed_data_key_hex)
        cached = decode_cached_data_link(opts.cached_data_link)

        data_link = await self._get_data_link(public_key, data_key, legacy=False, opts=opts)
        if data_link is None:
            return RawBytesResponse(data=None, data_link=None)
        if cached is not None and decode_skylink(data_link) == cached:
            return RawBytesResponse(data=None, data_link=data_link)

        content = await self._client.get_file_content(data_link, opts, raw=True)
        return RawBytesResponse(data=content.data, data_link=data_link)

    # -------------------------------------------------------------------------
    # Read-Modify-Write Building Blocks
    # -------------------------------------------------------------------------

    async def get_next_registry_entry(
        self,
        public_key: str,
        data_key: str,
        data: bytes,
        opts: ClientOptions,
    ) -> RegistryEntry:
        """Unsigned entry carrying data at the next revision."""
        signed = await self._client.registry.get_entry(public_key, data_key, opts)
        revision = get_next_revision_from_entry(signed.entry)
        return RegistryEntry(data_key=data_key, data=bytes(data), revision=revision)

    async def get_or_create_registry_entry(
        self,
        public_key: str,
        data_key: str,
        json_data: Dict[str, Any],
        opts: ClientOptions,
    ) -> Tuple[RegistryEntry, str]:
        """Upload the wrapped document and build the next entry for it."""
        validate_object("json", json_data, "parameter")
        payload = serialize_json(
            "json", build_skynet_json_object(json_data), "parameter"
        ).encode("utf-8")
        return await self._upload_and_build_entry(
            public_key, data_key, payload, "application/json", opts
        )

    async def get_or_create_raw_bytes_registry_entry(
        self,
        public_key: str,
        data_key: str,
        data: bytes,
        opts: ClientOptions,
    ) -> Tuple[RegistryEntry, str]:
        validate_bytes("data", data, "parameter")
        return await self._upload_and_build_entry(
            public_key, data_key, bytes(data), "application/octet-stream", opts
        )

    async def _upload_and_build_entry(
        self,
        public_key: str,
        data_key: str,
        payload: bytes,
        content_type: str,
        opts: ClientOptions,
    ) -> Tuple[RegistryEntry, str]:
        filename = data_key_filename(data_key, opts.hashed_data_key_hex)

        # Fork-join: the upload and the revision lookup touch disjoint resources
        upload, signed = await fork_join(
            self._client.upload_file(payload, filename, content_type, opts),
            self._client.registry.get_entry(public_key, data_key, opts),
        )

        revision = get_next_revision_from_entry(signed.entry)
        entry = RegistryEntry(
            data_key=data_key,
            data=decode_skylink(upload.skylink),
            revision=revision,
        )
        return entry, format_skylink(upload.skylink)

    async def _get_data_link(
        self,
        public_key: str,
        data_key: str,
        legacy: bool,
        opts: ClientOptions,
    ) -> Optional[str]:
        """sia:// data link stored in the entry, None if absent or deleted."""
        signed = await self._client.registry.get_entry(public_key, data_key, opts)
        if signed.entry is None or is_empty_entry_data(signed.entry.data):
            return None
        return format_skylink(parse_data_link(signed.entry.data, legacy))


def validate_entry_data(data: Any, allow_deletion_entry_data: bool) -> None:
    validate_bytes("data", data, "parameter")
    if len(data) > MAX_ENTRY_LENGTH:
        throw_validation_error(
            "data", data, "parameter", f"data of length at most {MAX_ENTRY_LENGTH} bytes"
        )
    if not allow_deletion_entry_data and is_empty_entry_data(data):
        throw_validation_error(
            "data", data, "parameter", "not the empty skylink; use delete_entry_data instead"
        )
