# skynet_client/file.py
"""
Public File API

Read-only access to data written through MySky, addressed by user ID and
path. No delegate and no login: discoverable data is public, and hidden
data opens with a path seed its owner chose to share.

Usage:
    resp = await client.file.get_json(user_id, "app.hns/profile.json")
    link = client.file.get_entry_link(user_id, "app.hns/profile.json")
    secret = await client.file.get_json_encrypted(user_id, path_seed)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .db.skydb import EntryData, JSONResponse
from .mysky.core import EncryptedJSONResponse
from .mysky.encrypted_files import (
    ENCRYPTION_PATH_SEED_FILE_LENGTH,
    decrypt_json_file,
    derive_encrypted_file_key_entropy,
    derive_encrypted_file_tweak,
)
from .mysky.tweak import derive_discoverable_file_tweak
from .options import ClientOptions, resolve_options
from .registry.client import get_entry_link
from .validation import validate_string, validate_string_len

if TYPE_CHECKING:
    from .client import SkynetClient


class File:
    """File API bound to a SkynetClient."""

    def __init__(self, client: "SkynetClient"):
        self._client = client

    def _resolve(self, opts: Optional[ClientOptions]) -> ClientOptions:
        return resolve_options(self._client.custom_options, opts).with_overrides(
            hashed_data_key_hex=True
        )

    async def get_json(
        self,
        user_id: str,
        path: str,
        opts: Optional[ClientOptions] = None,
    ) -> JSONResponse:
        """Discoverable JSON that user_id stored at path."""
        validate_string("userID", user_id, "parameter")
        validate_string("path", path, "parameter")
        data_key = derive_discoverable_file_tweak(path)
        return await self._client.db.get_json(user_id, data_key, self._resolve(opts))

    def get_entry_link(self, user_id: str, path: str) -> str:
        validate_string("userID", user_id, "parameter")
        validate_string("path", path, "parameter")
        data_key = derive_discoverable_file_tweak(path)
        return get_entry_link(user_id, data_key, ClientOptions(hashed_data_key_hex=True))

    async def get_entry_data(
        self,
        user_id: str,
        path: str,
        opts: Optional[ClientOptions] = None,
    ) -> EntryData:
        validate_string("userID", user_id, "parameter")
        validate_string("path", path, "parameter")
        data_key = derive_discoverable_file_tweak(path)
        return await self._client.db.get_entry_data(user_id, data_key, self._resolve(opts))

    async def get_json_encrypted(
        self,
        user_id: str,
        path_seed: str,
        opts: Optional[ClientOptions] = None,
    ) -> EncryptedJSONResponse:
        """Decrypt the hidden file whose (file) path seed was shared."""
        validate_string("userID", user_id, "parameter")
        validate_string_len("pathSeed", path_seed, "parameter", ENCRYPTION_PATH_SEED_FILE_LENGTH * 2)

        data_key = derive_encrypted_file_tweak(path_seed)
        raw = await self._client.db.get_raw_bytes(user_id, data_key, self._resolve(opts))
        if raw.data is None:
            return EncryptedJSONResponse(data=None)
        key = derive_encrypted_file_key_entropy(path_seed)
        return EncryptedJSONResponse(data=decrypt_json_file(raw.data, key))
