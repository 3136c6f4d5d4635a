# skynet_client/mysky/core.py
"""
MySky: User Identity Sessions

MySky lets a skapp read and write a user's data without ever holding the
user's private key. All signing goes through a MySkyDelegate, which may
ask the user, check permissions, and refuse:

    skapp ──► MySky session ──► build unsigned entry (SkyDB primitives)
                   │
                   ├──► delegate.sign_registry_entry(entry, path)   may deny
                   │
                   └──► registry.post_signed_entry(user_id, entry, signature)

Data keys are derived from paths (tweak.py, encrypted_files.py) and are
already hashes, so every call runs with hashed_data_key_hex=True.

A session is an explicit handle. Nothing is cached at module level; open
as many sessions as needed.

Usage:
    mysky = await client.load_mysky("app.hns", SeedDelegate(seed))
    if not await mysky.check_login():
        await mysky.request_login_access()
    await mysky.set_json("app.hns/settings.json", {"theme": "dark"})
    await mysky.set_json_encrypted("app.hns/notes.json", {"text": "..."})
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from ..db.skydb import EntryData, JSONResponse, validate_entry_data
from ..options import ClientOptions, resolve_options
from ..registry.client import get_entry_link
from ..registry.entry import RegistryEntry
from ..skylink.sia import EMPTY_SKYLINK, decode_skylink
from ..tasks import fork_join
from ..validation import validate_boolean, validate_object, validate_string
from .encrypted_files import (
    ENCRYPTED_JSON_RESPONSE_VERSION,
    EncryptedFileMetadata,
    decrypt_json_file,
    derive_encrypted_file_key_entropy,
    derive_encrypted_file_tweak,
    encrypt_json_file,
)
from .tweak import derive_discoverable_file_tweak

if TYPE_CHECKING:
    from ..client import SkynetClient

logger = logging.getLogger("skynet.mysky")

# =============================================================================
# Permissions
# =============================================================================

class PermCategory(IntEnum):
    """Kind of data a permission covers."""
    DISCOVERABLE = 1
    HIDDEN = 2
    LEGACY_SKYID = 3


class PermType(IntEnum):
    READ = 4
    WRITE = 5


@dataclass(frozen=True)
class Permission:
    """
    Grant for `requestor` to access data under `path`.

    Attributes:
        requestor: Domain of the skapp asking
        path: Domain (first path component) the data lives under
        category: Discoverable, hidden or legacy SkyID data
        perm_type: Read or write
    """
    requestor: str
    path: str
    category: PermCategory
    perm_type: PermType


@dataclass
class PermissionsResponse:
    granted_permissions: List[Permission] = field(default_factory=list)
    failed_permissions: List[Permission] = field(default_factory=list)


@dataclass
class EncryptedJSONResponse:
    data: Optional[Dict[str, Any]] = None


# =============================================================================
# Delegate (Abstract)
# =============================================================================

class MySkyDelegate(ABC):
    """
    Holder of the user seed.

    Implementations decide whether to grant permissions and sign. Refusals
    raise PermissionDeniedError.
    """

    @abstractmethod
    async def check_login(self, permissions: List[Permission]) -> Tuple[bool, PermissionsResponse]:
        """Silent login check: (seed found, granted/failed permissions)."""
        pass

    @abstractmethod
    async def request_login_access(
        self, permissions: List[Permission]
    ) -> Tuple[bool, PermissionsResponse]:
        """Interactive login and permission request."""
        pass

    @abstractmethod
    async def logout(self) -> None:
        pass

    @abstractmethod
    async def user_id(self) -> str:
        """Hex public key of the logged-in user."""
        pass

    @abstractmethod
    async def sign_registry_entry(self, entry: RegistryEntry, path: str) -> bytes:
        """Sign a discoverable entry; needs discoverable write on path."""
        pass

    @abstractmethod
    async def sign_encrypted_registry_entry(self, entry: RegistryEntry, path: str) -> bytes:
        """Sign a hidden entry; needs hidden write on path."""
        pass

    @abstractmethod
    async def get_encrypted_file_seed(self, path: str, is_directory: bool) -> str:
        """Hex path seed; needs hidden read on path."""
        pass


# =============================================================================
# MySky Session
# =============================================================================

class MySky:
    """Session binding a client, a delegate and a skapp's permissions."""

    def __init__(
        self,
        client: "SkynetClient",
        delegate: MySkyDelegate,
        permissions: List[Permission],
        host_domain: str,
    ):
        self.client = client
        self.delegate = delegate
        self.host_domain = host_domain
        self.granted_permissions: List[Permission] = []
        self.pending_permissions: List[Permission] = list(permissions)

    def _resolve(self, opts: Optional[ClientOptions]) -> ClientOptions:
        # Path-derived data keys are hashes already
        return resolve_options(self.client.custom_options, opts).with_overrides(
            hashed_data_key_hex=True
        )

    # -------------------------------------------------------------------------
    # Login / Permissions
    # -------------------------------------------------------------------------

    async def add_permissions(self, *permissions: Permission) -> None:
        self.pending_permissions.extend(permissions)

    async def check_login(self) -> bool:
        seed_found, response = await self.delegate.check_login(self.pending_permissions)
        return self._handle_permissions(seed_found, response)

    async def request_login_access(self) -> bool:
        seed_found, response = await self.delegate.request_login_access(self.pending_permissions)
        return self._handle_permissions(seed_found, response)

    async def logout(self) -> None:
        await self.delegate.logout()

    def _handle_permissions(self, seed_found: bool, response: PermissionsResponse) -> bool:
        for perm in response.granted_permissions:
            if perm not in self.granted_permissions:
                self.granted_permissions.append(perm)
        self.pending_permissions = list(response.failed_permissions)
        logged_in = seed_found and not self.pending_permissions
        logger.debug(
            "Login for %s: logged_in=%s pending=%d",
            self.host_domain, logged_in, len(self.pending_permissions),
        )
        return logged_in

    async def user_id(self) -> str:
        return await self.delegate.user_id()

    # -------------------------------------------------------------------------
    # Discoverable Data
    # -------------------------------------------------------------------------

    async def get_json(self, path: str, opts: Optional[ClientOptions] = None) -> JSONResponse:
        validate_string("path", path, "parameter")
        opts = self._resolve(opts)
        public_key = await self.user_id()
        data_key = derive_discoverable_file_tweak(path)
        return await self.client.db.get_json(public_key, data_key, opts)

    async def get_entry_link(self, path: str) -> str:
        """v2 skylink for path; stable across content changes."""
        validate_string("path", path, "parameter")
        public_key = await self.user_id()
        data_key = derive_discoverable_file_tweak(path)
        return get_entry_link(public_key, data_key, ClientOptions(hashed_data_key_hex=True))

    async def set_json(
        self,
        path: str,
        json_data: Dict[str, Any],
        opts: Optional[ClientOptions] = None,
    ) -> JSONResponse:
        validate_string("path", path, "parameter")
        validate_object("json", json_data, "parameter")
        opts = self._resolve(opts)

        public_key = await self.user_id()
        data_key = derive_discoverable_file_tweak(path)
        entry, data_link = await self.client.db.get_or_create_registry_entry(
            public_key, data_key, json_data, opts
        )
        signature = await self.sign_registry_entry(entry, path)
        await self.client.registry.post_signed_entry(public_key, entry, signature, opts)
        return JSONResponse(data=json_data, data_link=data_link)

    async def set_data_link(
        self,
        path: str,
        data_link: str,
        opts: Optional[ClientOptions] = None,
    ) -> None:
        validate_string("path", path, "parameter")
        validate_string("dataLink", data_link, "parameter")
        await self._set_discoverable_entry(path, decode_skylink(data_link), opts)

    async def delete_json(self, path: str, opts: Optional[ClientOptions] = None) -> None:
        validate_string("path", path, "parameter")
        await self._set_discoverable_entry(path, EMPTY_SKYLINK, opts)

    async def get_entry_data(self, path: str, opts: Optional[ClientOptions] = None) -> EntryData:
        validate_string("path", path, "parameter")
        opts = self._resolve(opts)
        public_key = await self.user_id()
        data_key = derive_discoverable_file_tweak(path)
        return await self.client.db.get_entry_data(public_key, data_key, opts)

    async def set_entry_data(
        self,
        path: str,
        data: bytes,
        opts: Optional[ClientOptions] = None,
    ) -> EntryData:
        """Store up to 70 raw bytes directly in the entry at path."""
        validate_string("path", path, "parameter")
        validate_entry_data(data, allow_deletion_entry_data=False)
        await self._set_discoverable_entry(path, bytes(data), opts)
        return EntryData(data=bytes(data))

    async def delete_entry_data(self, path: str, opts: Optional[ClientOptions] = None) -> None:
        validate_string("path", path, "parameter")
        await self._set_discoverable_entry(path, EMPTY_SKYLINK, opts)

    async def _set_discoverable_entry(
        self,
        path: str,
        data: bytes,
        opts: Optional[ClientOptions],
    ) -> None:
        opts = self._resolve(opts)
        public_key = await self.user_id()
        data_key = derive_discoverable_file_tweak(path)
        entry = await self.client.db.get_next_registry_entry(public_key, data_key, data, opts)
        signature = await self.sign_registry_entry(entry, path)
        await self.client.registry.post_signed_entry(public_key, entry, signature, opts)

    # -------------------------------------------------------------------------
    # Hidden (Encrypted) Data
    # -------------------------------------------------------------------------

    async def get_encrypted_path_seed(self, path: str, is_directory: bool) -> str:
        """Shareable path seed; pass a file seed to client.file.get_json_encrypted."""
        validate_string("path", path, "parameter")
        validate_boolean("isDirectory", is_directory, "parameter")
        return await self.delegate.get_encrypted_file_seed(path, is_directory)

    async def get_json_encrypted(
        self,
        path: str,
        opts: Optional[ClientOptions] = None,
    ) -> EncryptedJSONResponse:
        validate_string("path", path, "parameter")
        opts = self._resolve(opts)

        public_key, path_seed = await fork_join(
            self.user_id(),
            self.get_encrypted_path_seed(path, False),
        )
        data_key = derive_encrypted_file_tweak(path_seed)
        raw = await self.client.db.get_raw_bytes(public_key, data_key, opts)
        if raw.data is None:
            return EncryptedJSONResponse(data=None)

        key = derive_encrypted_file_key_entropy(path_seed)
        return EncryptedJSONResponse(data=decrypt_json_file(raw.data, key))

    async def set_json_encrypted(
        self,
        path: str,
        json_data: Dict[str, Any],
        opts: Optional[ClientOptions] = None,
    ) -> EncryptedJSONResponse:
        validate_string("path", path, "parameter")
        validate_object("json", json_data, "parameter")
        opts = self._resolve(opts)

        public_key, path_seed = await fork_join(
            self.user_id(),
            self.get_encrypted_path_seed(path, False),
        )
        data_key = derive_encrypted_file_tweak(path_seed)
        key = derive_encrypted_file_key_entropy(path_seed)

        data = encrypt_json_file(
            json_data, EncryptedFileMetadata(version=ENCRYPTED_JSON_RESPONSE_VERSION), key
        )
        entry, _ = await self.client.db.get_or_create_raw_bytes_registry_entry(
            public_key, data_key, data, opts
        )
        signature = await self.sign_encrypted_registry_entry(entry, path)
        await self.client.registry.post_signed_entry(public_key, entry, signature, opts)
        return EncryptedJSONResponse(data=json_data)

    # -------------------------------------------------------------------------
    # Signing
    # -------------------------------------------------------------------------

    async def sign_registry_entry(self, entry: RegistryEntry, path: str) -> bytes:
        return await self.delegate.sign_registry_entry(entry, path)

    async def sign_encrypted_registry_entry(self, entry: RegistryEntry, path: str) -> bytes:
        return await self.delegate.sign_encrypted_registry_entry(entry, path)


async def load_mysky(
    client: "SkynetClient",
    skapp_domain: str,
    delegate: MySkyDelegate,
    host_domain: Optional[str] = None,
) -> MySky:
    """
    Open a session. Does not log the user in.

    The skapp asks for discoverable write plus hidden read/write on its
    own domain.
    """
    validate_string("skappDomain", skapp_domain, "parameter")
    host = host_domain or skapp_domain
    permissions: List[Permission] = []
    if skapp_domain:
        permissions = [
            Permission(host, skapp_domain, PermCategory.DISCOVERABLE, PermType.WRITE),
            Permission(host, skapp_domain, PermCategory.HIDDEN, PermType.READ),
            Permission(host, skapp_domain, PermCategory.HIDDEN, PermType.WRITE),
        ]
    return MySky(client, delegate, permissions, host)
