# skynet_client/mysky/delegate.py
"""
In-process MySky delegate backed by a user seed.

The seed is the single source of truth:
    seed ──PBKDF2──► Ed25519 key pair   (user ID = public key)
    seed ──SHA512──► root path seed     (hidden filesystem)

Signing requests are checked against granted permissions by the domain
that owns the path (its first component), and the entry's data key must
be the one the path derives to, so a skapp cannot obtain a signature for
a slot other than the path it names.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from ..errors import PermissionDeniedError
from ..crypto.keys import gen_key_pair_from_seed
from ..registry.client import sign_entry
from ..registry.entry import RegistryEntry
from .core import MySkyDelegate, PermCategory, Permission, PermissionsResponse, PermType
from .encrypted_files import (
    derive_encrypted_file_tweak,
    derive_encrypted_path_seed,
    derive_root_path_seed,
)
from .tweak import derive_discoverable_file_tweak, get_path_domain

logger = logging.getLogger("skynet.mysky")


class SeedDelegate(MySkyDelegate):
    """
    Delegate holding the user seed in this process.

    Args:
        seed: User seed string, at least 8 characters
        auto_grant: Grant every requested permission on request_login_access
    """

    def __init__(self, seed: str, auto_grant: bool = True):
        self._keys = gen_key_pair_from_seed(seed)
        self._root_path_seed = derive_root_path_seed(seed.encode("utf-8"))
        self._auto_grant = auto_grant
        self._logged_in = False
        self.granted: List[Permission] = []

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    def grant(self, *permissions: Permission) -> None:
        for perm in permissions:
            if perm not in self.granted:
                self.granted.append(perm)

    def _split(self, permissions: List[Permission]) -> PermissionsResponse:
        response = PermissionsResponse()
        for perm in permissions:
            if perm in self.granted:
                response.granted_permissions.append(perm)
            else:
                response.failed_permissions.append(perm)
        return response

    async def check_login(self, permissions: List[Permission]) -> Tuple[bool, PermissionsResponse]:
        if not self._logged_in:
            return False, PermissionsResponse(failed_permissions=list(permissions))
        return True, self._split(permissions)

    async def request_login_access(
        self, permissions: List[Permission]
    ) -> Tuple[bool, PermissionsResponse]:
        self._logged_in = True
        if self._auto_grant:
            self.grant(*permissions)
        return True, self._split(permissions)

    async def logout(self) -> None:
        self._logged_in = False
        self.granted = []

    async def user_id(self) -> str:
        self._require_login("/")
        return self._keys.public_key

    # -------------------------------------------------------------------------
    # Signing
    # -------------------------------------------------------------------------

    async def sign_registry_entry(self, entry: RegistryEntry, path: str) -> bytes:
        self._require_permission(path, PermCategory.DISCOVERABLE, PermType.WRITE)
        if entry.data_key != derive_discoverable_file_tweak(path):
            raise PermissionDeniedError(path, "entry data key does not match the path")
        return sign_entry(self._keys.private_key, entry, True)

    async def sign_encrypted_registry_entry(self, entry: RegistryEntry, path: str) -> bytes:
        self._require_permission(path, PermCategory.HIDDEN, PermType.WRITE)
        path_seed = derive_encrypted_path_seed(self._root_path_seed, path, False)
        if entry.data_key != derive_encrypted_file_tweak(path_seed):
            raise PermissionDeniedError(path, "entry data key does not match the path")
        return sign_entry(self._keys.private_key, entry, True)

    async def get_encrypted_file_seed(self, path: str, is_directory: bool) -> str:
        self._require_permission(path, PermCategory.HIDDEN, PermType.READ)
        return derive_encrypted_path_seed(self._root_path_seed, path, is_directory)

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def _require_login(self, path: str) -> None:
        if not self._logged_in:
            raise PermissionDeniedError(path, "user is not logged in")

    def _require_permission(self, path: str, category: PermCategory, perm_type: PermType) -> None:
        self._require_login(path)
        domain = get_path_domain(path)
        for perm in self.granted:
            if perm.path == domain and perm.category == category and perm.perm_type == perm_type:
                return
        logger.warning("Denied %s %s on '%s'", category.name, perm_type.name, path)
        raise PermissionDeniedError(path, f"no {category.name} {perm_type.name} permission")
