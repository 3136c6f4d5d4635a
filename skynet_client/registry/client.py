# skynet_client/registry/client.py
"""
Skynet Registry Client

Per (public key, data key) the registry is a two-state machine:

    NotFound ──set(revision=0)──► Found(r) ──set(revision=r+1)──► Found(r+1)

There is no tombstone. SkyDB deletes by writing an all-zero skylink,
which leaves the slot in Found.

Reads verify the entry signature before returning it; an entry that fails
verification raises InvalidSignatureError and is never handed back.

Usage:
    registry = client.registry
    signed = await registry.get_entry(public_key, "app.json")
    if signed.entry is None:
        ...  # never written
    await registry.set_entry(private_key, RegistryEntry("app.json", data, 0))
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Optional

from ..crypto.common import hash_registry_entry
from ..crypto.keys import SIGNATURE_SIZE, public_key_from_private_key, sign, verify
from ..errors import IntegrityError, InvalidSignatureError, TransportError
from ..options import ClientOptions, resolve_options
from ..skylink.format import format_skylink
from ..skylink.sia import encode_skylink_base64, new_ed25519_public_key, new_skylink_v2
from ..utils import add_url_query, make_url
from ..validation import validate_bytes_len, validate_hex_string
from .entry import (
    ED25519_PREFIX,
    INCOMPLETE_ENTRY_MESSAGE,
    RegistryEntry,
    SignedRegistryEntry,
    data_key_to_hex,
    entry_from_wire,
    entry_to_wire,
    validate_data_key,
    validate_public_key,
    validate_registry_entry,
)

if TYPE_CHECKING:
    from ..client import SkynetClient

logger = logging.getLogger("skynet.registry")

# Server-side lookup timeout, seconds. Interpreted by the portal.
DEFAULT_GET_ENTRY_TIMEOUT: int = 5


# =============================================================================
# Pure Helpers
# =============================================================================

def sign_entry(private_key: str, entry: RegistryEntry, hashed_data_key_hex: bool) -> bytes:
    """Sign the canonical hash of an entry with a hex private key."""
    validate_registry_entry("entry", entry)
    return sign(private_key, hash_registry_entry(entry, hashed_data_key_hex))


def get_entry_url_for_portal(
    portal_url: str,
    public_key: str,
    data_key: str,
    opts: Optional[ClientOptions] = None,
) -> str:
    """Registry lookup URL for a known portal. No network access."""
    opts = resolve_options(None, opts)
    key = validate_public_key("publicKey", public_key)
    validate_data_key(data_key, opts.hashed_data_key_hex)

    url = make_url(portal_url, opts.endpoint_get_entry)
    return add_url_query(url, {
        "publickey": f"{ED25519_PREFIX}{key}",
        "datakey": data_key_to_hex(data_key, opts.hashed_data_key_hex),
        "timeout": DEFAULT_GET_ENTRY_TIMEOUT,
    })


def get_entry_link(
    public_key: str,
    data_key: str,
    opts: Optional[ClientOptions] = None,
) -> str:
    """
    sia:// v2 skylink pointing at whatever is stored under the pair.

    Depends only on the inputs, never on what is currently stored.
    """
    opts = resolve_options(None, opts)
    key = validate_public_key("publicKey", public_key)
    validate_data_key(data_key, opts.hashed_data_key_hex)

    tweak = bytes.fromhex(data_key_to_hex(data_key, opts.hashed_data_key_hex))
    skylink = new_skylink_v2(new_ed25519_public_key(key), tweak)
    return format_skylink(encode_skylink_base64(skylink.to_bytes()))


# =============================================================================
# Registry
# =============================================================================

class Registry:
    """
    Registry operations bound to a SkynetClient.

    Every public method resolves its options once (call > client > default)
    and threads the result through all downstream calls.
    """

    def __init__(self, client: "SkynetClient"):
        self._client = client

    def _resolve(self, opts: Optional[ClientOptions]) -> ClientOptions:
        return resolve_options(self._client.custom_options, opts)

    async def get_entry(
        self,
        public_key: str,
        data_key: str,
        opts: Optional[ClientOptions] = None,
    ) -> SignedRegistryEntry:
        """
        Fetch and verify the entry stored under (public_key, data_key).

        Returns:
            SignedRegistryEntry; both fields None on a 404

        Raises:
            ValidationError: Malformed key
            TransportError: Any non-2xx other than 404
            IntegrityError: Incomplete response body
            InvalidSignatureError: Signature does not verify
        """
        opts = self._resolve(opts)
        key = validate_public_key("publicKey", public_key)
        validate_data_key(data_key, opts.hashed_data_key_hex)

        url = await self.get_entry_url(key, data_key, opts)
        logger.debug("GET registry entry %s", url)
        try:
            resp = await self._client.execute_request("GET", opts, url=url)
        except TransportError as exc:
            if exc.status_code == 404:
                return SignedRegistryEntry(entry=None, signature=None)
            raise

        try:
            body = resp.json()
        except ValueError as exc:
            raise IntegrityError(INCOMPLETE_ENTRY_MESSAGE) from exc
        entry, signature = entry_from_wire(body, data_key)
        digest = hash_registry_entry(entry, opts.hashed_data_key_hex)
        if not verify(bytes.fromhex(key), digest, signature):
            raise InvalidSignatureError(key, data_key)
        return SignedRegistryEntry(entry=entry, signature=signature)

    async def get_entry_url(
        self,
        public_key: str,
        data_key: str,
        opts: Optional[ClientOptions] = None,
    ) -> str:
        opts = self._resolve(opts)
        portal_url = await self._client.portal_url()
        return get_entry_url_for_portal(portal_url, public_key, data_key, opts)

    def get_entry_link(
        self,
        public_key: str,
        data_key: str,
        opts: Optional[ClientOptions] = None,
    ) -> str:
        return get_entry_link(public_key, data_key, self._resolve(opts))

    async def set_entry(
        self,
        private_key: str,
        entry: RegistryEntry,
        opts: Optional[ClientOptions] = None,
    ) -> None:
        """Sign entry with private_key and submit it."""
        opts = self._resolve(opts)
        validate_hex_string("privateKey", private_key, "parameter")
        validate_registry_entry("entry", entry)

        public_key = public_key_from_private_key(private_key)
        signature = sign_entry(private_key, entry, opts.hashed_data_key_hex)
        await self.post_signed_entry(public_key, entry, signature, opts)

    async def post_signed_entry(
        self,
        public_key: str,
        entry: RegistryEntry,
        signature: bytes,
        opts: Optional[ClientOptions] = None,
    ) -> None:
        """Submit an entry signed elsewhere (e.g. by an identity delegate)."""
        opts = self._resolve(opts)
        key = validate_public_key("publicKey", public_key)
        validate_registry_entry("entry", entry)
        validate_data_key(entry.data_key, opts.hashed_data_key_hex)
        validate_bytes_len("signature", signature, "parameter", 64)

        body = entry_to_wire(key, entry, bytes(signature), opts.hashed_data_key_hex)
        logger.debug("POST registry entry revision=%d", entry.revision)
        await self._client.execute_request(
            "POST",
            opts,
            endpoint_path=opts.endpoint_set_entry,
            headers={"Content-Type": "application/json"},
            content=json.dumps(body).encode(),
        )
        logger.info(
            "Registry entry updated: datakey=%s... revision=%d",
            data_key_to_hex(entry.data_key, opts.hashed_data_key_hex)[:8],
            entry.revision,
        )
