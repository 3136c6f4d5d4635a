# tests/test_registry.py
"""
Skynet Registry Tests

    1. Reads: not-found, verification, errors
    2. Writes: signing, posting, server-side revision rule
    3. Wire codec
    4. URLs and entry links
"""

from __future__ import annotations

import asyncio
import json
from urllib.parse import parse_qs, urlsplit

import pytest

from skynet_client import ClientOptions, SkynetClient
from skynet_client.crypto import gen_key_pair_from_seed, hash_data_key
from skynet_client.errors import (
    IntegrityError,
    InvalidSignatureError,
    TransportError,
    ValidationError,
)
from skynet_client.registry import (
    RegistryEntry,
    entry_to_wire,
    get_entry_link,
    get_entry_url_for_portal,
    revision_from_wire,
    sign_entry,
)
from skynet_client.skylink import decode_skylink, new_ed25519_public_key, new_skylink_v2
from skynet_client.transport import MockHTTPTransport
from skynet_client.validation import MAX_UINT64

from .fake_portal import FakePortal

KEYS = gen_key_pair_from_seed("insecure test seed")
DATA_KEY = "app/registry-test"


# =============================================================================
# 1. Reads
# =============================================================================

def test_get_entry_not_found_is_absent():
    """1.1: A 404 is an absent entry, not an error."""
    portal = FakePortal()
    signed = asyncio.run(portal.client().registry.get_entry(KEYS.public_key, DATA_KEY))
    assert signed.entry is None
    assert signed.signature is None
    assert not signed.found


def test_set_then_get_entry():
    """1.2: A written entry reads back verified."""
    portal = FakePortal()
    client = portal.client()
    entry = RegistryEntry(data_key=DATA_KEY, data=b"hello registry", revision=0)

    async def run():
        await client.registry.set_entry(KEYS.private_key, entry)
        return await client.registry.get_entry(KEYS.public_key, DATA_KEY)

    signed = asyncio.run(run())
    assert signed.entry == entry
    assert len(signed.signature) == 64


def test_unquoted_revision_is_accepted():
    """1.3: Portals that send the revision as a JSON integer also work."""
    portal = FakePortal(quote_revision=False)
    client = portal.client()
    entry = RegistryEntry(data_key=DATA_KEY, data=b"x", revision=MAX_UINT64 - 1)

    async def run():
        await client.registry.set_entry(KEYS.private_key, entry)
        return await client.registry.get_entry(KEYS.public_key, DATA_KEY)

    assert asyncio.run(run()).entry.revision == MAX_UINT64 - 1


def test_tampered_entry_is_rejected():
    """1.4: Data changed behind the signature raises InvalidSignatureError."""
    portal = FakePortal()
    client = portal.client()

    async def run():
        await client.registry.set_entry(
            KEYS.private_key, RegistryEntry(DATA_KEY, b"original", 0)
        )
        portal.tamper(KEYS.public_key, hash_data_key(DATA_KEY).hex(), b"forged")
        await client.registry.get_entry(KEYS.public_key, DATA_KEY)

    with pytest.raises(InvalidSignatureError):
        asyncio.run(run())


def test_non_404_errors_propagate():
    """1.5: Other failures surface as TransportError with the status."""
    portal = FakePortal()
    portal.fail_next = 500
    with pytest.raises(TransportError) as excinfo:
        asyncio.run(portal.client().registry.get_entry(KEYS.public_key, DATA_KEY))
    assert excinfo.value.status_code == 500


def test_incomplete_response_is_integrity_error():
    """1.6: A 200 without a signature cannot be trusted."""
    transport = MockHTTPTransport()
    transport.queue_json(200, {"data": "00", "revision": "1"})
    client = SkynetClient("https://siasky.test", transport=transport)
    with pytest.raises(IntegrityError):
        asyncio.run(client.registry.get_entry(KEYS.public_key, DATA_KEY))


def test_invalid_public_key_fails_before_network():
    """1.7: Validation happens before any request."""
    portal = FakePortal()
    with pytest.raises(ValidationError):
        asyncio.run(portal.client().registry.get_entry("not-hex", DATA_KEY))
    assert portal.requests == []


def test_prefixed_public_key_is_accepted():
    """1.8: ed25519:-prefixed keys are the same key."""
    portal = FakePortal()
    signed = asyncio.run(
        portal.client().registry.get_entry("ed25519:" + KEYS.public_key, DATA_KEY)
    )
    assert signed.entry is None


# =============================================================================
# 2. Writes
# =============================================================================

def test_post_signed_entry_with_external_signature():
    """2.1: A signature produced elsewhere is accepted."""
    portal = FakePortal()
    client = portal.client()
    entry = RegistryEntry(DATA_KEY, b"external", 5)
    signature = sign_entry(KEYS.private_key, entry, False)

    async def run():
        await client.registry.post_signed_entry(KEYS.public_key, entry, signature)
        return await client.registry.get_entry(KEYS.public_key, DATA_KEY)

    assert asyncio.run(run()).entry == entry


def test_server_rejects_stale_revision():
    """2.2: The portal refuses a revision that is not strictly greater."""
    portal = FakePortal()
    client = portal.client()

    async def run():
        await client.registry.set_entry(KEYS.private_key, RegistryEntry(DATA_KEY, b"a", 3))
        await client.registry.set_entry(KEYS.private_key, RegistryEntry(DATA_KEY, b"b", 3))

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(run())
    assert excinfo.value.status_code == 400


def test_set_entry_wire_body():
    """2.3: POST body carries byte arrays and a bare integer revision."""
    transport = MockHTTPTransport()
    client = SkynetClient("https://siasky.test", transport=transport)
    entry = RegistryEntry(DATA_KEY, b"\x01\x02", MAX_UINT64)
    asyncio.run(client.registry.set_entry(KEYS.private_key, entry))

    request = transport.requests[-1]
    assert request["method"] == "POST"
    assert request["url"] == "https://siasky.test/skynet/registry"
    assert f'"revision": {MAX_UINT64}' in request["content"].decode()
    body = json.loads(request["content"])
    assert body["publickey"] == {
        "algorithm": "ed25519",
        "key": list(bytes.fromhex(KEYS.public_key)),
    }
    assert body["datakey"] == hash_data_key(DATA_KEY).hex()
    assert body["data"] == [1, 2]
    assert len(body["signature"]) == 64


def test_entry_data_size_limit():
    """2.4: Entries hold at most 113 bytes."""
    portal = FakePortal()
    with pytest.raises(ValidationError):
        asyncio.run(
            portal.client().registry.set_entry(
                KEYS.private_key, RegistryEntry(DATA_KEY, bytes(114), 0)
            )
        )
    assert portal.requests == []


# =============================================================================
# 3. Wire Codec
# =============================================================================

def test_revision_from_wire():
    """3.1: Decimal strings and integers decode exactly past 2^53."""
    assert revision_from_wire("18446744073709551615") == MAX_UINT64
    assert revision_from_wire(MAX_UINT64) == MAX_UINT64
    assert revision_from_wire("9007199254740993") == 9007199254740993
    for bad in ("-1", "1.5", "abc", "", " 1", "1\n", 1.5, None, True):
        with pytest.raises(IntegrityError):
            revision_from_wire(bad)


@pytest.mark.parametrize("bad", ["²", "١", "18446744073709551616", MAX_UINT64 + 1, -1])
def test_revision_from_wire_rejects_non_ascii_and_out_of_range(bad):
    """3.1b: Unicode digits and values outside u64 are portal faults, not caller faults."""
    with pytest.raises(IntegrityError) as excinfo:
        revision_from_wire(bad)
    assert not isinstance(excinfo.value, ValidationError)


def test_get_entry_out_of_range_revision():
    """3.1c: An over-large revision in a GET response is an IntegrityError."""
    transport = MockHTTPTransport()
    transport.queue_json(200, {
        "data": "",
        "revision": "18446744073709551616",
        "signature": "00" * 64,
    })
    client = SkynetClient("https://siasky.test", transport=transport)
    with pytest.raises(IntegrityError):
        asyncio.run(client.registry.get_entry(KEYS.public_key, DATA_KEY))


def test_entry_to_wire_hashed_key():
    """3.2: Pre-hashed keys pass through verbatim."""
    hashed = hash_data_key(DATA_KEY).hex()
    entry = RegistryEntry(hashed, b"", 0)
    body = entry_to_wire(KEYS.public_key, entry, bytes(64), True)
    assert body["datakey"] == hashed


# =============================================================================
# 4. URLs and Entry Links
# =============================================================================

def test_get_entry_url_for_portal():
    """4.1: Lookup URL carries prefixed key, hashed data key and timeout 5."""
    url = get_entry_url_for_portal("https://siasky.net", KEYS.public_key, DATA_KEY)
    parts = urlsplit(url)
    assert parts.path == "/skynet/registry"
    query = parse_qs(parts.query)
    assert query["publickey"] == ["ed25519:" + KEYS.public_key]
    assert query["datakey"] == [hash_data_key(DATA_KEY).hex()]
    assert query["timeout"] == ["5"]


def test_get_entry_url_hashed_data_key():
    """4.2: hashed_data_key_hex sends the key as given."""
    hashed = "ab" * 32
    url = get_entry_url_for_portal(
        "https://siasky.net", KEYS.public_key, hashed, ClientOptions(hashed_data_key_hex=True)
    )
    assert parse_qs(urlsplit(url).query)["datakey"] == [hashed]


def test_entry_link_is_v2_skylink():
    """4.3: Entry link is sia:// + v2 skylink of (key, hashed data key)."""
    link = get_entry_link(KEYS.public_key, DATA_KEY)
    assert link.startswith("sia://")
    expected = new_skylink_v2(
        new_ed25519_public_key(KEYS.public_key), hash_data_key(DATA_KEY)
    ).to_bytes()
    assert decode_skylink(link) == expected


def test_entry_link_ignores_stored_value():
    """4.4: The link is the same before and after writes."""
    portal = FakePortal()
    client = portal.client()
    before = client.registry.get_entry_link(KEYS.public_key, DATA_KEY)
    asyncio.run(client.registry.set_entry(KEYS.private_key, RegistryEntry(DATA_KEY, b"x", 0)))
    after = client.registry.get_entry_link(KEYS.public_key, DATA_KEY)
    assert before == after
    assert not any(r.url.path == "/skynet/registry" and r.method == "GET" for r in portal.requests)
