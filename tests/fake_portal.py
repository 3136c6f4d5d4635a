# tests/fake_portal.py
"""
In-memory Skynet portal for tests.

Plugged into the client through httpx.MockTransport, so requests travel
through the real HttpxTransport and httpx request encoding.

Implements:
    HEAD /                     skynet-portal-api header
    GET  /skynet/registry      signed entry lookup, 404 when absent
    POST /skynet/registry      signature check, strict revision increase
    POST /skynet/skyfile       multipart upload -> v1 skylink
    GET  /<skylink>[/path]     blob download, v2 skylinks resolved

Usage:
    portal = FakePortal()
    client = portal.client()
    await client.db.set_json(private_key, "key", {"a": 1})
    assert portal.downloads == 0
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import httpx
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from skynet_client import ClientOptions, SkynetClient
from skynet_client.crypto.common import encode_number, encode_prefixed_bytes, hash_all
from skynet_client.skylink.sia import (
    MAX_FETCH_SIZE,
    Skylink,
    decode_skylink_base64,
    derive_registry_entry_id,
    new_ed25519_public_key,
    new_skylink_v1,
)
from skynet_client.transport import HttpxTransport

PORTAL_URL = "https://siasky.test"


@dataclass
class StoredEntry:
    data: bytes
    revision: int
    signature: bytes


@dataclass
class StoredBlob:
    content: bytes
    content_type: str
    filename: str


class FakePortal:
    """Registry and blob store held in dictionaries."""

    def __init__(self, portal_url: str = PORTAL_URL, quote_revision: bool = True):
        self.portal_url = portal_url
        self.quote_revision = quote_revision
        self.entries: Dict[Tuple[str, str], StoredEntry] = {}
        self.blobs: Dict[bytes, StoredBlob] = {}
        self.requests: List[httpx.Request] = []
        self.uploads = 0
        self.downloads = 0
        self.fail_next: Optional[int] = None

    # -------------------------------------------------------------------------
    # Wiring
    # -------------------------------------------------------------------------

    def transport(self) -> HttpxTransport:
        return HttpxTransport(httpx.MockTransport(self.handler))

    def client(self, options: Optional[ClientOptions] = None) -> SkynetClient:
        return SkynetClient(self.portal_url, options, transport=self.transport())

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_next is not None:
            status, self.fail_next = self.fail_next, None
            return httpx.Response(status, text="injected failure")

        path = request.url.path
        if request.method == "HEAD":
            return httpx.Response(200, headers={"skynet-portal-api": self.portal_url})
        if path == "/skynet/registry" and request.method == "GET":
            return self._get_entry(request)
        if path == "/skynet/registry" and request.method == "POST":
            return self._set_entry(request)
        if path == "/skynet/skyfile" and request.method == "POST":
            return self._upload(request)
        if request.method == "GET":
            return self._download(request)
        return httpx.Response(405, text="method not allowed")

    # -------------------------------------------------------------------------
    # Registry
    # -------------------------------------------------------------------------

    def _get_entry(self, request: httpx.Request) -> httpx.Response:
        public_key = request.url.params["publickey"].split(":", 1)[1]
        data_key = request.url.params["datakey"]
        stored = self.entries.get((public_key, data_key))
        if stored is None:
            return httpx.Response(404, json={"message": "registry entry not found"})
        revision = str(stored.revision) if self.quote_revision else stored.revision
        return httpx.Response(200, json={
            "data": stored.data.hex(),
            "revision": revision,
            "signature": stored.signature.hex(),
        })

    def _set_entry(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if body["publickey"]["algorithm"] != "ed25519":
            return httpx.Response(400, json={"message": "unsupported algorithm"})
        public_key = bytes(body["publickey"]["key"])
        data_key = body["datakey"]
        revision = body["revision"]
        data = bytes(body["data"])
        signature = bytes(body["signature"])
        if not isinstance(revision, int):
            return httpx.Response(400, json={"message": "revision must be an integer"})

        digest = hash_all(
            bytes.fromhex(data_key),
            encode_prefixed_bytes(data),
            encode_number(revision),
        )
        try:
            VerifyKey(public_key).verify(digest, signature)
        except BadSignatureError:
            return httpx.Response(400, json={"message": "invalid signature"})

        slot = (public_key.hex(), data_key)
        existing = self.entries.get(slot)
        if existing is not None and revision <= existing.revision:
            return httpx.Response(400, json={"message": "revision number too low"})
        self.entries[slot] = StoredEntry(data=data, revision=revision, signature=signature)
        return httpx.Response(204)

    # -------------------------------------------------------------------------
    # Blobs
    # -------------------------------------------------------------------------

    def store_blob(self, content: bytes, content_type: str, filename: str = "file") -> str:
        """Store content directly; return its bare base64 skylink."""
        merkle_root = hash_all(content)
        fetch_size = min(max(len(content), 1), MAX_FETCH_SIZE)
        skylink = new_skylink_v1(merkle_root, 0, fetch_size)
        self.blobs[skylink.to_bytes()] = StoredBlob(content, content_type, filename)
        return skylink.to_string()

    def _upload(self, request: httpx.Request) -> httpx.Response:
        filename, content_type, content = _parse_multipart_file(request)
        self.uploads += 1
        skylink = self.store_blob(content, content_type, filename)
        return httpx.Response(200, json={"skylink": skylink})

    def _download(self, request: httpx.Request) -> httpx.Response:
        segment = request.url.path.lstrip("/").split("/", 1)[0]
        try:
            raw = decode_skylink_base64(segment)
        except ValueError:
            return httpx.Response(400, text="invalid skylink")

        raw = self._resolve_v2(raw)
        blob = self.blobs.get(raw) if raw is not None else None
        if blob is None:
            return httpx.Response(404, text="not found")
        self.downloads += 1
        return httpx.Response(
            200,
            content=blob.content,
            headers={
                "content-type": blob.content_type,
                "skynet-skylink": Skylink.from_bytes(raw).to_string(),
                "skynet-portal-api": self.portal_url,
            },
        )

    def _resolve_v2(self, raw: bytes) -> Optional[bytes]:
        skylink = Skylink.from_bytes(raw)
        if skylink.version != 2:
            return raw
        for (public_key, data_key), stored in self.entries.items():
            entry_id = derive_registry_entry_id(
                new_ed25519_public_key(public_key), bytes.fromhex(data_key)
            )
            if entry_id == skylink.merkle_root:
                return stored.data
        return None

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    def requests_to(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def tamper(self, public_key: str, data_key_hex: str, data: bytes) -> None:
        """Replace stored entry data without re-signing."""
        stored = self.entries[(public_key, data_key_hex)]
        self.entries[(public_key, data_key_hex)] = StoredEntry(
            data=data, revision=stored.revision, signature=stored.signature
        )


def _parse_multipart_file(request: httpx.Request) -> Tuple[str, str, bytes]:
    """Extract (filename, content type, content) of the "file" field."""
    content_type = request.headers["content-type"]
    boundary = content_type.split("boundary=", 1)[1].strip('"').encode()
    for part in request.content.split(b"--" + boundary):
        if b"\r\n\r\n" not in part:
            continue
        raw_headers, body = part.split(b"\r\n\r\n", 1)
        headers = raw_headers.decode("utf-8").strip().split("\r\n")
        disposition = next((h for h in headers if h.lower().startswith("content-disposition")), "")
        if 'name="file"' not in disposition:
            continue
        filename = disposition.split('filename="', 1)[1].split('"', 1)[0]
        part_type = next(
            (h.split(":", 1)[1].strip() for h in headers if h.lower().startswith("content-type")),
            "application/octet-stream",
        )
        if body.endswith(b"\r\n"):
            body = body[:-2]
        return filename, part_type, body
    raise ValueError("multipart body has no 'file' field")
