# skynet_client/client.py
"""
Skynet Client: Portal Facade

One SkynetClient per portal. It owns the transport, the client-level
options and the memoised API portal URL, and exposes the higher layers:

    client.registry   signed registry entries
    client.db         SkyDB JSON / raw-bytes documents
    client.file       read-only access to MySky-written files

Usage:
    client = SkynetClient("https://siasky.net", ClientOptions(api_key="..."))
    upload = await client.upload_file(b"hello", "hello.txt", "text/plain")
    content = await client.get_file_content(upload.skylink)

    mysky = await client.load_mysky("app.hns", SeedDelegate(seed))
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .db.skydb import SkyDB
from .errors import IntegrityError, TransportError, ValidationError
from .file import File
from .mysky.core import MySky, MySkyDelegate, load_mysky
from .options import ClientOptions, resolve_options
from .registry.client import Registry
from .skylink.format import convert_skylink_to_base32, format_skylink
from .skylink.parse import parse_skylink
from .transport.http import FileField, HTTPResponse, HTTPTransport, HttpxTransport
from .utils import add_subdomain, add_url_query, ensure_url, make_url, trim_forward_slash
from .validation import validate_bytes, validate_string

logger = logging.getLogger("skynet.client")

DEFAULT_PORTAL_URL: str = "https://siasky.net"

PORTAL_API_HEADER: str = "skynet-portal-api"
SKYLINK_HEADER: str = "skynet-skylink"


# =============================================================================
# Response Types
# =============================================================================

@dataclass
class UploadResponse:
    """Result of a small-file upload."""
    skylink: str


@dataclass
class GetFileContentResponse:
    """
    Downloaded content.

    Attributes:
        data: Parsed JSON for JSON content, raw bytes otherwise
        content_type: Content-Type reported by the portal
        portal_url: API portal that served the request
        skylink: sia:// skylink the portal resolved
    """
    data: Any
    content_type: str
    portal_url: str
    skylink: str


# =============================================================================
# URL Helpers
# =============================================================================

def get_skylink_url_for_portal(
    portal_url: str,
    skylink_url: str,
    opts: Optional[ClientOptions] = None,
    *,
    subdomain: bool = False,
    path: str = "",
    download: bool = False,
) -> str:
    """
    Download URL for a skylink on a given portal. No network access.

    With subdomain=True the skylink is moved into a base32 host label:
    https://<base32>.portal/<path>.
    """
    opts = resolve_options(None, opts)
    validate_string("skylinkUrl", skylink_url, "parameter")
    validate_string("path", path, "parameter")

    if subdomain:
        skylink = parse_skylink(skylink_url)
        if skylink is None:
            raise ValidationError("skylinkUrl", skylink_url, "parameter", "a valid skylink")
        skylink_path = parse_skylink(skylink_url, only_path=True) or ""
        url = add_subdomain(make_url(portal_url, skylink_path), convert_skylink_to_base32(skylink))
    else:
        skylink_with_path = parse_skylink(skylink_url, include_path=True)
        if skylink_with_path is None:
            raise ValidationError("skylinkUrl", skylink_url, "parameter", "a valid skylink")
        url = make_url(portal_url, opts.endpoint_download, skylink_with_path)

    if path:
        url = make_url(url, trim_forward_slash(path))
    if download:
        url = add_url_query(url, {"attachment": True})
    return url


# =============================================================================
# SkynetClient
# =============================================================================

class SkynetClient:
    """
    Client bound to a single portal.

    If initial_portal_url is given it is used as-is. Otherwise the default
    portal is asked for its API portal via a HEAD request the first time a
    URL is needed, and the answer is memoised for this client.
    """

    def __init__(
        self,
        initial_portal_url: str = "",
        custom_options: Optional[ClientOptions] = None,
        transport: Optional[HTTPTransport] = None,
    ):
        """
        Initialize client.

        Args:
            initial_portal_url: Portal to use, skipping resolution
            custom_options: Client-level options layered over defaults
            transport: HTTP transport (httpx if None)
        """
        if initial_portal_url:
            self.initial_portal_url = ensure_url(initial_portal_url)
            self._custom_portal_url: Optional[str] = self.initial_portal_url
        else:
            self.initial_portal_url = DEFAULT_PORTAL_URL
            self._custom_portal_url = None
        self.custom_options = custom_options or ClientOptions()
        self._transport = transport or HttpxTransport()
        self._portal_url_task: Optional["asyncio.Future[str]"] = None

        self.registry = Registry(self)
        self.db = SkyDB(self)
        self.file = File(self)

    # -------------------------------------------------------------------------
    # Portal
    # -------------------------------------------------------------------------

    async def portal_url(self) -> str:
        """
        API portal URL, resolved once per client.

        Concurrent callers share one in-flight HEAD. A failed resolution is
        forgotten so the next call retries.
        """
        if self._custom_portal_url is not None:
            return self._custom_portal_url
        task = self._portal_url_task
        if task is None:
            task = asyncio.ensure_future(self.resolve_portal_url())
            self._portal_url_task = task
        try:
            # One cancelled caller must not cancel the shared lookup
            return await asyncio.shield(task)
        except (Exception, asyncio.CancelledError):
            if self._portal_url_task is task and task.done() and (
                task.cancelled() or task.exception() is not None
            ):
                self._portal_url_task = None
            raise

    async def resolve_portal_url(self) -> str:
        opts = resolve_options(self.custom_options)
        resp = await self.execute_request("HEAD", opts, url=self.initial_portal_url)
        portal = resp.header(PORTAL_API_HEADER)
        if not portal:
            raise TransportError(
                "Could not get portal URL for the given portal",
                status_code=resp.status_code,
                url=self.initial_portal_url,
            )
        logger.debug("Resolved portal %s -> %s", self.initial_portal_url, portal)
        return ensure_url(portal)

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    async def execute_request(
        self,
        method: str,
        opts: ClientOptions,
        *,
        url: Optional[str] = None,
        endpoint_path: Optional[str] = None,
        extra_path: str = "",
        query: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        content: Optional[bytes] = None,
        files: Optional[Dict[str, FileField]] = None,
        subdomain: Optional[str] = None,
    ) -> HTTPResponse:
        """
        Issue a request against the portal.

        Either url or endpoint_path must be given; endpoint_path is joined
        onto the resolved portal URL.

        Raises:
            TransportError: Connection failure or non-2xx status
        """
        if url is None:
            if endpoint_path is None:
                raise ValidationError("endpointPath", endpoint_path, "parameter", "set when url is not")
            url = make_url(await self.portal_url(), endpoint_path, extra_path)
        if subdomain:
            url = add_subdomain(url, subdomain)
        if query:
            url = add_url_query(url, query)

        all_headers: Dict[str, str] = {}
        if opts.custom_user_agent:
            all_headers["User-Agent"] = opts.custom_user_agent
        if opts.custom_cookie:
            all_headers["Cookie"] = opts.custom_cookie
        all_headers.update(headers or {})

        auth = ("", opts.api_key) if opts.api_key else None

        logger.debug("%s %s", method, url)
        resp = await self._transport.request(
            method,
            url,
            headers=all_headers,
            content=content,
            files=files,
            auth=auth,
            timeout=opts.timeout,
        )
        if not resp.is_success:
            body = resp.content.decode("utf-8", errors="replace")
            raise TransportError(
                f"Request failed with status code {resp.status_code}: {method} {url}",
                status_code=resp.status_code,
                url=url,
                body=body,
            )
        return resp

    # -------------------------------------------------------------------------
    # Upload / Download
    # -------------------------------------------------------------------------

    async def upload_file(
        self,
        data: bytes,
        filename: str,
        content_type: str = "application/octet-stream",
        opts: Optional[ClientOptions] = None,
    ) -> UploadResponse:
        """Upload a small file as multipart field "file"."""
        opts = resolve_options(self.custom_options, opts)
        validate_bytes("data", data, "parameter")
        validate_string("filename", filename, "parameter")
        if opts.custom_filename:
            filename = opts.custom_filename

        resp = await self.execute_request(
            "POST",
            opts,
            endpoint_path=opts.endpoint_upload,
            files={"file": (filename, bytes(data), content_type)},
        )
        if opts.on_upload_progress is not None:
            opts.on_upload_progress(1.0)

        try:
            skylink = resp.json().get("skylink")
        except (ValueError, AttributeError) as exc:
            raise IntegrityError("Upload response is not a JSON object") from exc
        if not isinstance(skylink, str) or not skylink:
            raise IntegrityError("Upload response did not contain a skylink")
        return UploadResponse(skylink=format_skylink(skylink))

    async def get_skylink_url(
        self,
        skylink_url: str,
        opts: Optional[ClientOptions] = None,
        *,
        subdomain: bool = False,
        path: str = "",
        download: bool = False,
    ) -> str:
        opts = resolve_options(self.custom_options, opts)
        portal_url = await self.portal_url()
        return get_skylink_url_for_portal(
            portal_url, skylink_url, opts, subdomain=subdomain, path=path, download=download
        )

    async def get_file_content(
        self,
        skylink_url: str,
        opts: Optional[ClientOptions] = None,
        *,
        raw: bool = False,
    ) -> GetFileContentResponse:
        """
        Download a skylink.

        JSON content is decoded unless raw is set.

        Raises:
            IntegrityError: Portal omitted the skylink header or sent bad JSON
        """
        opts = resolve_options(self.custom_options, opts)
        url = await self.get_skylink_url(skylink_url, opts)
        resp = await self.execute_request("GET", opts, url=url)
        if opts.on_download_progress is not None:
            opts.on_download_progress(1.0)

        content_type = resp.header("content-type") or ""
        skylink = resp.header(SKYLINK_HEADER)
        if not skylink:
            raise IntegrityError(f"Download response did not contain the '{SKYLINK_HEADER}' header")
        portal_url = resp.header(PORTAL_API_HEADER) or await self.portal_url()

        data: Any = resp.content
        if not raw and "json" in content_type:
            try:
                data = resp.json()
            except ValueError as exc:
                raise IntegrityError(f"Could not parse JSON content of {skylink_url}") from exc

        return GetFileContentResponse(
            data=data,
            content_type=content_type,
            portal_url=portal_url,
            skylink=format_skylink(skylink),
        )

    # -------------------------------------------------------------------------
    # MySky
    # -------------------------------------------------------------------------

    async def load_mysky(
        self,
        skapp_domain: str,
        delegate: MySkyDelegate,
        host_domain: Optional[str] = None,
    ) -> MySky:
        """Open a MySky session for skapp_domain backed by delegate."""
        return await load_mysky(self, skapp_domain, delegate, host_domain)
