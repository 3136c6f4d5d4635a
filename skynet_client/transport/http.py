# skynet_client/transport/http.py
"""
Skynet Transport: HTTP Capability

The client talks to a portal only through an HTTPTransport, so the wire
layer can be swapped without touching registry or SkyDB logic.

    SkynetClient ──► HTTPTransport.request(method, url, ...) ──► HTTPResponse
                         ├─ HttpxTransport      httpx.AsyncClient
                         └─ MockHTTPTransport   recorded requests, queued responses

Transports never interpret status codes; that is SkynetClient's job.

Usage:
    transport = HttpxTransport()
    resp = await transport.request("GET", url, headers={}, timeout=30.0)
    if resp.status_code == 200:
        body = resp.json()
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..errors import TransportError

# (filename, content, content_type) per multipart field
FileField = Tuple[str, bytes, str]


# =============================================================================
# Response
# =============================================================================

@dataclass
class HTTPResponse:
    """Buffered HTTP response. Header names are lowercase."""
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)
    content: bytes = b""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8")

    def json(self) -> Any:
        return json.loads(self.text)

    def header(self, name: str) -> Optional[str]:
        return self.headers.get(name.lower())


# =============================================================================
# HTTP Transport (Abstract)
# =============================================================================

class HTTPTransport(ABC):
    """Abstract HTTP transport for portal calls."""

    @abstractmethod
    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Dict[str, str],
        content: Optional[bytes] = None,
        files: Optional[Dict[str, FileField]] = None,
        auth: Optional[Tuple[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HTTPResponse:
        """Send a request and return the buffered response."""
        pass


class HttpxTransport(HTTPTransport):
    """
    httpx-backed transport.

    A fresh AsyncClient is opened per request so the transport is safe to
    use across event loops. Pass an httpx transport (e.g.
    httpx.MockTransport) to redirect traffic in tests.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        follow_redirects: bool = True,
    ):
        self._transport = transport
        self._follow_redirects = follow_redirects

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Dict[str, str],
        content: Optional[bytes] = None,
        files: Optional[Dict[str, FileField]] = None,
        auth: Optional[Tuple[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HTTPResponse:
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                follow_redirects=self._follow_redirects,
            ) as client:
                resp = await client.request(
                    method,
                    url,
                    headers=headers,
                    content=content,
                    files=files,
                    auth=auth,
                    timeout=timeout,
                )
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc}", url=url) from exc

        return HTTPResponse(
            status_code=resp.status_code,
            headers={k.lower(): v for k, v in resp.headers.items()},
            content=resp.content,
        )


class MockHTTPTransport(HTTPTransport):
    """Mock HTTP transport for testing."""

    def __init__(self):
        self.requests: List[Dict[str, Any]] = []
        self._response_queue: List[HTTPResponse] = []

    def queue_response(self, response: HTTPResponse) -> None:
        """Queue a response to return."""
        self._response_queue.append(response)

    def queue_json(self, status_code: int, body: Any, headers: Optional[Dict[str, str]] = None) -> None:
        hdrs = {"content-type": "application/json"}
        hdrs.update({k.lower(): v for k, v in (headers or {}).items()})
        self.queue_response(
            HTTPResponse(status_code=status_code, headers=hdrs, content=json.dumps(body).encode())
        )

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Dict[str, str],
        content: Optional[bytes] = None,
        files: Optional[Dict[str, FileField]] = None,
        auth: Optional[Tuple[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HTTPResponse:
        """Record request and return queued response."""
        self.requests.append({
            "method": method,
            "url": url,
            "headers": headers,
            "content": content,
            "files": files,
            "auth": auth,
            "timeout": timeout,
        })
        if self._response_queue:
            return self._response_queue.pop(0)
        return HTTPResponse(status_code=200)
