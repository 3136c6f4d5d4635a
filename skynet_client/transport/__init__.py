# skynet_client/transport/__init__.py
"""Skynet HTTP transports."""

from .http import (
    FileField,
    HTTPResponse,
    HTTPTransport,
    HttpxTransport,
    MockHTTPTransport,
)

__all__ = [
    "FileField",
    "HTTPResponse",
    "HTTPTransport",
    "HttpxTransport",
    "MockHTTPTransport",
]
