# skynet_client/utils.py
"""
String and URL helpers shared by the skylink, registry and client layers.
"""

from __future__ import annotations

import re
from typing import Any, Dict
from urllib.parse import urlencode, urlsplit, urlunsplit

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


# =============================================================================
# Strings
# =============================================================================

def is_hex_string(value: str) -> bool:
    return bool(_HEX_RE.match(value)) and len(value) % 2 == 0


def trim_prefix(value: str, prefix: str) -> str:
    while prefix and value.startswith(prefix):
        value = value[len(prefix):]
    return value


def trim_suffix(value: str, suffix: str) -> str:
    while suffix and value.endswith(suffix):
        value = value[: -len(suffix)]
    return value


def trim_forward_slash(value: str) -> str:
    return trim_suffix(trim_prefix(value, "/"), "/")


def trim_uri_prefix(value: str, prefix: str) -> str:
    """
    Remove a URI scheme prefix, accepting both long and short forms.

    For prefix "sia://" both "sia://X" and "sia:X" yield "X". Matching is
    case-insensitive.
    """
    long_prefix = prefix.lower()
    short_prefix = trim_suffix(long_prefix, "/")
    lowered = value.lower()
    if lowered.startswith(long_prefix):
        return value[len(long_prefix):]
    if lowered.startswith(short_prefix):
        return value[len(short_prefix):]
    return value


# =============================================================================
# URLs
# =============================================================================

def ensure_url(url: str) -> str:
    """Default to https:// when no scheme is given."""
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return "https://" + trim_prefix(url, "//")


def make_url(*parts: str) -> str:
    """Join URL segments with exactly one slash between non-empty parts."""
    parts = tuple(p for p in parts if p)
    if not parts:
        return ""
    url = parts[0]
    for part in parts[1:]:
        if part == "/":
            url = trim_suffix(url, "/") + "/"
            continue
        url = trim_suffix(url, "/") + "/" + trim_prefix(part, "/")
    return url


def add_url_query(url: str, query: Dict[str, Any]) -> str:
    """Append query parameters, preserving any already present."""
    if not query:
        return url
    scheme, netloc, path, existing, fragment = urlsplit(url)
    encoded = urlencode({k: _query_value(v) for k, v in query.items()})
    combined = f"{existing}&{encoded}" if existing else encoded
    return urlunsplit((scheme, netloc, path, combined, fragment))


def add_subdomain(url: str, subdomain: str) -> str:
    scheme, netloc, path, query, fragment = urlsplit(ensure_url(url))
    return urlunsplit((scheme, f"{subdomain}.{netloc}", path, query, fragment))


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
