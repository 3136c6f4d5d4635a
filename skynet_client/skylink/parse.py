# skynet_client/skylink/parse.py
"""
Skylink extraction from user input.

Accepted forms:
    <skylink>                          bare 46-char base64
    sia://<skylink>[/path]             URI, long or short prefix
    https://portal/<skylink>[/path]    portal URL
    https://<base32>.portal/[path]     subdomain form (from_subdomain=True)

Returns None when no skylink is present; malformed option combinations
raise ValidationError.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import urlsplit

from ..errors import ValidationError
from ..utils import ensure_url, trim_suffix, trim_uri_prefix
from ..validation import validate_string
from .sia import URI_SKYNET_PREFIX

SKYLINK_MATCHER = re.compile(r"^([a-zA-Z0-9_-]{46})$")
SKYLINK_DIRECT_MATCHER = re.compile(r"^/?([a-zA-Z0-9_-]{46})((/.*)?)$")
SKYLINK_SUBDOMAIN_MATCHER = re.compile(r"^([a-z0-9_-]{55})(\..*)?$")


def parse_skylink(
    skylink_url: str,
    only_path: bool = False,
    include_path: bool = False,
    from_subdomain: bool = False,
) -> Optional[str]:
    """
    Extract the skylink (or its path) from a string.

    Args:
        skylink_url: Input string
        only_path: Return only the path after the skylink ("" when none)
        include_path: Return the skylink followed by its path
        from_subdomain: Read a base32 skylink from the first host label

    Returns:
        The skylink/path, or None if the input holds no skylink
    """
    validate_string("skylinkUrl", skylink_url, "parameter")
    if include_path and only_path:
        raise ValidationError(
            "opts", "includePath and onlyPath", "parameter", "at most one of the two set"
        )

    if from_subdomain:
        return _parse_subdomain(skylink_url, only_path, include_path)

    # Bare or URI-prefixed skylink, optionally followed by a path
    direct = SKYLINK_DIRECT_MATCHER.match(trim_uri_prefix(skylink_url, URI_SKYNET_PREFIX))
    if direct:
        if include_path:
            return trim_suffix(direct.group(0).lstrip("/"), "/")
        if only_path:
            return direct.group(2) or ""
        return direct.group(1)

    try:
        parsed = urlsplit(ensure_url(skylink_url))
    except ValueError:
        return None
    path = trim_suffix(parsed.path, "/")
    matched = SKYLINK_DIRECT_MATCHER.match(path)
    if not matched:
        return None
    if include_path:
        return trim_suffix(path.lstrip("/"), "/")
    if only_path:
        return matched.group(2) or ""
    return matched.group(1)


def _parse_subdomain(skylink_url: str, only_path: bool, include_path: bool) -> Optional[str]:
    if include_path:
        raise ValidationError(
            "opts", "includePath and fromSubdomain", "parameter", "at most one of the two set"
        )
    try:
        parsed = urlsplit(ensure_url(skylink_url))
    except ValueError:
        return None
    hostname = parsed.hostname or ""
    matched = SKYLINK_SUBDOMAIN_MATCHER.match(hostname)
    if not matched:
        return None
    if only_path:
        return trim_suffix(parsed.path, "/")
    return matched.group(1)
