# skynet_client/errors.py
"""
Skynet Client: Error Taxonomy

Every failure surfaced by the client derives from SkynetError.

    SkynetError
     ├─ ValidationError        caller passed a malformed key/entry/option
     ├─ IntegrityError         signature or stored-format mismatch
     │    └─ InvalidSignatureError
     ├─ RevisionExhaustedError revision would pass 2^64 - 1
     ├─ TransportError         non-2xx response or connection failure
     └─ PermissionDeniedError  the identity delegate refused to sign

A registry 404 is never an error: it is returned as an absent entry.
"""

from __future__ import annotations

from typing import Any, Optional


class SkynetError(Exception):
    """Base Skynet client error."""
    pass


class ValidationError(SkynetError, ValueError):
    """Input failed validation before any network call was made."""

    def __init__(self, name: str, value: Any, value_kind: str, expected: str):
        self.name = name
        self.value = value
        self.value_kind = value_kind
        self.expected = expected
        super().__init__(
            f"Expected {value_kind} '{name}' to be {expected}, was {_describe(value)}"
        )


class IntegrityError(SkynetError):
    """Data returned by the portal cannot be trusted or understood."""
    pass


class InvalidSignatureError(IntegrityError):
    """Signature does not verify against the entry and public key."""

    def __init__(self, public_key: str, data_key: str):
        self.public_key = public_key
        self.data_key = data_key
        super().__init__(
            "could not verify signature from retrieved, signed registry entry "
            "-- possible corrupted entry"
        )


class RevisionExhaustedError(SkynetError):
    """Entry already holds the maximum revision and can never be updated."""

    def __init__(self, revision: int):
        self.revision = revision
        super().__init__(
            "Current entry already has maximum allowed revision, could not update the entry"
        )


class TransportError(SkynetError):
    """HTTP request failed."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        body: str = "",
    ):
        self.status_code = status_code
        self.url = url
        self.body = body
        super().__init__(message)


class PermissionDeniedError(SkynetError):
    """Identity delegate denied access to a path."""

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Permission denied for path '{path}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


def _describe(value: Any) -> str:
    """Short, type-tagged rendering of a value for error messages."""
    if isinstance(value, (bytes, bytearray)):
        return f"type 'bytes' of length {len(value)}"
    text = repr(value)
    if len(text) > 80:
        text = text[:77] + "..."
    return f"type '{type(value).__name__}', value {text}"
