# skynet_client/options.py
"""
Skynet Client: Layered Options

One immutable options struct replaces per-call option bags. Precedence,
resolved once at the top of every public operation:

    call-site  >  client instance  >  DEFAULT_OPTIONS

A field left as None means "not set at this layer". The resolved object is
passed unchanged to every downstream call of the operation, so flags such
as hashed_data_key_hex cannot diverge between the read and the write of a
read-modify-write.

Usage:
    client = SkynetClient("https://siasky.net", ClientOptions(api_key="..."))
    await client.db.get_json(pk, "app.json", ClientOptions(cached_data_link=link))
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Callable, Optional

ProgressCallback = Callable[[float], None]


@dataclass(frozen=True)
class ClientOptions:
    """
    Client and per-call settings.

    Attributes:
        api_key: Portal password, sent as basic auth with an empty username
        custom_user_agent: User-Agent header override
        custom_cookie: Cookie header override
        on_upload_progress: Called with a fraction in [0, 1] after upload
        on_download_progress: Called with a fraction in [0, 1] after download
        endpoint_get_entry: Registry lookup path
        endpoint_set_entry: Registry update path
        endpoint_upload: Small-file upload path
        endpoint_download: Download path prefix
        hashed_data_key_hex: Data key is already a hex-encoded 32-byte hash
        cached_data_link: Skip the download when the entry still points here
        custom_filename: Filename for uploads
        timeout: Client-side HTTP timeout in seconds
    """
    api_key: Optional[str] = None
    custom_user_agent: Optional[str] = None
    custom_cookie: Optional[str] = None
    on_upload_progress: Optional[ProgressCallback] = None
    on_download_progress: Optional[ProgressCallback] = None
    endpoint_get_entry: Optional[str] = None
    endpoint_set_entry: Optional[str] = None
    endpoint_upload: Optional[str] = None
    endpoint_download: Optional[str] = None
    hashed_data_key_hex: Optional[bool] = None
    cached_data_link: Optional[str] = None
    custom_filename: Optional[str] = None
    timeout: Optional[float] = None

    def merged_over(self, base: "ClientOptions") -> "ClientOptions":
        """Return base with every field set here taking precedence."""
        overrides = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }
        return replace(base, **overrides)

    def with_overrides(self, **kwargs) -> "ClientOptions":
        return replace(self, **kwargs)


DEFAULT_OPTIONS = ClientOptions(
    endpoint_get_entry="/skynet/registry",
    endpoint_set_entry="/skynet/registry",
    endpoint_upload="/skynet/skyfile",
    endpoint_download="/",
    hashed_data_key_hex=False,
    timeout=30.0,
)


def resolve_options(
    client_opts: Optional[ClientOptions] = None,
    call_opts: Optional[ClientOptions] = None,
) -> ClientOptions:
    """Layer call-site over client-instance over built-in defaults."""
    opts = DEFAULT_OPTIONS
    if client_opts is not None:
        opts = client_opts.merged_over(opts)
    if call_opts is not None:
        opts = call_opts.merged_over(opts)
    return opts
