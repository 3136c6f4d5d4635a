# skynet_client/tasks.py
"""
Structured fork-join for independent portal calls.

    ┌─ task A ─┐
    │          ├─► join ─► (result A, result B)
    └─ task B ─┘

Both branches run as tasks. If either fails, or the caller is cancelled,
the branches still pending are cancelled and awaited before the error
propagates, so no request outlives the operation that issued it.

Usage:
    upload, signed = await fork_join(
        client.upload_file(payload, filename),
        client.registry.get_entry(public_key, data_key),
    )
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Tuple


async def fork_join(*awaitables: Awaitable[Any]) -> Tuple[Any, ...]:
    """Run awaitables concurrently; return their results in order."""
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    try:
        return tuple(await asyncio.gather(*tasks))
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        # Collect every outcome so no exception goes unretrieved
        await asyncio.gather(*tasks, return_exceptions=True)
