# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""High-level client entrypoint.

`open_connection` builds a :class:`~simplepush.client.SimplePushClient`, sends
``hello`` and yields the client inside a single ``async with`` block.  The
connection is closed when the block exits.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from dataclasses import replace

from ..config import ClientConfig
from .app import ErrorListener, SimplePushClient
from .dispatcher import MessageListener
from .transports import BaseTransport


@asynccontextmanager
async def open_connection(
    url: str,
    *,
    config: ClientConfig | None = None,
    transport: BaseTransport | None = None,
    on_message: MessageListener | None = None,
    on_error: ErrorListener | None = None,
    extra_headers: Mapping[str, str] | None = None,
) -> AsyncGenerator[SimplePushClient, None]:
    """Open a SimplePush session.

    Args:
        url: ``ws://`` or ``wss://`` address of the push server.
        config: Optional client configuration.
        transport: Optional transport; defaults to :class:`WebSocketTransport`.
        on_message: Listener for notification updates, attached before ``hello``
            is sent so no early update is missed.
        on_error: Listener for a fatal transport fault.
        extra_headers: HTTP headers merged into ``config.extra_headers`` for the
            WebSocket handshake.

    Yields:
        SimplePushClient: a client whose ``hello`` has been queued.
    """
    config = config or ClientConfig()
    if extra_headers:
        config = replace(config, extra_headers={**config.extra_headers, **extra_headers})

    async with SimplePushClient(url, config=config, transport=transport) as client:
        client.add_message_listener(on_message)
        client.add_error_listener(on_error)
        await client.connect()
        yield client


__all__ = ["open_connection"]
