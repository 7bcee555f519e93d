# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""Public client-side API.

The session logic lives in :mod:`simplepush.client.app`; this wrapper exposes
the pieces most applications use.
"""

from __future__ import annotations

from .app import ErrorListener, SessionState, SimplePushClient
from .connection import open_connection
from .dispatcher import MessageDispatcher, MessageListener
from .registry import Channel, ChannelRegistry, ChannelState, RegistrationListener
from .transports import BaseTransport, TransportListener, WebSocketTransport


__all__ = [
    "SimplePushClient",
    "SessionState",
    "open_connection",
    "Channel",
    "ChannelRegistry",
    "ChannelState",
    "MessageDispatcher",
    "BaseTransport",
    "TransportListener",
    "WebSocketTransport",
    "ErrorListener",
    "MessageListener",
    "RegistrationListener",
]
