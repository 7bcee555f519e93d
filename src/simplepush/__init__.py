# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""SimplePush client primitives."""

from __future__ import annotations

from . import protocol
from .client import SessionState, SimplePushClient, open_connection
from .config import ClientConfig
from .errors import (
    ChannelIdError,
    ChannelIndexError,
    ClientStateError,
    CodecError,
    InvalidEndpointError,
    SimplePushError,
    TransportFault,
)
from .protocol import Update


__all__ = [
    "SimplePushClient",
    "SessionState",
    "ClientConfig",
    "open_connection",
    "Update",
    "protocol",
    "SimplePushError",
    "InvalidEndpointError",
    "ClientStateError",
    "ChannelIdError",
    "ChannelIndexError",
    "CodecError",
    "TransportFault",
]
