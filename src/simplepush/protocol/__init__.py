# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""SimplePush wire protocol: message models and the JSON codec."""

from __future__ import annotations

from .codec import Frame, decode, encode, parse_frame
from .messages import (
    STATUS_OK,
    Ack,
    Hello,
    MessageType,
    Notification,
    ProtocolMessage,
    Register,
    RegisterResponse,
    Unregister,
    Update,
)


__all__ = [
    "STATUS_OK",
    "Ack",
    "Frame",
    "Hello",
    "MessageType",
    "Notification",
    "ProtocolMessage",
    "Register",
    "RegisterResponse",
    "Unregister",
    "Update",
    "decode",
    "encode",
    "parse_frame",
]
