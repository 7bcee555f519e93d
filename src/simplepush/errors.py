# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""Exception hierarchy for the SimplePush client.

Configuration and lookup errors also subclass the matching builtin
(``ValueError``, ``IndexError``) so callers can catch either.  A
:class:`TransportFault` is fatal for the session that raised it: the client
stores it and re-raises it from every later send.
"""

from __future__ import annotations


class SimplePushError(Exception):
    """Base class for all client errors."""


class InvalidEndpointError(SimplePushError, ValueError):
    """The push server address is not a usable WebSocket URL."""


class ClientStateError(SimplePushError, RuntimeError):
    """An operation was attempted in the wrong session state."""


class ChannelIndexError(SimplePushError, IndexError):
    """No channel is registered at the requested position."""


class CodecError(SimplePushError, ValueError):
    """A frame could not be parsed or did not match its message schema."""


class ChannelIdError(SimplePushError, RuntimeError):
    """The id factory kept returning channel ids that were already issued."""


class TransportFault(SimplePushError):
    """The connection to the push server failed and cannot be recovered."""


class TransportError(SimplePushError):
    """Raised by a transport for misuse, such as sending before it is opened."""


class TransportClosedError(TransportError):
    """The transport no longer accepts outbound frames."""


__all__ = [
    "SimplePushError",
    "InvalidEndpointError",
    "ClientStateError",
    "ChannelIndexError",
    "CodecError",
    "ChannelIdError",
    "TransportFault",
    "TransportError",
    "TransportClosedError",
]
