# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""Client configuration and endpoint validation."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from urllib.parse import urlparse

from .errors import InvalidEndpointError
from .ids import IdFactory, new_uaid


WEBSOCKET_SCHEMES = frozenset({"ws", "wss"})


@dataclass(slots=True)
class ClientConfig:
    """Tunables for :class:`~simplepush.client.SimplePushClient`.

    Timeouts are in seconds.  ``ping_interval=None`` disables WebSocket
    keepalive pings.  ``id_factory`` generates both the UAID and channel ids.
    """

    open_timeout: float = 10.0
    close_timeout: float = 5.0
    ping_interval: float | None = 20.0
    max_frame_size: int | None = 2**20
    extra_headers: Mapping[str, str] = field(default_factory=dict)
    id_factory: IdFactory = new_uaid


def validate_endpoint(url: str) -> str:
    """Return *url* unchanged if it is a ``ws://`` or ``wss://`` URL with a host.

    Raises:
        InvalidEndpointError: when the URL cannot be parsed or is not a
            WebSocket address.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidEndpointError("invalid simple push endpoint url: empty value")

    try:
        parsed = urlparse(url)
        # Accessing ``port`` validates the netloc's port component.
        parsed.port
    except ValueError as exc:
        raise InvalidEndpointError(f"invalid simple push endpoint url: {url!r}") from exc

    if parsed.scheme.lower() not in WEBSOCKET_SCHEMES:
        raise InvalidEndpointError(f"unsupported scheme {parsed.scheme!r} in {url!r}; expected ws or wss")
    if not parsed.hostname:
        raise InvalidEndpointError(f"missing host in simple push endpoint url {url!r}")
    return url


__all__ = ["ClientConfig", "WEBSOCKET_SCHEMES", "validate_endpoint"]
