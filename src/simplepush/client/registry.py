# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""Channel registry shared by caller tasks and the transport reader.

The registry keeps channels in insertion order so callers can address them by
position, and indexes them by id for the dispatcher.  Pending registration
listeners are tracked per channel id, so overlapping ``register`` calls are
each completed by their own listener.

Every read and write happens under a :class:`threading.Lock`.  None of the
methods await while holding it, which keeps them safe from both event-loop
tasks and worker threads.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from enum import Enum
import threading
from typing import Any

from ..errors import ChannelIdError, ChannelIndexError
from ..ids import IdFactory


RegistrationListener = Callable[[str, str | None], Awaitable[None] | None]

_MAX_ID_ATTEMPTS = 16


class ChannelState(str, Enum):
    PENDING = "pending"
    REGISTERED = "registered"


@dataclass(frozen=True, slots=True)
class Channel:
    """Snapshot of one channel subscription."""

    channel_id: str
    state: ChannelState = ChannelState.PENDING
    push_endpoint: str | None = None
    status: int | None = None


class ChannelRegistry:
    """Ordered, lock-guarded collection of :class:`Channel` records."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._order: list[str] = []
        self._channels: dict[str, Channel] = {}
        self._pending: dict[str, RegistrationListener | None] = {}
        self._issued: set[str] = set()

    def __len__(self) -> int:
        with self._lock:
            return len(self._order)

    def __contains__(self, channel_id: object) -> bool:
        with self._lock:
            return channel_id in self._channels

    def add_pending(self, id_factory: IdFactory, listener: RegistrationListener | None = None) -> Channel:
        """Issue a fresh channel id, append it as PENDING and park *listener*.

        Ids are never reissued, even after the channel is removed.
        """
        with self._lock:
            for _ in range(_MAX_ID_ATTEMPTS):
                channel_id = id_factory()
                if channel_id not in self._issued:
                    break
            else:
                raise ChannelIdError(f"id factory repeated an issued id {_MAX_ID_ATTEMPTS} times in a row")

            channel = Channel(channel_id)
            self._issued.add(channel_id)
            self._order.append(channel_id)
            self._channels[channel_id] = channel
            self._pending[channel_id] = listener
            return channel

    def complete(
        self, channel_id: str, push_endpoint: str | None, status: int
    ) -> tuple[Channel | None, RegistrationListener | None]:
        """Mark *channel_id* registered and hand back the parked listener.

        Every register response completes the channel, whatever its status;
        *status* is kept on the record.  Returns ``(None, None)`` when the
        channel is not in the registry.  The pending entry is consumed either
        way, so a listener fires at most once.
        """
        with self._lock:
            listener = self._pending.pop(channel_id, None)
            current = self._channels.get(channel_id)
            if current is None:
                return None, None

            updated = replace(current, state=ChannelState.REGISTERED, push_endpoint=push_endpoint, status=status)
            self._channels[channel_id] = updated
            return updated, listener

    def remove(self, channel_id: str) -> Channel | None:
        """Drop *channel_id*; returns the removed channel or ``None`` if absent."""
        with self._lock:
            channel = self._channels.pop(channel_id, None)
            if channel is None:
                return None
            self._order.remove(channel_id)
            self._pending.pop(channel_id, None)
            return channel

    def channel_id_at(self, index: int) -> str:
        with self._lock:
            if not 0 <= index < len(self._order):
                raise ChannelIndexError(f"channel index {index} out of range (registered: {len(self._order)})")
            return self._order[index]

    def get(self, channel_id: str) -> Channel | None:
        with self._lock:
            return self._channels.get(channel_id)

    def is_pending(self, channel_id: str) -> bool:
        """Whether a register response for *channel_id* is still outstanding."""
        with self._lock:
            return channel_id in self._pending

    def snapshot(self) -> tuple[Channel, ...]:
        with self._lock:
            return tuple(self._channels[channel_id] for channel_id in self._order)

    def describe(self) -> dict[str, Any]:
        """Counts used in log context."""
        with self._lock:
            return {"channels": len(self._order), "pending": len(self._pending)}


__all__ = ["Channel", "ChannelRegistry", "ChannelState", "RegistrationListener"]
