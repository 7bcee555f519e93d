# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""Shared test helpers for client tests."""

from __future__ import annotations

from itertools import count
import json
from typing import Any

import anyio
from anyio.abc import TaskGroup

from simplepush.client.transports import BaseTransport, TransportListener
from simplepush.errors import TransportClosedError


ENDPOINT = "ws://push.test/simplepush"


class FakeTransport(BaseTransport):
    """In-memory transport that records outbound frames and injects inbound ones.

    Every outbound frame is also appended to ``events`` as ``("send", frame)`` so
    tests can interleave it with listener calls.
    """

    def __init__(self, url: str = ENDPOINT, events: list[tuple[str, Any]] | None = None) -> None:
        super().__init__(url)
        self.events = events if events is not None else []
        self.sent: list[str] = []
        self.listener: TransportListener | None = None
        self.task_group: TaskGroup | None = None
        self.closed = False
        self.aborted = False
        self.close_delay = 0.0
        self.close_error: BaseException | None = None

    @property
    def frames(self) -> list[dict[str, Any]]:
        return [json.loads(text) for text in self.sent]

    async def open(self, task_group: TaskGroup, listener: TransportListener) -> None:
        self.task_group = task_group
        self.listener = listener

    async def send(self, text: str) -> None:
        if self.closed:
            raise TransportClosedError("fake transport closed")
        self.sent.append(text)
        self.events.append(("send", json.loads(text)))

    async def close(self) -> None:
        if self.close_delay:
            await anyio.sleep(self.close_delay)
        self.closed = True
        if self.close_error is not None:
            raise self.close_error

    def abort(self) -> None:
        self.aborted = True

    async def deliver(self, payload: dict[str, Any] | str) -> None:
        """Feed one inbound frame to the listener, as the reader task would."""
        assert self.listener is not None, "transport was never opened"
        text = payload if isinstance(payload, str) else json.dumps(payload)
        await self.listener.on_text(text)


class SequentialIds:
    """Deterministic id factory: ``id-0``, ``id-1``, ..."""

    def __init__(self, prefix: str = "id") -> None:
        self._prefix = prefix
        self._counter = count()

    def __call__(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"


def register_response(channel_id: str, *, endpoint: str | None = None, status: int = 200) -> dict[str, Any]:
    return {
        "messageType": "register",
        "channelID": channel_id,
        "pushEndpoint": endpoint if endpoint is not None else f"http://push.test/update/{channel_id}",
        "status": status,
    }


def notification(*updates: tuple[str, int]) -> dict[str, Any]:
    return {
        "messageType": "notification",
        "updates": [{"channelID": channel_id, "version": version} for channel_id, version in updates],
    }
