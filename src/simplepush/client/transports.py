# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""Connection transports for :mod:`simplepush.client`.

A transport moves text frames between the client and the push server and
reports its lifecycle through a :class:`TransportListener`.  It knows nothing
about the protocol carried on top.

:class:`WebSocketTransport` is the default implementation, built on the
``websockets`` asyncio client.  Outbound frames go through an unbounded
in-memory stream, so :meth:`~BaseTransport.send` never waits on the network
and frames queued before the handshake completes are flushed in order once it
does.  The reader and writer run as tasks in the task group passed to
:meth:`~BaseTransport.open`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
import math
from typing import Protocol, runtime_checkable

import anyio
from anyio.abc import TaskGroup
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from ..errors import TransportClosedError, TransportError
from ..utils.logger import get_logger


@runtime_checkable
class TransportListener(Protocol):
    """Lifecycle callbacks a transport invokes from its reader task."""

    async def on_open(self) -> None:  # pragma: no cover - protocol
        ...

    async def on_text(self, text: str | bytes) -> None:  # pragma: no cover - protocol
        ...

    async def on_close(self, code: int | None, reason: str, remote: bool) -> None:  # pragma: no cover - protocol
        ...

    async def on_error(self, exc: BaseException) -> None:  # pragma: no cover - protocol
        ...


class BaseTransport(ABC):
    """Common base for client transports.

    Subclasses implement :meth:`open`, :meth:`send` and :meth:`close`.
    :meth:`abort` is called by the client when a graceful close did not finish
    in time; the default does nothing.
    """

    def __init__(self, url: str) -> None:
        self._url = url

    @property
    def url(self) -> str:
        return self._url

    @abstractmethod
    async def open(self, task_group: TaskGroup, listener: TransportListener) -> None:
        """Start connecting in *task_group* and return without waiting for the handshake."""

    @abstractmethod
    async def send(self, text: str) -> None:
        """Queue *text* for delivery.

        Raises:
            TransportClosedError: when the transport no longer accepts frames.
        """

    @abstractmethod
    async def close(self) -> None:
        """Close gracefully and wait until the connection is down."""

    def abort(self) -> None:
        """Tear the connection down without a closing handshake."""


class WebSocketTransport(BaseTransport):
    """WebSocket transport backed by :func:`websockets.asyncio.client.connect`."""

    def __init__(
        self,
        url: str,
        *,
        open_timeout: float | None = 10.0,
        ping_interval: float | None = 20.0,
        max_size: int | None = 2**20,
        extra_headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(url)
        self._open_timeout = open_timeout
        self._ping_interval = ping_interval
        self._max_size = max_size
        self._extra_headers = dict(extra_headers or {})
        self._logger = get_logger("simplepush.transport")

        self._listener: TransportListener | None = None
        self._task_group: TaskGroup | None = None
        self._outbox_send: MemoryObjectSendStream[str] | None = None
        self._outbox_recv: MemoryObjectReceiveStream[str] | None = None
        self._ws: ClientConnection | None = None
        self._scope: anyio.CancelScope | None = None
        self._writer_done: anyio.Event | None = None
        self._finished: anyio.Event | None = None
        self._closing = False

    async def open(self, task_group: TaskGroup, listener: TransportListener) -> None:
        if self._listener is not None:
            raise TransportError("transport already opened")
        self._listener = listener
        self._task_group = task_group
        self._outbox_send, self._outbox_recv = anyio.create_memory_object_stream[str](math.inf)
        self._scope = anyio.CancelScope()
        self._writer_done = anyio.Event()
        self._finished = anyio.Event()
        task_group.start_soon(self._run)

    async def send(self, text: str) -> None:
        if self._outbox_send is None:
            raise TransportClosedError("transport is not open")
        try:
            self._outbox_send.send_nowait(text)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError) as exc:
            raise TransportClosedError("transport is closed") from exc

    async def close(self) -> None:
        self._closing = True
        if self._outbox_send is None or self._finished is None:
            return
        self._outbox_send.close()

        ws = self._ws
        if ws is not None and self._writer_done is not None:
            # Let queued frames drain before the closing handshake.
            await self._writer_done.wait()
            await ws.close()
        elif self._scope is not None:
            # Still handshaking; nothing has been sent yet.
            self._scope.cancel()
        await self._finished.wait()

    def abort(self) -> None:
        if self._scope is not None:
            self._scope.cancel()

    async def _run(self) -> None:
        assert self._listener is not None and self._scope is not None
        assert self._writer_done is not None and self._finished is not None
        listener = self._listener
        try:
            with self._scope:
                try:
                    async with connect(
                        self._url,
                        open_timeout=self._open_timeout,
                        ping_interval=self._ping_interval,
                        max_size=self._max_size,
                        additional_headers=self._extra_headers or None,
                    ) as ws:
                        self._ws = ws
                        self._logger.debug("connected to %s", self._url)
                        assert self._task_group is not None
                        self._task_group.start_soon(self._write_loop, ws)
                        await listener.on_open()
                        async for message in ws:
                            await listener.on_text(message)
                except (OSError, TimeoutError, WebSocketException) as exc:
                    self._logger.debug("connection to %s failed: %r", self._url, exc)
                    await listener.on_error(exc)
                else:
                    code = self._ws.close_code if self._ws is not None else None
                    reason = self._ws.close_reason if self._ws is not None else ""
                    await listener.on_close(code, reason or "", not self._closing)
        finally:
            if self._outbox_send is not None:
                self._outbox_send.close()
            if self._outbox_recv is not None:
                self._outbox_recv.close()
            self._writer_done.set()
            self._finished.set()

    async def _write_loop(self, ws: ClientConnection) -> None:
        assert self._outbox_recv is not None
        try:
            async with self._outbox_recv:
                async for text in self._outbox_recv:
                    await ws.send(text)
        except ConnectionClosed:
            # The reader observes the same close and reports it.
            pass
        finally:
            if self._writer_done is not None:
                self._writer_done.set()


__all__ = ["BaseTransport", "TransportListener", "WebSocketTransport"]
