"""SimplePush protocol client.

`SimplePushClient` drives the session lifecycle on top of a transport:

* ``connect`` opens the transport and sends one ``hello`` carrying a freshly
  generated UAID, without waiting for the handshake;
* ``register`` / ``unregister`` manage channel subscriptions;
* inbound frames are routed through :class:`~simplepush.client.dispatcher.MessageDispatcher`;
* ``close`` shuts the connection down on a best-effort basis.

A transport error is fatal.  The client moves to :attr:`SessionState.FAILED`,
keeps the :class:`~simplepush.errors.TransportFault` on :attr:`fault`, notifies
the error listener and refuses further sends.  There is no reconnect; callers
that need one create a new client.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import AsyncExitStack
from enum import Enum

import anyio
from anyio.abc import TaskGroup

from ..config import ClientConfig, validate_endpoint
from ..errors import ClientStateError, TransportError, TransportFault
from ..protocol import Hello, ProtocolMessage, Register, Unregister, encode
from ..utils.coro import maybe_await_with_args
from ..utils.logger import get_logger
from .dispatcher import MessageDispatcher, MessageListener
from .registry import Channel, ChannelRegistry, RegistrationListener
from .transports import BaseTransport, WebSocketTransport


ErrorListener = Callable[[TransportFault], Awaitable[None] | None]


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    FAILED = "failed"


class SimplePushClient:
    """Client for a SimplePush server reachable at a ``ws://`` or ``wss://`` URL.

    Use it as an async context manager so the client owns the task group its
    transport runs in::

        async with SimplePushClient("wss://push.example.com/") as client:
            client.add_message_listener(on_update)
            await client.connect()
            channel_id = await client.register(on_registered)

    Raises:
        InvalidEndpointError: if *endpoint* is not a WebSocket URL.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        config: ClientConfig | None = None,
        transport: BaseTransport | None = None,
    ) -> None:
        self._endpoint = validate_endpoint(endpoint)
        self._config = config or ClientConfig()
        self._transport = transport or WebSocketTransport(
            self._endpoint,
            open_timeout=self._config.open_timeout,
            ping_interval=self._config.ping_interval,
            max_size=self._config.max_frame_size,
            extra_headers=self._config.extra_headers,
        )
        self._logger = get_logger("simplepush.client")

        self._registry = ChannelRegistry()
        self._dispatcher = MessageDispatcher(self._registry, self._send)
        self._error_listener: ErrorListener | None = None

        self._state = SessionState.DISCONNECTED
        self._uaid: str | None = None
        self._fault: TransportFault | None = None
        self._hello_queued: anyio.Event | None = None

        self._exit_stack: AsyncExitStack | None = None
        self._task_group: TaskGroup | None = None

    # ---------------------------------------------------------------------
    # Async context manager
    # ---------------------------------------------------------------------

    async def __aenter__(self) -> "SimplePushClient":
        stack = AsyncExitStack()
        self._task_group = await stack.enter_async_context(anyio.create_task_group())
        self._exit_stack = stack
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool | None:
        stack, self._exit_stack = self._exit_stack, None
        try:
            await self.close()
        finally:
            self._task_group = None
            if stack is not None:
                await stack.__aexit__(exc_type, exc, tb)
        return None

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def uaid(self) -> str | None:
        """Session identifier sent in ``hello``; ``None`` until :meth:`connect`."""
        return self._uaid

    @property
    def fault(self) -> TransportFault | None:
        """The fatal transport error, once the session has failed."""
        return self._fault

    @property
    def registry(self) -> ChannelRegistry:
        return self._registry

    @property
    def channels(self) -> tuple[Channel, ...]:
        return self._registry.snapshot()

    def channel(self, channel_id: str) -> Channel | None:
        return self._registry.get(channel_id)

    def add_message_listener(self, listener: MessageListener | None) -> None:
        """Set the listener for notification updates, replacing any previous one."""
        self._dispatcher.message_listener = listener

    def add_error_listener(self, listener: ErrorListener | None) -> None:
        """Set the listener notified once when the transport fails."""
        self._error_listener = listener

    async def connect(self) -> None:
        """Open the transport and send ``hello``.

        Returns as soon as the hello frame is queued; the handshake completes
        in the background.
        """
        if self._state is not SessionState.DISCONNECTED:
            raise ClientStateError(f"connect() called in state {self._state.value!r}")
        if self._task_group is None:
            raise ClientStateError("use 'async with SimplePushClient(...)' before connect()")

        self._uaid = self._config.id_factory()
        self._hello_queued = anyio.Event()
        self._state = SessionState.CONNECTING
        self._logger.info("connecting to %s", self._endpoint, extra={"context": {"uaid": self._uaid}})
        try:
            await self._transport.open(self._task_group, self)
            await self._write(Hello(uaid=self._uaid))
        except BaseException:
            if self._state is SessionState.CONNECTING:
                self._state = SessionState.CLOSED
            raise
        finally:
            # Releases sends parked behind the hello, including on failure.
            self._hello_queued.set()

    async def register(self, listener: RegistrationListener | None = None) -> str:
        """Request a new channel and return its id.

        The channel is visible as PENDING immediately; *listener* is called with
        ``(channel_id, push_endpoint)`` once the server answers.
        """
        self._ensure_sendable()
        channel = self._registry.add_pending(self._config.id_factory, listener)
        await self._send(Register(channel_id=channel.channel_id))
        return channel.channel_id

    def get_channel_id(self, index: int) -> str:
        """Return the id of the channel at *index*, in registration order.

        Raises:
            ChannelIndexError: if no channel is registered at *index*.
        """
        return self._registry.channel_id_at(index)

    async def unregister(self, channel_id: str) -> None:
        """Ask the server to drop *channel_id*.

        The channel stays in the registry until the server echoes the
        unregistration.
        """
        await self._send(Unregister(channel_id=channel_id))

    async def close(self) -> None:
        """Close the connection, waiting at most ``config.close_timeout`` seconds.

        Never raises for close-time failures.  The state is CLOSED afterwards;
        a transport fault stays available on :attr:`fault`.
        """
        if self._state in (SessionState.CLOSED, SessionState.DISCONNECTED):
            self._state = SessionState.CLOSED
            return

        self._state = SessionState.CLOSED
        with anyio.move_on_after(self._config.close_timeout) as scope:
            try:
                await self._transport.close()
            except (TransportError, OSError) as exc:
                self._logger.debug("ignoring error while closing: %r", exc)
        if scope.cancelled_caught:
            self._logger.warning("close did not finish within %.1fs; aborting", self._config.close_timeout)
            self._transport.abort()
        self._logger.info("connection to %s closed", self._endpoint)

    # ------------------------------------------------------------------
    # Transport callbacks
    # ------------------------------------------------------------------

    async def on_open(self) -> None:
        if self._state is SessionState.CONNECTING:
            self._state = SessionState.OPEN
        self._logger.debug("transport open")

    async def on_text(self, text: str | bytes) -> None:
        try:
            await self._dispatcher.dispatch(text)
        except (TransportFault, TransportError, ClientStateError) as exc:
            # The session ended while a frame was in flight; the ack cannot go out.
            self._logger.debug("dropping ack after session ended: %r", exc)

    async def on_close(self, code: int | None, reason: str, remote: bool) -> None:
        if self._state is not SessionState.FAILED:
            self._state = SessionState.CLOSED
        self._logger.info(
            "connection closed by %s (code=%s reason=%r)", "server" if remote else "client", code, reason
        )

    async def on_error(self, exc: BaseException) -> None:
        fault = TransportFault("error in communication channel with simple push server")
        fault.__cause__ = exc
        self._fault = fault
        self._state = SessionState.FAILED
        self._logger.error("transport failed: %r", exc)
        listener = self._error_listener
        if listener is not None:
            try:
                await maybe_await_with_args(listener, fault)
            except Exception:
                self._logger.exception("error listener %r raised", listener)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_sendable(self) -> None:
        if self._fault is not None:
            raise self._fault
        if self._state in (SessionState.CONNECTING, SessionState.OPEN):
            return
        raise ClientStateError(f"cannot send in state {self._state.value!r}; call connect() first")

    async def _send(self, message: ProtocolMessage) -> None:
        self._ensure_sendable()
        if self._hello_queued is not None and not self._hello_queued.is_set():
            await self._hello_queued.wait()
            self._ensure_sendable()
        await self._write(message)

    async def _write(self, message: ProtocolMessage) -> None:
        try:
            await self._transport.send(encode(message))
        except TransportError as exc:
            raise ClientStateError(f"cannot send {message.TYPE.value!r}: {exc}") from exc


__all__ = ["SessionState", "SimplePushClient", "ErrorListener"]
