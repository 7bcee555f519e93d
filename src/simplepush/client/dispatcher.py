# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""Inbound frame dispatch.

:class:`MessageDispatcher` maps each known ``messageType`` to a handler
coroutine.  It owns no I/O: outbound frames go through the ``send`` callable
supplied by the client, which makes the dispatcher testable without a
transport.

Handled tags:

* ``register``: a registration result. Completes the pending listener for that
  channel id and marks the channel registered.  A non-200 status is kept on
  the channel and logged.
* ``notification``: for each update, in order, send a single-update ack and
  then deliver the update to the message listener.
* ``unregister``: the server confirmed an unregistration; drop the channel.

Anything else (``hello``, ``ping``, unknown tags) is ignored.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from ..errors import CodecError
from ..protocol import (
    Ack,
    Frame,
    MessageType,
    Notification,
    ProtocolMessage,
    RegisterResponse,
    Unregister,
    Update,
    decode,
    parse_frame,
)
from ..utils.coro import maybe_await_with_args
from ..utils.logger import get_logger
from .registry import ChannelRegistry


MessageListener = Callable[[Update], Awaitable[None] | None]
SendMessage = Callable[[ProtocolMessage], Awaitable[None]]
FrameHandler = Callable[[Frame], Awaitable[None]]


class MessageDispatcher:
    """Route decoded frames to registry updates, acks and listeners."""

    def __init__(self, registry: ChannelRegistry, send: SendMessage) -> None:
        self._registry = registry
        self._send = send
        self._logger = get_logger("simplepush.dispatcher")
        self.message_listener: MessageListener | None = None
        self._handlers: dict[MessageType, FrameHandler] = {
            MessageType.REGISTER: self._on_register,
            MessageType.NOTIFICATION: self._on_notification,
            MessageType.UNREGISTER: self._on_unregister,
        }

    async def dispatch(self, text: str | bytes) -> None:
        """Handle one inbound frame.

        Malformed frames and bodies are logged and dropped.  Errors raised while
        sending acks propagate to the caller.
        """
        try:
            frame = parse_frame(text)
        except CodecError as exc:
            self._logger.warning("dropping malformed frame: %s", exc)
            return

        handler = self._handlers.get(frame.message_type) if frame.message_type is not None else None
        if handler is None:
            self._logger.debug("ignoring %r frame", frame.tag)
            return

        try:
            await handler(frame)
        except CodecError as exc:
            self._logger.warning("dropping %r frame: %s", frame.tag, exc)

    async def _on_register(self, frame: Frame) -> None:
        response = decode(frame, RegisterResponse)
        channel, listener = self._registry.complete(response.channel_id, response.push_endpoint, response.status)
        if channel is None:
            self._logger.info("register response for unknown channel %s", response.channel_id)
            return

        if not response.ok:
            self._logger.warning(
                "channel %s registered with non-ok status %s",
                response.channel_id,
                response.status,
                extra={"context": {"channel_id": response.channel_id, "status": response.status}},
            )
        else:
            self._logger.debug("channel %s registered at %s", response.channel_id, response.push_endpoint)

        if listener is not None:
            await self._notify(listener, response.channel_id, response.push_endpoint)

    async def _on_notification(self, frame: Frame) -> None:
        notification = decode(frame, Notification)
        for update in notification.updates:
            await self._send(Ack(updates=(update,)))
            listener = self.message_listener
            if listener is not None:
                await self._notify(listener, update)

    async def _on_unregister(self, frame: Frame) -> None:
        message = decode(frame, Unregister)
        if self._registry.remove(message.channel_id) is None:
            self._logger.debug("unregister echo for absent channel %s", message.channel_id)
            return
        self._logger.debug(
            "channel %s unregistered", message.channel_id, extra={"context": self._registry.describe()}
        )

    async def _notify(self, listener: Callable[..., Any], *args: Any) -> None:
        # Listener failures must not take down the reader loop.
        try:
            await maybe_await_with_args(listener, *args)
        except Exception:
            self._logger.exception("listener %r raised", listener)


__all__ = ["MessageDispatcher", "MessageListener"]
