# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""Pydantic models for SimplePush protocol messages.

Every frame is one JSON object tagged by ``messageType``.  Field names use
snake_case in Python and the protocol's camelCase spelling on the wire
(``channelID``, ``pushEndpoint``), so models are dumped ``by_alias``.

A client ``register`` request and the server's reply share the same tag; the
reply additionally carries ``pushEndpoint`` and ``status``.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


STATUS_OK = 200


class MessageType(str, Enum):
    HELLO = "hello"
    REGISTER = "register"
    NOTIFICATION = "notification"
    ACK = "ack"
    UNREGISTER = "unregister"
    PING = "ping"


class ProtocolModel(BaseModel):
    """Base for wire models: accepts both field names and aliases."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class ProtocolMessage(ProtocolModel):
    """A top-level frame; subclasses pin ``message_type`` to their tag."""

    TYPE: ClassVar[MessageType]

    message_type: MessageType = Field(alias="messageType")


class Update(ProtocolModel):
    """A channel that has new content at ``version``; also the ack target."""

    channel_id: str = Field(alias="channelID")
    version: int


class Hello(ProtocolMessage):
    TYPE: ClassVar[MessageType] = MessageType.HELLO

    message_type: MessageType = Field(default=MessageType.HELLO, alias="messageType")
    uaid: str


class Register(ProtocolMessage):
    TYPE: ClassVar[MessageType] = MessageType.REGISTER

    message_type: MessageType = Field(default=MessageType.REGISTER, alias="messageType")
    channel_id: str = Field(alias="channelID")


class RegisterResponse(ProtocolMessage):
    """Server reply to :class:`Register`."""

    TYPE: ClassVar[MessageType] = MessageType.REGISTER

    message_type: MessageType = Field(default=MessageType.REGISTER, alias="messageType")
    channel_id: str = Field(alias="channelID")
    push_endpoint: str | None = Field(default=None, alias="pushEndpoint")
    status: int = STATUS_OK

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


class Notification(ProtocolMessage):
    TYPE: ClassVar[MessageType] = MessageType.NOTIFICATION

    message_type: MessageType = Field(default=MessageType.NOTIFICATION, alias="messageType")
    updates: tuple[Update, ...] = ()


class Ack(ProtocolMessage):
    TYPE: ClassVar[MessageType] = MessageType.ACK

    message_type: MessageType = Field(default=MessageType.ACK, alias="messageType")
    updates: tuple[Update, ...]


class Unregister(ProtocolMessage):
    TYPE: ClassVar[MessageType] = MessageType.UNREGISTER

    message_type: MessageType = Field(default=MessageType.UNREGISTER, alias="messageType")
    channel_id: str = Field(alias="channelID")


__all__ = [
    "STATUS_OK",
    "MessageType",
    "ProtocolMessage",
    "Update",
    "Hello",
    "Register",
    "RegisterResponse",
    "Notification",
    "Ack",
    "Unregister",
]
