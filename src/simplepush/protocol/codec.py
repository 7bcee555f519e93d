# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/simplepush-python/LICENSE
# ==============================================================================

"""JSON text codec for protocol frames.

Decoding happens in two steps so the dispatcher can route on the tag before
committing to a schema: :func:`parse_frame` parses the JSON once and exposes the
``messageType`` discriminant, then :func:`decode` validates the already-parsed
body against the model the handler expects.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypeVar

import orjson as oj
from pydantic import ValidationError

from ..errors import CodecError
from .messages import MessageType, ProtocolMessage


M = TypeVar("M", bound=ProtocolMessage)


@dataclass(frozen=True, slots=True)
class Frame:
    """A parsed but not yet validated frame.

    ``message_type`` is ``None`` when the tag is a string this client does not
    know; ``tag`` always holds the raw value.
    """

    tag: str
    message_type: MessageType | None
    body: dict[str, Any]


def encode(message: ProtocolMessage) -> str:
    """Serialize *message* to a compact JSON text frame."""
    return oj.dumps(message.model_dump(mode="json", by_alias=True, exclude_none=True)).decode()


def parse_frame(text: str | bytes) -> Frame:
    """Parse *text* and expose its discriminant.

    Raises:
        CodecError: when the frame is not a JSON object with a string
            ``messageType``.
    """
    try:
        body = oj.loads(text)
    except oj.JSONDecodeError as exc:
        raise CodecError(f"frame is not valid JSON: {exc}") from exc

    if not isinstance(body, dict):
        raise CodecError(f"frame must be a JSON object, got {type(body).__name__}")

    tag = body.get("messageType")
    if not isinstance(tag, str):
        raise CodecError("frame has no string 'messageType'")

    try:
        message_type: MessageType | None = MessageType(tag.lower())
    except ValueError:
        message_type = None
    return Frame(tag=tag, message_type=message_type, body=body)


def decode(frame: Frame, model: type[M]) -> M:
    """Validate *frame* against *model*.

    Raises:
        CodecError: when the body does not match the schema.
    """
    if frame.message_type is not model.TYPE:
        raise CodecError(f"cannot decode {frame.tag!r} frame as {model.__name__}")

    body = dict(frame.body)
    body["messageType"] = model.TYPE.value
    try:
        return model.model_validate(body)
    except ValidationError as exc:
        raise CodecError(f"invalid {model.TYPE.value!r} frame: {exc}") from exc


__all__ = ["Frame", "encode", "parse_frame", "decode"]
