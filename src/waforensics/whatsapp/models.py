"""WhatsApp wire records: binary nodes, protobuf field values, messages.

All records are value types created per decode call. Identities (JIDs),
push names and message text are PII: keep them in memory only and pass
them through ``observability.redaction`` before logging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TypeAlias, Union


@dataclass(frozen=True)
class Node:
    """One element of the tokenized binary tree.

    ``content`` is a list of child nodes, raw bytes, a string, or ``None``
    when the node carries only attributes.
    """

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    content: list[Node] | bytes | str | None = None


@dataclass(frozen=True)
class DecodedFrame:
    """Stanza-level summary of a decoded root node."""

    raw: Node
    message_type: str
    sender: str | None = None
    recipient: str | None = None
    id: str | None = None
    participant: str | None = None
    content: list[Node] | bytes | str | None = None


@dataclass(frozen=True)
class Varint:
    value: int


@dataclass(frozen=True)
class Fixed64:
    value: int


@dataclass(frozen=True)
class Bytes:
    data: bytes


@dataclass(frozen=True)
class Fixed32:
    value: int


FieldValue: TypeAlias = Union[Varint, Fixed64, Bytes, Fixed32]

# field number -> every value seen for it, in wire order
FieldMap: TypeAlias = dict[int, list[FieldValue]]

MessageType = Literal[
    "conversation",
    "extendedText",
    "image",
    "video",
    "audio",
    "document",
    "sticker",
    "reaction",
    "viewOnce",
    "viewOnceImage",
    "viewOnceVideo",
    "protocol",
    "call",
    "unknown",
]


@dataclass(frozen=True)
class MessageKey:
    remote_jid: str
    from_me: bool
    id: str
    participant: str | None = None


@dataclass(frozen=True)
class ContextInfo:
    """Quote, mention and forwarding envelope attached to a message."""

    stanza_id: str | None = None
    participant: str | None = None
    quoted_message: ParsedMessage | None = None
    remote_jid: str | None = None
    mentioned_jid: list[str] = field(default_factory=list)
    is_forwarded: bool | None = None
    forwarding_score: int | None = None


@dataclass(frozen=True)
class ParsedMessage:
    type: MessageType = "unknown"
    content: str | None = None
    caption: str | None = None
    view_once: bool = False
    context_info: ContextInfo | None = None
    media_key: bytes | None = None


@dataclass(frozen=True)
class WebMessageInfo:
    """Decoded ``WebMessageInfo`` envelope.

    ``status`` is always a status-table name; unresolved codes become
    ``"UNKNOWN"``.
    """

    key: MessageKey
    message: ParsedMessage | None = None
    message_timestamp: int | None = None
    status: str = "UNKNOWN"
    participant: str | None = None
    broadcast: bool | None = None
    push_name: str | None = None
    starred: bool | None = None
    ephemeral_start_timestamp: int | None = None
    ephemeral_duration: int | None = None
