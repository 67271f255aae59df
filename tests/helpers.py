"""Shared test helper functions for waforensics tests.

This module contains byte builders that can be imported by both conftest.py
and individual test files. These are NOT fixtures - they are regular functions.
"""

from __future__ import annotations

# Token codes used by the builders below
TOKEN_MESSAGE = 5
TOKEN_ID = 20
TOKEN_FROM = 21
TOKEN_TO = 22
TOKEN_PARTICIPANT = 23
TOKEN_TYPE = 24
TOKEN_ENC = 27

SENDER_JID = "5511999999999@s.whatsapp.net"
GROUP_JID = "120363025246125486@g.us"
CANONICAL_STANZA_ID = "3EB0C767D097B7D4E5F1A2B3C4D5E6F7"


# =============================================================================
# Protobuf wire builders
# =============================================================================


def encode_varint(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _tag(number: int, wire_type: int) -> bytes:
    return encode_varint((number << 3) | wire_type)


def field_varint(number: int, value: int) -> bytes:
    return _tag(number, 0) + encode_varint(value)


def field_fixed64(number: int, value: int) -> bytes:
    return _tag(number, 1) + value.to_bytes(8, "little")


def field_bytes(number: int, data: bytes | str) -> bytes:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return _tag(number, 2) + encode_varint(len(data)) + data


def field_fixed32(number: int, value: int) -> bytes:
    return _tag(number, 5) + value.to_bytes(4, "little")


def message_key(
    remote_jid: str = SENDER_JID,
    msg_id: str = "3EB0C767D097B7D4E5F1",
    from_me: bool = False,
    participant: str | None = None,
) -> bytes:
    data = field_bytes(1, remote_jid) + field_varint(2, int(from_me)) + field_bytes(3, msg_id)
    if participant is not None:
        data += field_bytes(4, participant)
    return data


def context_info(
    stanza_id: str | None = None,
    participant: str | None = None,
    quoted: bytes | None = None,
    mentions: tuple[str, ...] = (),
) -> bytes:
    data = b""
    if stanza_id is not None:
        data += field_bytes(1, stanza_id)
    if participant is not None:
        data += field_bytes(2, participant)
    if quoted is not None:
        data += field_bytes(3, quoted)
    for jid in mentions:
        data += field_bytes(15, jid)
    return data


def conversation(text: str) -> bytes:
    return field_bytes(1, text)


def extended_text(text: str, context: bytes | None = None) -> bytes:
    inner = field_bytes(1, text)
    if context is not None:
        inner += field_bytes(17, context)
    return field_bytes(6, inner)


def reaction(emoji: str) -> bytes:
    return field_bytes(36, field_bytes(1, emoji))


def web_message_info(
    message: bytes | None = None,
    *,
    key: bytes | None = None,
    timestamp: int | None = None,
    status: int | None = None,
    push_name: str | None = None,
) -> bytes:
    data = field_bytes(1, key if key is not None else message_key())
    if message is not None:
        data += field_bytes(2, message)
    if timestamp is not None:
        data += field_varint(3, timestamp)
    if status is not None:
        data += field_varint(4, status)
    if push_name is not None:
        data += field_bytes(19, push_name)
    return data


# =============================================================================
# Binary node builders
# =============================================================================


def list_header(size: int) -> bytes:
    if size == 0:
        return b"\x00"
    if size < 256:
        return bytes([0xF8, size])
    return bytes([0xF9]) + size.to_bytes(2, "big")


def str8(value: str) -> bytes:
    data = value.encode("utf-8")
    return bytes([0xFC, len(data)]) + data


def token(code: int) -> bytes:
    return bytes([code])


def jid_pair(user: str, server: str) -> bytes:
    return b"\xfa" + (str8(user) if user else b"\x00") + str8(server)


def binary_content(data: bytes) -> bytes:
    if len(data) < 256:
        return bytes([0xFC, len(data)]) + data
    return b"\xfd" + len(data).to_bytes(3, "big") + data


def node(
    tag: bytes,
    attrs: list[tuple[bytes, bytes]] | None = None,
    content: bytes | None = None,
) -> bytes:
    """Encode one node; ``tag``, attribute pairs and ``content`` are pre-encoded.

    Attribute-only nodes use an even list size, nodes with content an odd one.
    """
    attrs = attrs or []
    size = 2 * len(attrs) + (1 if content is not None else 2)
    out = list_header(size) + tag
    for key, value in attrs:
        out += key + value
    return out + (content or b"")


def children(*encoded_nodes: bytes) -> bytes:
    return list_header(len(encoded_nodes)) + b"".join(encoded_nodes)
