"""Decoder for WhatsApp's tokenized binary node encoding (WABinary).

A node is framed as a list: size marker, description byte (the tag), then
``(size - 1) >> 1`` attribute pairs and, for odd sizes, one content item.
Strings are either single-byte dictionary tokens or one of the special
markers in ``tokens`` (length-prefixed UTF-8, JID pair, compact hex JID).

Security: decoded attributes hold identities. NEVER log node contents.
"""

import os
from collections.abc import Iterator
from typing import Any

from waforensics.observability.logging import get_logger
from waforensics.observability.redaction import safe_log_context

from . import tokens
from .cursor import ByteCursor
from .errors import DecodeError, InvalidListSizeError, MaxDepthExceededError
from .models import DecodedFrame, Node

logger = get_logger(__name__)

MAX_NODE_DEPTH = int(os.environ.get("WAFORENSICS_MAX_NODE_DEPTH", "64"))

# Bytes shown in node_to_json hex previews
HEX_PREVIEW_BYTES = 50


class BinaryNodeDecoder:
    """Recursive-descent decoder over one capture buffer.

    Each instance owns its cursor; decoders share nothing but the read-only
    token tables, so independent buffers can be decoded concurrently.
    """

    def __init__(self, data: bytes, *, max_depth: int | None = None) -> None:
        self._cursor = ByteCursor(data)
        self._max_depth = MAX_NODE_DEPTH if max_depth is None else max_depth

    @property
    def offset(self) -> int:
        return self._cursor.offset

    def decode(self) -> Node | None:
        """Decode the root node. Structural failures are logged and yield None."""
        try:
            return self.read_node()
        except DecodeError as exc:
            logger.warning(
                "binary node decode failed",
                extra={
                    "extra_fields": safe_log_context(
                        error=type(exc).__name__,
                        detail=str(exc),
                        offset=self._cursor.offset,
                        size=len(self._cursor),
                    )
                },
            )
            return None

    def read_list_size(self) -> int:
        marker = self._cursor.read_byte()
        if marker == tokens.LIST_EMPTY:
            return 0
        if marker == tokens.LIST_8:
            return self._cursor.read_byte()
        if marker == tokens.LIST_16:
            return self._cursor.read_int16()
        raise InvalidListSizeError(f"invalid list marker 0x{marker:02X}")

    def read_node(self, depth: int = 0) -> Node | None:
        self._check_depth(depth)

        list_size = self.read_list_size()
        if list_size == 0:
            return None

        description = self._cursor.read_byte()
        if description == tokens.STREAM_START:
            return self.read_node(depth + 1)
        if description == tokens.STREAM_END:
            return None

        tag = self.read_string(description, depth)
        attrs = self._read_attributes((list_size - 1) >> 1, depth)

        if list_size % 2 == 0:
            return Node(tag=tag, attrs=attrs)

        return Node(tag=tag, attrs=attrs, content=self._read_content(depth))

    def read_string(self, tag: int, depth: int = 0) -> str:
        """Resolve a string-tag byte into its value."""
        if 1 <= tag < tokens.SINGLE_BYTE_MAX and tag in tokens.SINGLE_BYTE_TOKENS:
            return tokens.SINGLE_BYTE_TOKENS[tag]

        cursor = self._cursor
        if tag == tokens.LIST_EMPTY:
            return ""
        if tag == tokens.BINARY_8:
            return _utf8(cursor.read_bytes(cursor.read_byte()))
        if tag == tokens.BINARY_20:
            return _utf8(cursor.read_bytes(cursor.read_int20()))
        if tag == tokens.BINARY_32:
            return _utf8(cursor.read_bytes(cursor.read_int32()))
        if tag == tokens.JID_PAIR:
            return self._read_jid_pair(depth)
        if tag == tokens.HEX_8:
            return self._read_compact_jid()
        return tokens.token_name(tag)

    def _check_depth(self, depth: int) -> None:
        if depth > self._max_depth:
            raise MaxDepthExceededError(f"nesting deeper than {self._max_depth}")

    def _read_attributes(self, count: int, depth: int) -> dict[str, str]:
        attrs: dict[str, str] = {}
        for _ in range(count):
            key = self.read_string(self._cursor.read_byte(), depth)
            attrs[key] = self.read_string(self._cursor.read_byte(), depth)
        return attrs

    def _read_content(self, depth: int) -> list[Node] | bytes | str:
        cursor = self._cursor
        descriptor = cursor.peek_byte()

        if descriptor in tokens.LIST_MARKERS:
            return self._read_list(depth)
        if descriptor == tokens.BINARY_8:
            cursor.read_byte()
            return cursor.read_bytes(cursor.read_byte())
        if descriptor == tokens.BINARY_20:
            cursor.read_byte()
            return cursor.read_bytes(cursor.read_int20())
        # Anything else, 0xFE included, is a single string
        return self.read_string(cursor.read_byte(), depth)

    def _read_list(self, depth: int) -> list[Node]:
        children: list[Node] = []
        for _ in range(self.read_list_size()):
            child = self.read_node(depth + 1)
            if child is not None:
                children.append(child)
        return children

    def _read_jid_pair(self, depth: int) -> str:
        # Pairs can nest through their user/server tokens
        self._check_depth(depth + 1)
        user = self.read_string(self._cursor.read_byte(), depth + 1)
        server = self.read_string(self._cursor.read_byte(), depth + 1)
        return f"{user}@{server}" if user else server

    def _read_compact_jid(self) -> str:
        cursor = self._cursor
        header = cursor.read_byte()
        hex_id = cursor.read_bytes(header & 0x7F).hex().upper()
        if header & 0x80:
            hex_id = hex_id[:-1]
        suffix = tokens.jid_suffix(cursor.read_byte())
        return hex_id + (suffix or "")


def _utf8(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def decode_node(data: bytes, *, max_depth: int | None = None) -> Node | None:
    """Decode one capture into its root node, or None if malformed."""
    return BinaryNodeDecoder(data, max_depth=max_depth).decode()


def decode_frame(data: bytes) -> DecodedFrame | None:
    """Decode a capture and lift the stanza routing attributes."""
    node = decode_node(data)
    if node is None:
        return None

    return DecodedFrame(
        raw=node,
        message_type=node.tag,
        sender=node.attrs.get("from"),
        recipient=node.attrs.get("to"),
        id=node.attrs.get("id"),
        participant=node.attrs.get("participant"),
        content=node.content,
    )


def node_to_json(node: Node) -> dict[str, Any]:
    """Render a node tree as a JSON-ready dict for debug dumps."""
    result: dict[str, Any] = {"tag": node.tag, "attrs": dict(node.attrs)}

    content = node.content
    if content is not None:
        if isinstance(content, list):
            result["children"] = [node_to_json(child) for child in content]
        elif isinstance(content, bytes):
            result["data"] = f"[Binary: {len(content)} bytes]"
            result["hex"] = " ".join(f"{b:02x}" for b in content[:HEX_PREVIEW_BYTES])
        else:
            result["text"] = content

    return result


def iter_binary_leaves(node: Node, path: str = "") -> Iterator[tuple[str, bytes]]:
    """Yield ``(path, payload)`` for every node whose content is raw bytes.

    Paths join tags with ``/`` from the root, e.g. ``"message/enc"``.
    """
    here = f"{path}/{node.tag}" if path else node.tag
    if isinstance(node.content, bytes):
        yield here, node.content
    elif isinstance(node.content, list):
        for child in node.content:
            yield from iter_binary_leaves(child, here)
