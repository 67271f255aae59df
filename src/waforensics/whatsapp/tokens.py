"""Token tables for the WhatsApp binary node encoding and message protobufs.

All tables are read-only for the process lifetime. Unknown ids never raise:
tokens resolve to ``token_<n>`` and status codes to ``UNKNOWN`` so newer
protocol values degrade instead of breaking a decode.
"""

from enum import IntEnum
from types import MappingProxyType
from typing import Mapping

# Node framing markers
LIST_EMPTY = 0x00
LIST_8 = 0xF8
LIST_16 = 0xF9

# String / payload markers
JID_PAIR = 0xFA
HEX_8 = 0xFB
BINARY_8 = 0xFC
BINARY_20 = 0xFD
BINARY_32 = 0xFE

# Description bytes with special meaning in read_node
STREAM_START = 1
STREAM_END = 2

# Single-byte tokens live in [1, SINGLE_BYTE_MAX)
SINGLE_BYTE_MAX = 0x80

LIST_MARKERS = frozenset({LIST_EMPTY, LIST_8, LIST_16})

SINGLE_BYTE_TOKENS: Mapping[int, str] = MappingProxyType(
    {
        1: "xmlstreamstart",
        2: "xmlstreamend",
        3: "list_empty",
        # Stanza tags
        5: "message",
        6: "ack",
        7: "receipt",
        8: "call",
        9: "presence",
        10: "iq",
        11: "notification",
        12: "failure",
        13: "success",
        14: "action",
        # Attribute names
        20: "id",
        21: "from",
        22: "to",
        23: "participant",
        24: "type",
        25: "notify",
        26: "class",
        27: "enc",
        28: "media",
        # Call signalling
        40: "offer",
        41: "answer",
        42: "terminate",
        43: "reject",
        44: "audio",
        45: "video",
        # Presence states
        60: "available",
        61: "unavailable",
        62: "composing",
        63: "paused",
        64: "recording",
        # Misc
        80: "relay",
        81: "props",
        82: "dirty",
        83: "category",
        84: "duration",
        85: "reason",
    }
)

JID_SUFFIXES: Mapping[int, str] = MappingProxyType(
    {
        0: "@s.whatsapp.net",  # user
        1: "@g.us",  # group
        2: "@broadcast",  # broadcast list
        3: "@c.us",  # legacy user
        4: "@newsletter",  # channel
        5: "@lid",  # linked device
    }
)


class MessageTag(IntEnum):
    """Field numbers of the ``Message`` protobuf, one per message kind."""

    CONVERSATION = 1
    SENDER_KEY = 2
    IMAGE = 3
    CONTACT = 4
    LOCATION = 5
    EXTENDED_TEXT = 6
    DOCUMENT = 7
    AUDIO = 8
    VIDEO = 9
    CALL = 10
    CHAT = 11
    PROTOCOL = 12
    CONTACTS_ARRAY = 13
    HS_IV = 14
    HS_PAYLOAD = 15
    TEMPLATE = 16
    STICKER = 26
    GROUP_INVITE = 28
    TEMPLATE_BUTTON_REPLY = 29
    PRODUCT = 30
    DEVICE_SENT = 31
    LIVE_LOCATION = 35
    REACTION = 36
    VIEW_ONCE = 37
    POLL_CREATION = 38
    POLL_UPDATE = 39
    VIEW_ONCE_V2 = 55


class ContextInfoTag(IntEnum):
    """Field numbers of the ``ContextInfo`` protobuf."""

    STANZA_ID = 1
    PARTICIPANT = 2
    QUOTED_MESSAGE = 3
    REMOTE_JID = 4
    MENTIONED_JID = 15
    CONVERSION_SOURCE = 18
    CONVERSION_DATA = 19
    IS_FORWARDED = 22
    FORWARDING_SCORE = 23
    IS_FORWARDED_REMINDER = 24
    QUOTED_AD = 25
    PLACEHOLDER_KEY = 26


class MessageKeyTag(IntEnum):
    REMOTE_JID = 1
    FROM_ME = 2
    ID = 3
    PARTICIPANT = 4


class WebMessageInfoTag(IntEnum):
    KEY = 1
    MESSAGE = 2
    MESSAGE_TIMESTAMP = 3
    STATUS = 4
    PARTICIPANT = 5
    BROADCAST = 10
    PUSH_NAME = 19
    STARRED = 23
    EPHEMERAL_START_TIMESTAMP = 32
    EPHEMERAL_DURATION = 33


# Sub-fields inside the per-kind message payloads
TEXT_FIELD = 1
IMAGE_CAPTION_FIELD = 4
REACTION_TEXT_FIELD = 1
CONTEXT_INFO_FIELD = 17
MEDIA_KEY_FIELDS: Mapping[MessageTag, int] = MappingProxyType(
    {
        MessageTag.IMAGE: 8,
        MessageTag.VIDEO: 6,
    }
)

ACK_STATUS: Mapping[int, str] = MappingProxyType(
    {
        0: "ERROR",
        1: "PENDING",
        2: "SERVER_ACK",
        3: "DELIVERY_ACK",
        4: "READ",
        5: "PLAYED",
    }
)

UNKNOWN_STATUS = "UNKNOWN"


def token_name(code: int) -> str:
    """Resolve a single-byte token, falling back to ``token_<n>``."""
    name = SINGLE_BYTE_TOKENS.get(code) if 1 <= code < SINGLE_BYTE_MAX else None
    return name if name is not None else f"token_{code}"


def jid_suffix(index: int) -> str | None:
    """Return the identity suffix for a compact-JID suffix index."""
    return JID_SUFFIXES.get(index)


def status_name(code: int | None) -> str:
    if code is None:
        return UNKNOWN_STATUS
    return ACK_STATUS.get(code, UNKNOWN_STATUS)
