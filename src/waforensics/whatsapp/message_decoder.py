"""Typed decoding of WebMessageInfo / Message / ContextInfo protobufs.

Built on the schema-less ``wire.scan_fields``: each record reads the field
numbers it knows from ``tokens`` and ignores the rest. Quoted messages are
decoded by recursing into the same classification routine, bounded by
``MAX_MESSAGE_DEPTH``.

Security: decoded records carry identities and text (PII). NEVER log them
without ``safe_log_context``.
"""

import os

from waforensics.observability.logging import get_logger
from waforensics.observability.redaction import safe_log_context

from . import tokens
from .errors import DecodeError, MaxDepthExceededError, MissingFieldError
from .models import (
    ContextInfo,
    FieldMap,
    MessageKey,
    MessageType,
    ParsedMessage,
    WebMessageInfo,
)
from .tokens import ContextInfoTag, MessageKeyTag, MessageTag, WebMessageInfoTag
from .wire import get_bool, get_bytes, get_int, get_string, get_strings, scan_fields

logger = get_logger(__name__)

MAX_MESSAGE_DEPTH = int(os.environ.get("WAFORENSICS_MAX_MESSAGE_DEPTH", "16"))

# First tag present wins; order matters.
MESSAGE_PRIORITY: tuple[tuple[MessageTag, MessageType], ...] = (
    (MessageTag.CONVERSATION, "conversation"),
    (MessageTag.EXTENDED_TEXT, "extendedText"),
    (MessageTag.IMAGE, "image"),
    (MessageTag.VIDEO, "video"),
    (MessageTag.AUDIO, "audio"),
    (MessageTag.DOCUMENT, "document"),
    (MessageTag.STICKER, "sticker"),
    (MessageTag.REACTION, "reaction"),
    (MessageTag.VIEW_ONCE, "viewOnce"),
    (MessageTag.VIEW_ONCE_V2, "viewOnce"),
    (MessageTag.PROTOCOL, "protocol"),
    (MessageTag.CALL, "call"),
)


def _check_depth(depth: int) -> None:
    if depth > MAX_MESSAGE_DEPTH:
        raise MaxDepthExceededError(f"message nesting deeper than {MAX_MESSAGE_DEPTH}")


def _sub_fields(fields: FieldMap, number: int) -> FieldMap:
    """Scan a nested message field; non-bytes values scan as empty."""
    data = get_bytes(fields, number)
    return scan_fields(data) if data is not None else {}


def _media_key(fields: FieldMap, tag: MessageTag) -> bytes | None:
    number = tokens.MEDIA_KEY_FIELDS.get(tag)
    if number is None:
        return None
    return get_bytes(_sub_fields(fields, tag), number)


def parse_message_key(data: bytes) -> MessageKey:
    fields = scan_fields(data)
    return MessageKey(
        remote_jid=get_string(fields, MessageKeyTag.REMOTE_JID) or "",
        from_me=bool(get_bool(fields, MessageKeyTag.FROM_ME)),
        id=get_string(fields, MessageKeyTag.ID) or "",
        participant=get_string(fields, MessageKeyTag.PARTICIPANT),
    )


def parse_message(data: bytes, depth: int = 0) -> ParsedMessage:
    """Classify a ``Message`` protobuf by the first present kind in priority order."""
    _check_depth(depth)
    fields = scan_fields(data)

    for tag, kind in MESSAGE_PRIORITY:
        if tag in fields:
            return _build_message(fields, tag, kind, depth)

    return ParsedMessage(type="unknown")


def _build_message(
    fields: FieldMap, tag: MessageTag, kind: MessageType, depth: int
) -> ParsedMessage:
    if tag == MessageTag.CONVERSATION:
        return ParsedMessage(type=kind, content=get_string(fields, tag))

    if tag == MessageTag.EXTENDED_TEXT:
        sub = _sub_fields(fields, tag)
        return ParsedMessage(
            type=kind,
            content=get_string(sub, tokens.TEXT_FIELD),
            context_info=_context_info(sub, depth),
        )

    if tag == MessageTag.IMAGE:
        sub = _sub_fields(fields, tag)
        caption = get_string(sub, tokens.IMAGE_CAPTION_FIELD)
        return ParsedMessage(
            type=kind,
            content=caption,
            caption=caption,
            context_info=_context_info(sub, depth),
            media_key=get_bytes(sub, tokens.MEDIA_KEY_FIELDS[MessageTag.IMAGE]),
        )

    if tag == MessageTag.VIDEO:
        return ParsedMessage(type=kind, media_key=_media_key(fields, tag))

    if tag == MessageTag.REACTION:
        sub = _sub_fields(fields, tag)
        return ParsedMessage(type=kind, content=get_string(sub, tokens.REACTION_TEXT_FIELD))

    if tag in (MessageTag.VIEW_ONCE, MessageTag.VIEW_ONCE_V2):
        return _parse_view_once(_sub_fields(fields, tag))

    return ParsedMessage(type=kind)


def _parse_view_once(inner: FieldMap) -> ParsedMessage:
    """One level down: is the wrapped payload image- or video-shaped?"""
    if MessageTag.IMAGE in inner:
        return ParsedMessage(
            type="viewOnceImage",
            view_once=True,
            media_key=_media_key(inner, MessageTag.IMAGE),
        )
    if MessageTag.VIDEO in inner:
        return ParsedMessage(
            type="viewOnceVideo",
            view_once=True,
            media_key=_media_key(inner, MessageTag.VIDEO),
        )
    return ParsedMessage(type="viewOnce", view_once=True)


def _context_info(sub: FieldMap, depth: int) -> ContextInfo | None:
    data = get_bytes(sub, tokens.CONTEXT_INFO_FIELD)
    return parse_context_info(data, depth + 1) if data is not None else None


def parse_context_info(data: bytes, depth: int = 0) -> ContextInfo:
    _check_depth(depth)
    fields = scan_fields(data)

    quoted_data = get_bytes(fields, ContextInfoTag.QUOTED_MESSAGE)
    quoted = parse_message(quoted_data, depth + 1) if quoted_data is not None else None

    return ContextInfo(
        stanza_id=get_string(fields, ContextInfoTag.STANZA_ID),
        participant=get_string(fields, ContextInfoTag.PARTICIPANT),
        quoted_message=quoted,
        remote_jid=get_string(fields, ContextInfoTag.REMOTE_JID),
        # Repeated field: one occurrence or many, always a list
        mentioned_jid=get_strings(fields, ContextInfoTag.MENTIONED_JID),
        is_forwarded=get_bool(fields, ContextInfoTag.IS_FORWARDED),
        forwarding_score=get_int(fields, ContextInfoTag.FORWARDING_SCORE),
    )


def build_web_message_info(data: bytes) -> WebMessageInfo:
    """Decode a ``WebMessageInfo``; structural errors propagate.

    Raises:
        MissingFieldError: If the message key (field 1) is absent.
        DecodeError: On any other framing failure.
    """
    fields = scan_fields(data)

    key_data = get_bytes(fields, WebMessageInfoTag.KEY)
    if key_data is None:
        raise MissingFieldError("WebMessageInfo.key missing")

    message_data = get_bytes(fields, WebMessageInfoTag.MESSAGE)

    return WebMessageInfo(
        key=parse_message_key(key_data),
        message=parse_message(message_data) if message_data is not None else None,
        message_timestamp=get_int(fields, WebMessageInfoTag.MESSAGE_TIMESTAMP),
        status=tokens.status_name(get_int(fields, WebMessageInfoTag.STATUS)),
        participant=get_string(fields, WebMessageInfoTag.PARTICIPANT),
        broadcast=get_bool(fields, WebMessageInfoTag.BROADCAST),
        push_name=get_string(fields, WebMessageInfoTag.PUSH_NAME),
        starred=get_bool(fields, WebMessageInfoTag.STARRED),
        ephemeral_start_timestamp=get_int(fields, WebMessageInfoTag.EPHEMERAL_START_TIMESTAMP),
        ephemeral_duration=get_int(fields, WebMessageInfoTag.EPHEMERAL_DURATION),
    )


def parse_web_message_info(data: bytes) -> WebMessageInfo | None:
    """Decode a ``WebMessageInfo``, or None if the payload is malformed."""
    try:
        return build_web_message_info(data)
    except DecodeError as exc:
        logger.warning(
            "web message info decode failed",
            extra={
                "extra_fields": safe_log_context(
                    error=type(exc).__name__,
                    detail=str(exc),
                    size=len(data),
                )
            },
        )
        return None
