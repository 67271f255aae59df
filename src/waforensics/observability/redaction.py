"""Redaction helpers for safe logging. Decoded captures are PII-heavy: identities,
push names and message text must pass through these before reaching a log."""

import re
from typing import Any

# user@server identities; the server part is kept so the identity kind stays visible
_JID_PATTERN = re.compile(r"[A-Za-z0-9._:+\-]+@(s\.whatsapp\.net|g\.us|broadcast|c\.us|newsletter|lid)\b")
_PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()]{8,}\d")

_REDACTED = "[REDACTED]"


def redact_jid(jid: str) -> str:
    """Replace the user part of an identity, keeping its kind.

    ``"5511999999999@s.whatsapp.net"`` becomes ``"[REDACTED]@s.whatsapp.net"``.
    """
    user, sep, server = jid.rpartition("@")
    if not sep:
        return _REDACTED
    return f"{_REDACTED}@{server}" if user else f"@{server}"


def redact_string(value: str) -> str:
    """Redact identity and phone patterns from a string."""
    result = _JID_PATTERN.sub(lambda m: f"{_REDACTED}@{m.group(1)}", value)
    result = _PHONE_PATTERN.sub(_REDACTED, result)
    return result


def redact_value(value: Any) -> str:
    """Redact any value for safe logging. Returns string representation."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        # Raw capture bytes: only the size is safe
        return f"bytes(len={len(value)})"
    if isinstance(value, dict):
        # For dicts, only log keys (structure), never values
        return f"dict(keys={list(value.keys())})"
    if isinstance(value, (list, tuple)):
        return f"list(len={len(value)})"
    # For any other type, only log type name
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a context dict safe for logging. All values are redacted."""
    return {k: redact_value(v) for k, v in kwargs.items()}
