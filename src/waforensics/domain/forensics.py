"""Rule-based manipulation detectors over decoded WebMessageInfo records.

NO ML. Each detector is an independent function that inspects one record
and returns at most one anomaly; a detector lacking the data it needs
abstains. New detectors are added to ``DEFAULT_DETECTORS``, never folded
into an existing one.

Security: evidence carries identities and text. NEVER log evidence.
"""

import os
import re
from collections.abc import Callable, Sequence
from datetime import datetime
from types import MappingProxyType
from typing import Mapping

from waforensics.infra.time import from_epoch_seconds, utc_now
from waforensics.observability.logging import get_logger
from waforensics.observability.redaction import redact_jid, safe_log_context
from waforensics.whatsapp.models import WebMessageInfo

from .anomalies import AnomalyType, ForensicAnalysis, ForensicAnomaly, Severity

logger = get_logger(__name__)

Detector = Callable[[WebMessageInfo, datetime], ForensicAnomaly | None]

SEVERITY_WEIGHTS: Mapping[Severity, int] = MappingProxyType(
    {
        Severity.LOW: 10,
        Severity.MEDIUM: 30,
        Severity.HIGH: 50,
        Severity.CRITICAL: 100,
    }
)
MAX_RISK_SCORE = 100
MANIPULATION_SEVERITIES = frozenset({Severity.HIGH, Severity.CRITICAL})

# Canonical stanza id shapes. Heuristic, not a protocol guarantee: pass a
# different pattern set to detect_fake_quote to swap the rule.
DEFAULT_STANZA_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"[A-Za-z0-9]{24,}"),
    re.compile(r"[0-9A-F]{32}", re.IGNORECASE),
)

TEXT_PREVIEW_CHARS = 100

# Longest honest reaction: a multi-person ZWJ emoji sequence
MAX_REACTION_CODEPOINTS = 16

CLOCK_SKEW_SECONDS = int(os.environ.get("WAFORENSICS_CLOCK_SKEW_SECONDS", "3600"))


def is_canonical_stanza_id(
    stanza_id: str,
    patterns: Sequence[re.Pattern[str]] = DEFAULT_STANZA_ID_PATTERNS,
) -> bool:
    return any(p.fullmatch(stanza_id) for p in patterns)


def detect_fake_quote(
    info: WebMessageInfo,
    reference_time: datetime | None = None,
    *,
    stanza_id_patterns: Sequence[re.Pattern[str]] = DEFAULT_STANZA_ID_PATTERNS,
) -> ForensicAnomaly | None:
    """Quote whose stanza id has no canonical shape: likely fabricated."""
    context = info.message.context_info if info.message else None
    if context is None or context.quoted_message is None:
        return None

    stanza_id = context.stanza_id or ""
    if not stanza_id or is_canonical_stanza_id(stanza_id, stanza_id_patterns):
        return None

    return ForensicAnomaly(
        type=AnomalyType.FAKE_QUOTE,
        severity=Severity.HIGH,
        description="Quote stanza ID has invalid format, possible message fabrication",
        evidence={
            "stanzaId": stanza_id,
            "participant": context.participant,
            "quotedContent": context.quoted_message.content,
        },
    )


def detect_ghost_mention(
    info: WebMessageInfo, reference_time: datetime | None = None
) -> ForensicAnomaly | None:
    """Mentions present but no ``@`` in the visible text."""
    message = info.message
    if message is None or message.context_info is None:
        return None

    mentioned = message.context_info.mentioned_jid
    if not mentioned:
        return None

    text = message.content or ""
    if "@" in text:
        return None

    return ForensicAnomaly(
        type=AnomalyType.GHOST_MENTION,
        severity=Severity.MEDIUM,
        description="Message has hidden mentions not visible in text",
        evidence={
            "mentionedJids": list(mentioned),
            "messageContent": text[:TEXT_PREVIEW_CHARS],
            "mentionCount": len(mentioned),
        },
    )


def detect_view_once(
    info: WebMessageInfo, reference_time: datetime | None = None
) -> ForensicAnomaly | None:
    """Informational: view-once media is capturable by custom clients."""
    message = info.message
    if message is None or not message.view_once:
        return None

    return ForensicAnomaly(
        type=AnomalyType.VIEWONCE_BYPASS,
        severity=Severity.LOW,
        description="ViewOnce media detected - can be bypassed by custom clients",
        evidence={
            "messageType": message.type,
            "hasMediaKey": bool(message.media_key),
        },
    )


def _is_emoji_like(text: str) -> bool:
    if len(text) > MAX_REACTION_CODEPOINTS:
        return False
    return not any(ch.isalpha() or ch.isspace() for ch in text)


def detect_reaction_injection(
    info: WebMessageInfo, reference_time: datetime | None = None
) -> ForensicAnomaly | None:
    """Reaction carrying text instead of an emoji.

    Official clients only send a single emoji (or empty, to remove one).
    """
    message = info.message
    if message is None or message.type != "reaction" or not message.content:
        return None

    if _is_emoji_like(message.content):
        return None

    return ForensicAnomaly(
        type=AnomalyType.REACTION_INJECTION,
        severity=Severity.MEDIUM,
        description="Reaction payload is not an emoji, possible injected text",
        evidence={
            "reactionPreview": message.content[:TEXT_PREVIEW_CHARS],
            "length": len(message.content),
        },
    )


def detect_timestamp_mismatch(
    info: WebMessageInfo, reference_time: datetime | None = None
) -> ForensicAnomaly | None:
    """Message stamped further in the future than clock skew allows."""
    if not info.message_timestamp:
        return None

    reference_time = reference_time or utc_now()
    skew = info.message_timestamp - int(reference_time.timestamp())
    if skew <= CLOCK_SKEW_SECONDS:
        return None

    return ForensicAnomaly(
        type=AnomalyType.TIMESTAMP_MISMATCH,
        severity=Severity.MEDIUM,
        description="Message timestamp is ahead of the capture clock",
        evidence={
            "messageTimestamp": info.message_timestamp,
            "referenceTimestamp": int(reference_time.timestamp()),
            "skewSeconds": skew,
        },
    )


DEFAULT_DETECTORS: tuple[Detector, ...] = (
    detect_fake_quote,
    detect_ghost_mention,
    detect_view_once,
    detect_reaction_injection,
    detect_timestamp_mismatch,
)


def calculate_risk_score(anomalies: Sequence[ForensicAnomaly]) -> int:
    """Sum of per-severity weights, capped at ``MAX_RISK_SCORE``."""
    total = sum(SEVERITY_WEIGHTS[a.severity] for a in anomalies)
    return min(MAX_RISK_SCORE, total)


def analyze(
    info: WebMessageInfo,
    *,
    detectors: Sequence[Detector] = DEFAULT_DETECTORS,
    reference_time: datetime | None = None,
) -> ForensicAnalysis:
    """Run every detector over one record and aggregate the result.

    Args:
        info: Decoded message envelope. NEVER logged.
        detectors: Detector functions, run in order.
        reference_time: Capture clock (default: now). Also the analysis
            timestamp when the message carries none.

    Returns:
        ForensicAnalysis with the anomalies that fired and the risk score.
    """
    if reference_time is None:
        reference_time = utc_now()

    anomalies: list[ForensicAnomaly] = []
    for detector in detectors:
        anomaly = detector(info, reference_time)
        if anomaly is not None:
            anomalies.append(anomaly)

    timestamp = None
    if info.message_timestamp:
        timestamp = from_epoch_seconds(info.message_timestamp)

    analysis = ForensicAnalysis(
        message_id=info.key.id,
        timestamp=timestamp or reference_time,
        anomalies=anomalies,
        risk_score=calculate_risk_score(anomalies),
        is_manipulated=any(a.severity in MANIPULATION_SEVERITIES for a in anomalies),
    )

    if analysis.is_manipulated:
        logger.warning(
            "message manipulation detected",
            extra={
                "extra_fields": {
                    **safe_log_context(message_id=analysis.message_id),
                    "chat": redact_jid(info.key.remote_jid) if info.key.remote_jid else None,
                    "anomaly_types": [a.type.value for a in anomalies],
                    "risk_score": analysis.risk_score,
                }
            },
        )

    return analysis
