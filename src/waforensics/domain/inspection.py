"""Capture inspection: decode a capture, analyze every message it carries.

Each capture runs in its own capture scope, so every log line it produces
carries the same ``captureId``. A malformed capture yields an empty result;
it never aborts a batch.
"""

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from waforensics.observability.correlation import capture_scope
from waforensics.observability.logging import get_logger
from waforensics.observability.redaction import redact_jid, safe_log_context
from waforensics.whatsapp.binary_decoder import decode_node, iter_binary_leaves
from waforensics.whatsapp.errors import DecodeError
from waforensics.whatsapp.message_decoder import build_web_message_info, parse_web_message_info
from waforensics.whatsapp.models import Node, WebMessageInfo

from .anomalies import ForensicAnalysis
from .forensics import DEFAULT_DETECTORS, Detector, analyze

logger = get_logger(__name__)


@dataclass(frozen=True)
class InspectedMessage:
    path: str  # tag path of the binary leaf, e.g. "message/enc"
    info: WebMessageInfo
    analysis: ForensicAnalysis


@dataclass(frozen=True)
class InspectionResult:
    capture_id: str
    node: Node | None
    messages: list[InspectedMessage] = field(default_factory=list)

    @property
    def decoded(self) -> bool:
        return self.node is not None

    @property
    def is_manipulated(self) -> bool:
        return any(m.analysis.is_manipulated for m in self.messages)


def inspect_message(
    payload: bytes,
    *,
    detectors: Sequence[Detector] = DEFAULT_DETECTORS,
    reference_time: datetime | None = None,
) -> tuple[WebMessageInfo, ForensicAnalysis] | None:
    """Decode one WebMessageInfo payload and analyze it.

    Returns:
        ``(info, analysis)``, or None if the payload is malformed.
    """
    info = parse_web_message_info(payload)
    if info is None:
        return None
    return info, analyze(info, detectors=detectors, reference_time=reference_time)


def inspect_capture(
    data: bytes,
    *,
    capture_id: str | None = None,
    detectors: Sequence[Detector] = DEFAULT_DETECTORS,
    reference_time: datetime | None = None,
) -> InspectionResult:
    """Decode a raw capture and analyze every binary leaf that is a WebMessageInfo.

    Leaves that do not decode as a WebMessageInfo (encrypted payloads, media
    blobs) are skipped.
    """
    with capture_scope(capture_id) as cid:
        node = decode_node(data)
        if node is None:
            return InspectionResult(capture_id=cid, node=None)

        sender = node.attrs.get("from")
        messages: list[InspectedMessage] = []
        leaves = 0
        for path, payload in iter_binary_leaves(node):
            leaves += 1
            try:
                info = build_web_message_info(payload)
            except DecodeError as exc:
                logger.debug(
                    "binary leaf is not a web message info",
                    extra={"extra_fields": safe_log_context(path=path, error=type(exc).__name__)},
                )
                continue
            analysis = analyze(info, detectors=detectors, reference_time=reference_time)
            messages.append(InspectedMessage(path=path, info=info, analysis=analysis))

        logger.info(
            "capture inspected",
            extra={
                "extra_fields": {
                    **safe_log_context(root_tag=node.tag),
                    "sender": redact_jid(sender) if sender else None,
                    "binary_leaves": leaves,
                    "messages": len(messages),
                    "manipulated": sum(1 for m in messages if m.analysis.is_manipulated),
                }
            },
        )
        return InspectionResult(capture_id=cid, node=node, messages=messages)


def inspect_batch(
    captures: Iterable[bytes],
    *,
    detectors: Sequence[Detector] = DEFAULT_DETECTORS,
    reference_time: datetime | None = None,
) -> Iterator[InspectionResult]:
    """Inspect captures one by one, each under a fresh capture ID."""
    for data in captures:
        yield inspect_capture(data, detectors=detectors, reference_time=reference_time)
