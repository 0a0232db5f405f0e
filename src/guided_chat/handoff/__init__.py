"""Structured handoff: marker protocol, parser and payload models."""

from guided_chat.handoff.parser import (
    HANDOFF_MARKERS,
    ParsedReply,
    PayloadKind,
    PendingPayloads,
    extract_json_candidate,
    parse_handoff,
)
from guided_chat.handoff.payloads import coerce_payload

__all__ = [
    "HANDOFF_MARKERS",
    "ParsedReply",
    "PayloadKind",
    "PendingPayloads",
    "coerce_payload",
    "extract_json_candidate",
    "parse_handoff",
]
