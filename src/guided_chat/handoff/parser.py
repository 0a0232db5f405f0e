"""Extract machine-readable payloads from free-form generator replies.

The system prompt asks the generator to finish a message with a marker line
(for example ``ARC_PROPOSAL_JSON:``) followed by a JSON value. Generators do not
always comply: they wrap the block in code fences, add commentary before or
after it, or reply with bare JSON. Parsing therefore fails open: whenever a
payload cannot be recovered, the whole reply is shown as plain prose.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class PayloadKind(str, Enum):
    ARC_PROPOSAL = "arc_proposal"
    GOAL_PROPOSAL = "goal_proposal"
    ACTIVITY_SUGGESTIONS = "activity_suggestions"
    ACTIVITY_PROPOSAL = "activity_proposal"
    AGENT_OFFERS = "agent_offers"
    # Requested as bare JSON only; has no marker.
    ASPIRATION = "aspiration"


HANDOFF_MARKERS: dict[str, PayloadKind] = {
    "ARC_PROPOSAL_JSON:": PayloadKind.ARC_PROPOSAL,
    "GOAL_PROPOSAL_JSON:": PayloadKind.GOAL_PROPOSAL,
    "ACTIVITY_SUGGESTIONS_JSON:": PayloadKind.ACTIVITY_SUGGESTIONS,
    "ACTIVITY_PROPOSAL_JSON:": PayloadKind.ACTIVITY_PROPOSAL,
    "AGENT_OFFERS_JSON:": PayloadKind.AGENT_OFFERS,
}

_MARKER_RE = re.compile(
    r"^[ \t]*(" + "|".join(re.escape(m) for m in HANDOFF_MARKERS) + ")",
    re.MULTILINE,
)
_OPEN_FENCE_RE = re.compile(r"^```[A-Za-z0-9_-]*\s*")
_DANGLING_FENCE_RE = re.compile(r"(?:^|\n)[ \t]*```[A-Za-z0-9_-]*[ \t]*$")
_PARAGRAPH_BREAK_RE = re.compile(r"\n\s*\n")
_JSON_START_RE = re.compile(r"[{\[]")


@dataclass(frozen=True, slots=True)
class ParsedReply:
    """A generator reply split into what the user sees and what the host uses."""

    visible_text: str
    payload: object | None = None
    kind: PayloadKind | None = None

    @property
    def has_payload(self) -> bool:
        return self.payload is not None


def extract_json_candidate(raw: str) -> str | None:
    """Normalize the text after a marker into something `json.loads` can take.

    Strips one outer code fence, keeps only the first paragraph, skips prose
    before the first ``{``/``[`` and truncates after the last ``}``/``]``.
    Returns None when nothing JSON-shaped remains.
    """

    text = raw.strip()
    if not text:
        return None

    if text.startswith("```"):
        text = _OPEN_FENCE_RE.sub("", text, count=1).strip()
        if text.endswith("```"):
            text = text[:-3].strip()

    text = _PARAGRAPH_BREAK_RE.split(text, maxsplit=1)[0].strip()
    if not text:
        return None

    start = _JSON_START_RE.search(text)
    if start is None:
        return None
    text = text[start.start():].strip()

    last_close = max(text.rfind("}"), text.rfind("]"))
    if last_close != -1 and last_close < len(text) - 1:
        text = text[: last_close + 1].strip()

    is_object = text.startswith("{") and text.endswith("}")
    is_array = text.startswith("[") and text.endswith("]")
    if not (is_object or is_array):
        return None
    return text


def find_marker(text: str) -> tuple[int, str] | None:
    """Return ``(offset, marker)`` of the first line-leading marker, if any."""

    match = _MARKER_RE.search(text)
    if match is None:
        return None
    return match.start(1), match.group(1)


def parse_handoff(text: str, default_kind: PayloadKind | None = None) -> ParsedReply:
    """Split a raw reply into visible prose and an optional JSON payload.

    Args:
        text: The raw generator reply.
        default_kind: Kind assigned to a bare-JSON reply (no marker).

    Returns:
        A `ParsedReply`. Never raises; a reply that cannot be parsed comes back
        unchanged as visible text with no payload.
    """

    found = find_marker(text)

    if found is None:
        trimmed = text.strip()
        if trimmed.startswith("{") and trimmed.endswith("}"):
            try:
                return ParsedReply(visible_text="", payload=json.loads(trimmed), kind=default_kind)
            except json.JSONDecodeError:
                logger.debug("Bare JSON reply did not parse; showing it as prose")
        return ParsedReply(visible_text=text)

    offset, marker = found
    visible = _DANGLING_FENCE_RE.sub("", text[:offset].rstrip()).rstrip()
    candidate = extract_json_candidate(text[offset + len(marker):])
    if candidate is None:
        logger.debug("Handoff marker without JSON", extra={"marker": marker})
        return ParsedReply(visible_text=text)

    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning(
            "Failed to parse handoff payload",
            extra={"marker": marker, "error": str(e)},
        )
        return ParsedReply(visible_text=text)

    return ParsedReply(visible_text=visible, payload=payload, kind=HANDOFF_MARKERS[marker])


class PendingPayloads:
    """Payloads awaiting user confirmation, at most one per kind.

    A newly parsed payload replaces the pending one of the same kind; payloads
    are never merged.
    """

    def __init__(self) -> None:
        self._slots: dict[PayloadKind, object] = {}

    def replace(self, kind: PayloadKind, payload: object) -> object | None:
        previous = self._slots.get(kind)
        self._slots[kind] = payload
        return previous

    def get(self, kind: PayloadKind) -> object | None:
        return self._slots.get(kind)

    def take(self, kind: PayloadKind) -> object | None:
        """Remove and return the pending payload (the user confirmed it)."""
        return self._slots.pop(kind, None)

    def discard(self, kind: PayloadKind) -> None:
        self._slots.pop(kind, None)

    def clear(self) -> None:
        self._slots.clear()

    def __contains__(self, kind: object) -> bool:
        return kind in self._slots

    def __len__(self) -> int:
        return len(self._slots)
