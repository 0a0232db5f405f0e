"""Critic pass over generated aspirations.

A second, independent generator call scores the candidate. Only a successful
critic reply with a numeric total below the threshold replaces the candidate;
every failure keeps it.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace

from guided_chat.llm.transport import Transport, TransportMetadata

from .fallback import build_aspiration_fallback

logger = logging.getLogger(__name__)

MIN_QUALITY_SCORE = 8
QUALITY_DIMENSIONS = ("specificity", "coherence", "depth", "voice", "constraint_adherence")
CRITIC_STEP_ID = "aspiration_quality_check"


@dataclass(frozen=True, slots=True)
class QualityVerdict:
    payload: object
    score: float | None = None
    used_fallback: bool = False


def build_critic_prompt(payload: Mapping[str, object], collected: Mapping[str, object]) -> str:
    def signal(key: str) -> str:
        value = collected.get(key)
        if isinstance(value, (list, tuple)):
            value = ", ".join(str(v) for v in value)
        return str(value) if value else "unknown"

    lines = [
        "You are evaluating the quality of an Identity Arc generated for a user.",
        "",
        "Rate it on a 0-2 scale for each dimension:",
        "1) specificity: how clearly it reflects this particular user rather than anyone.",
        "2) coherence: how well the sentences hang together around one identity thread.",
        "3) depth: whether it includes values, meaning, or worldview (not just traits).",
        "4) voice: whether the tone fits a thoughtful, identity-focused app.",
        "5) constraint_adherence: whether it follows the requested structure and avoids advice.",
        "",
        "Return JSON only in this shape (no extra commentary, no markdown):",
        json.dumps(
            {
                "scores": {dimension: 0 for dimension in QUALITY_DIMENSIONS},
                "total_score": 0,
                "regenerate_recommended": False,
                "notes": "one or two short sentences of feedback",
            },
            indent=2,
        ),
        "",
        "User identity signals (high-level):",
        f"- domain of becoming: {signal('domain')}",
        f"- motivational style: {signal('motivation')}",
        f"- signature trait: {signal('signatureTrait')}",
        f"- growth edge: {signal('growthEdge')}",
        f"- everyday proud moment: {signal('proudMoment')}",
        "",
        f"Candidate Arc name: {payload.get('arcName', '')}",
        f"Candidate Arc narrative: {payload.get('aspirationSentence', '')}",
    ]
    return "\n".join(lines)


def parse_total_score(reply: str) -> float | None:
    """Read ``total_score`` (or ``totalScore``) from a critic reply."""

    start, end = reply.find("{"), reply.rfind("}")
    text = reply[start : end + 1] if start != -1 and end > start else reply
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, dict):
        return None
    for key in ("total_score", "totalScore"):
        value = parsed.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    return None


class QualityGate:
    def __init__(
        self,
        transport: Transport,
        *,
        min_total_score: float = MIN_QUALITY_SCORE,
        timeout_seconds: float | None = 20.0,
    ) -> None:
        self.transport = transport
        self.min_total_score = min_total_score
        self.timeout_seconds = timeout_seconds

    async def review(
        self,
        payload: object,
        collected: Mapping[str, object],
        metadata: TransportMetadata,
    ) -> QualityVerdict:
        """Score `payload` and substitute the template fallback when it is weak."""

        if not isinstance(payload, Mapping):
            return QualityVerdict(payload)

        turns = [{"role": "user", "content": build_critic_prompt(payload, collected)}]
        critic_metadata = replace(metadata, workflow_step_id=CRITIC_STEP_ID)
        try:
            reply = await asyncio.wait_for(
                self.transport.send(turns, critic_metadata), timeout=self.timeout_seconds
            )
        except TimeoutError:
            logger.warning("Quality critic timed out; keeping generated payload")
            return QualityVerdict(payload)
        except Exception as e:
            logger.warning(
                "Quality critic failed; keeping generated payload",
                extra={"error": str(e)},
            )
            return QualityVerdict(payload)

        score = parse_total_score(reply)
        if score is None:
            logger.info("Quality critic reply had no usable score")
            return QualityVerdict(payload)
        if score >= self.min_total_score:
            return QualityVerdict(payload, score=score)

        fallback = build_aspiration_fallback(collected)
        if fallback is None:
            logger.info("Low quality score but no fallback available", extra={"score": score})
            return QualityVerdict(payload, score=score)

        logger.info(
            "Replacing low-quality payload with fallback",
            extra={"score": score, "threshold": self.min_total_score},
        )
        return QualityVerdict(fallback, score=score, used_fallback=True)
