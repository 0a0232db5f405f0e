"""Unit tests for the quality gate and its template fallback."""

from __future__ import annotations

import asyncio

import pytest

from guided_chat.llm.provider import TransportError
from guided_chat.llm.transport import TransportMetadata
from guided_chat.quality.critic import CRITIC_STEP_ID, QualityGate, parse_total_score
from guided_chat.quality.fallback import (
    DEFAULT_NEXT_SMALL_STEP,
    build_aspiration_fallback,
    build_next_small_step,
    format_labels,
)

from fakes import FakeTransport

COLLECTED = {
    "domain": "Creativity and making",
    "motivation": ["Curiosity", "Craft"],
    "signatureTrait": "Your patience",
    "growthEdge": "Finishing what I start",
    "proudMoment": "Helping someone",
}

CANDIDATE = {"arcName": "Generic", "aspirationSentence": "You are great.", "nextSmallStep": "Do it."}
METADATA = TransportMetadata(mode="firstTimeOnboarding", workflow_step_id="aspiration_generate")


def test_format_labels() -> None:
    assert format_labels([]) == ""
    assert format_labels(["a"]) == "a"
    assert format_labels(["a", "b"]) == "a and b"
    assert format_labels(["a", "b", "c"]) == "a, b and c"


def test_next_small_step_by_proud_moment() -> None:
    assert build_next_small_step(["supporting_a_friend"]).startswith("Your next small step: Reach out")
    assert build_next_small_step(["unknown"]) == DEFAULT_NEXT_SMALL_STEP


def test_fallback_from_collected_answers() -> None:
    fallback = build_aspiration_fallback(COLLECTED)

    assert fallback is not None
    assert fallback["arcName"] == "Creativity patience"
    assert fallback["aspirationSentence"].startswith(
        "You're the kind of person who is growing in **creativity and making**"
    )
    assert "curiosity and craft" in fallback["aspirationSentence"]
    assert fallback["nextSmallStep"].startswith("Your next small step: Reach out")


def test_fallback_prefers_nickname() -> None:
    fallback = build_aspiration_fallback({**COLLECTED, "nickname": "The Finisher"})

    assert fallback["arcName"] == "The Finisher"


def test_fallback_needs_every_signal() -> None:
    partial = {key: value for key, value in COLLECTED.items() if key != "growthEdge"}

    assert build_aspiration_fallback(partial) is None


def test_parse_total_score_variants() -> None:
    assert parse_total_score('{"total_score": 7}') == 7.0
    assert parse_total_score('Sure! {"totalScore": 9.5} done') == 9.5
    assert parse_total_score('{"total_score": "high"}') is None
    assert parse_total_score('{"total_score": true}') is None
    assert parse_total_score("no json") is None


@pytest.mark.asyncio
async def test_low_score_uses_fallback() -> None:
    transport = FakeTransport(['{"scores": {}, "total_score": 3}'])
    gate = QualityGate(transport)

    verdict = await gate.review(CANDIDATE, COLLECTED, METADATA)

    assert verdict.used_fallback is True
    assert verdict.score == 3
    assert verdict.payload == build_aspiration_fallback(COLLECTED)
    _, metadata = transport.calls[0]
    assert metadata.workflow_step_id == CRITIC_STEP_ID
    assert metadata.mode == "firstTimeOnboarding"


@pytest.mark.asyncio
async def test_score_at_threshold_keeps_candidate() -> None:
    gate = QualityGate(FakeTransport(['{"total_score": 8}']))

    verdict = await gate.review(CANDIDATE, COLLECTED, METADATA)

    assert verdict.payload is CANDIDATE
    assert verdict.used_fallback is False


@pytest.mark.asyncio
async def test_threshold_is_configurable() -> None:
    gate = QualityGate(FakeTransport(['{"total_score": 8}']), min_total_score=9)

    verdict = await gate.review(CANDIDATE, COLLECTED, METADATA)

    assert verdict.used_fallback is True


@pytest.mark.asyncio
async def test_critic_failure_keeps_candidate() -> None:
    gate = QualityGate(FakeTransport([TransportError("network down")]))

    verdict = await gate.review(CANDIDATE, COLLECTED, METADATA)

    assert verdict.payload is CANDIDATE
    assert verdict.score is None


@pytest.mark.asyncio
async def test_critic_timeout_keeps_candidate() -> None:
    class SlowTransport:
        async def send(self, turns, metadata) -> str:
            await asyncio.sleep(5)
            return '{"total_score": 0}'

    gate = QualityGate(SlowTransport(), timeout_seconds=0.01)

    verdict = await gate.review(CANDIDATE, COLLECTED, METADATA)

    assert verdict.payload is CANDIDATE


@pytest.mark.asyncio
async def test_unparsable_critic_reply_keeps_candidate() -> None:
    gate = QualityGate(FakeTransport(["I think it is fine."]))

    verdict = await gate.review(CANDIDATE, COLLECTED, METADATA)

    assert verdict.payload is CANDIDATE


@pytest.mark.asyncio
async def test_low_score_without_fallback_keeps_candidate() -> None:
    gate = QualityGate(FakeTransport(['{"total_score": 1}']))

    verdict = await gate.review(CANDIDATE, {"domain": "Health"}, METADATA)

    assert verdict.payload is CANDIDATE
    assert verdict.used_fallback is False
    assert verdict.score == 1
