"""Typed views of handoff payloads.

The parser only guarantees valid JSON. Hosts that want a typed proposal at
confirmation time call `coerce_payload`, which returns None instead of raising
when the generator drifted from the requested shape.
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from guided_chat.handoff.parser import PayloadKind

logger = logging.getLogger(__name__)

MAX_AGENT_OFFERS = 5


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ArcProposal(_Payload):
    name: str = Field(min_length=1)
    narrative: str = ""
    north_star: str | None = Field(default=None, alias="northStar")
    status: Literal["active", "paused", "archived"] = "active"
    suggested_forces: list[str] = Field(default_factory=list, alias="suggestedForces")


class GoalProposal(_Payload):
    title: str = Field(min_length=1)
    description: str | None = None
    status: str | None = None
    suggested_arc_name: str | None = Field(default=None, alias="suggestedArcName")
    force_intent: dict[str, int] = Field(default_factory=dict, alias="forceIntent")
    time_horizon: str | None = Field(default=None, alias="timeHorizon")


class ActivityStep(_Payload):
    title: str = Field(min_length=1)
    is_optional: bool = Field(default=False, alias="isOptional")


class ActivitySuggestion(_Payload):
    id: str | None = None
    title: str = Field(min_length=1)
    type: str | None = None
    why: str | None = None
    time_estimate_minutes: int | None = Field(default=None, ge=0, alias="timeEstimateMinutes")
    energy_level: Literal["light", "focused"] | None = Field(default=None, alias="energyLevel")
    kind: Literal["setup", "progress", "maintenance", "stretch"] | None = None
    steps: list[ActivityStep] = Field(default_factory=list)


class ActivitySuggestionSet(_Payload):
    suggestions: list[ActivitySuggestion] = Field(default_factory=list)


class AgentOffer(_Payload):
    id: str
    title: str = Field(min_length=1)
    user_message: str = Field(min_length=1, alias="userMessage")


class Aspiration(_Payload):
    arc_name: str = Field(min_length=1, alias="arcName")
    aspiration_sentence: str = Field(min_length=1, alias="aspirationSentence")
    next_small_step: str | None = Field(default=None, alias="nextSmallStep")


PayloadModel = ArcProposal | GoalProposal | ActivitySuggestion | ActivitySuggestionSet | Aspiration


def _coerce_offers(payload: object) -> list[AgentOffer] | None:
    if not isinstance(payload, list):
        return None
    offers: list[AgentOffer] = []
    for index, entry in enumerate(payload):
        if not isinstance(entry, dict):
            continue
        data = {key: value.strip() if isinstance(value, str) else value for key, value in entry.items()}
        if not data.get("id"):
            data["id"] = f"offer-{index + 1}"
        try:
            offers.append(AgentOffer.model_validate(data))
        except ValidationError:
            continue
    return offers[:MAX_AGENT_OFFERS] or None


def coerce_payload(kind: PayloadKind | None, payload: object) -> PayloadModel | list[AgentOffer] | None:
    """Validate a raw payload against the model for its kind.

    Agent offers come back as a list (invalid entries dropped, at most five);
    every other kind yields a single model. Returns None when the payload does
    not fit.
    """

    if kind is None or payload is None:
        return None
    if kind == PayloadKind.AGENT_OFFERS:
        return _coerce_offers(payload)

    model: type[BaseModel] = {
        PayloadKind.ARC_PROPOSAL: ArcProposal,
        PayloadKind.GOAL_PROPOSAL: GoalProposal,
        PayloadKind.ACTIVITY_SUGGESTIONS: ActivitySuggestionSet,
        PayloadKind.ACTIVITY_PROPOSAL: ActivitySuggestion,
        PayloadKind.ASPIRATION: Aspiration,
    }[kind]
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        logger.info(
            "Payload does not match model",
            extra={"kind": kind.value, "errors": e.error_count()},
        )
        return None
