"""Built-in workflow catalog."""

from __future__ import annotations

from guided_chat.handoff.parser import PayloadKind

from .definitions import AgentBehavior, StepType, WorkflowDefinition, WorkflowStep
from .registry import WorkflowRegistry

ARC_CREATION_SYSTEM_PROMPT = """\
You are the Arc Coach. Help the user name one long-term identity direction (an Arc).
Ask one short question at a time and keep replies to a few sentences.

When the user is ready to commit to an Arc, reply with a short human explanation first.
At the very end of that message, on its own line, write exactly:
ARC_PROPOSAL_JSON:
followed on the next line by one JSON object with this shape and nothing after it:
{"name": "<Arc name>", "narrative": "<one paragraph, 3 sentences>", "status": "active"}
Do not emit ARC_PROPOSAL_JSON: during earlier exploratory turns."""

GOAL_CREATION_SYSTEM_PROMPT = """\
You are the Goal Coach. Help the user shape one clear, realistic goal for the next 30-90 days.
Use the hidden launch context quietly and never echo internal ids.

When you propose the goal, write one or two sentences of lead-in, then on its own line:
GOAL_PROPOSAL_JSON:
followed by one JSON object:
{"title": "<goal title>", "description": "<1-2 sentences>", "status": "planned",
 "forceIntent": {"activity": 0, "connection": 0, "mastery": 0, "spirituality": 0}}"""

ACTIVITY_CREATION_SYSTEM_PROMPT = """\
You are the Activity Coach. Help the user pick small, concrete activities for the near term.
Each activity should fit in one work session of 30-120 minutes.

When you recommend activities, write a 1-2 sentence lead-in, then on its own line:
ACTIVITY_SUGGESTIONS_JSON:
followed by one JSON object:
{"suggestions": [{"id": "suggestion_1", "title": "<title>", "why": "<one sentence>",
 "timeEstimateMinutes": 45, "energyLevel": "light", "kind": "progress",
 "steps": [{"title": "<step>", "isOptional": false}]}]}
Include 3 to 5 suggestions and no text after the JSON line."""

FIRST_TIME_ONBOARDING_SYSTEM_PROMPT = """\
You are the onboarding guide. The host collects structured answers through tap-only cards;
keep visible replies to one or two short sentences and never ask what a card already asks."""

ASPIRATION_PROMPT = """\
Using the collected inputs (domain, motivation, signatureTrait, growthEdge, proudMoment and the
optional nickname) write an identity Arc of exactly 3 sentences plus one gentle next small step.
Respond ONLY with a JSON object in this shape:
{"arcName": "<1-3 words>", "aspirationSentence": "<3 sentences, the first starts with 'I want'>",
 "nextSmallStep": "Your next small step: <one doable action>"}"""


def _arc_creation() -> WorkflowDefinition:
    return WorkflowDefinition(
        id="arcCreation",
        chat_mode="arcCreation",
        label="Arc Coach",
        system_prompt=ARC_CREATION_SYSTEM_PROMPT,
        handoff_kind=PayloadKind.ARC_PROPOSAL,
        persist_draft=True,
        steps=(
            WorkflowStep(
                id="context_collect",
                type=StepType.USER_INPUT,
                label="Collect free-text Arc desire",
                fields_collected=("prompt",),
                hide_freeform_input=True,
                prompt_template=(
                    "Invite the user to describe, in their own words, one thing they would like "
                    "to make progress on or change in their life right now."
                ),
                validation_hint="Ensure there is at least a short free-text description.",
                next_step_id="agent_generate_arc",
            ),
            WorkflowStep(
                id="agent_generate_arc",
                type=StepType.AGENT_GENERATE,
                label="Generate Arc suggestions",
                prompt_template=(
                    "Given the user's context and any workspace snapshot, propose one Arc "
                    "identity direction that feels distinctive and grounded."
                ),
                validation_hint="Arcs read like long-horizon identity directions, not single projects.",
                agent_behavior=AgentBehavior(
                    loading_message=(
                        "Got it. I'm shaping a first-pass Arc that fits this and stays broad "
                        "enough to hold many future projects."
                    ),
                    loading_message_id="assistant-arc-status",
                ),
                next_step_id="confirm_arc",
            ),
            WorkflowStep(
                id="confirm_arc",
                type=StepType.CONFIRM,
                label="Confirm or edit Arc",
                fields_collected=("adoptedArcId",),
                next_step_on_edit_id="agent_generate_arc",
                prompt_template="Help the user decide whether to adopt the Arc or adjust it.",
            ),
        ),
    )


def _goal_creation() -> WorkflowDefinition:
    return WorkflowDefinition(
        id="goalCreation",
        chat_mode="goalCreation",
        label="Goal Coach",
        version=2,
        system_prompt=GOAL_CREATION_SYSTEM_PROMPT,
        handoff_kind=PayloadKind.GOAL_PROPOSAL,
        steps=(
            WorkflowStep(
                id="arc_select",
                type=StepType.USER_INPUT,
                label="Pick an Arc (optional)",
                fields_collected=("arcId",),
                hide_freeform_input=True,
                next_step_id="context_collect",
            ),
            WorkflowStep(
                id="context_collect",
                type=StepType.USER_INPUT,
                label="Collect prompt",
                fields_collected=("prompt", "constraints"),
                prompt_template=(
                    "Ask in one short question what the user wants to make progress on over "
                    "the next 30-90 days."
                ),
                validation_hint="Constraints are optional.",
                next_step_id="agent_generate_goals",
            ),
            WorkflowStep(
                id="agent_generate_goals",
                type=StepType.AGENT_GENERATE,
                label="Generate goal options",
                prompt_template=(
                    "Propose exactly ONE candidate goal with a title and a short description. "
                    "Weave any timeframe into the description."
                ),
                validation_hint="One concrete, realistic goal that does not duplicate existing goals.",
                agent_behavior=AgentBehavior(
                    loading_message="Got it. I'm shaping one concrete 30-90 day goal for this season.",
                    loading_message_id="assistant-goal-status",
                ),
                next_step_id="confirm_goal",
            ),
            WorkflowStep(
                id="confirm_goal",
                type=StepType.CONFIRM,
                label="Confirm or refine goal",
                fields_collected=("title", "description", "status", "forceIntent"),
                next_step_on_edit_id="agent_generate_goals",
            ),
        ),
    )


def _activity_creation() -> WorkflowDefinition:
    return WorkflowDefinition(
        id="activityCreation",
        chat_mode="activityCreation",
        label="Activity Coach",
        system_prompt=ACTIVITY_CREATION_SYSTEM_PROMPT,
        handoff_kind=PayloadKind.ACTIVITY_SUGGESTIONS,
        auto_bootstrap_first_message=True,
        steps=(
            WorkflowStep(
                id="context_collect",
                type=StepType.USER_INPUT,
                label="Collect context",
                fields_collected=("prompt", "timeHorizon", "energyLevel", "constraints"),
                prompt_template=(
                    "Briefly acknowledge the focused goal or life area and say you will suggest "
                    "a few concrete, near-term activities. Ask at most one clarifying question."
                ),
                next_step_id="agent_generate_activities",
            ),
            WorkflowStep(
                id="agent_generate_activities",
                type=StepType.AGENT_GENERATE,
                label="Generate activity suggestions",
                prompt_template=(
                    "Propose 3-5 concrete, bite-sized activities for the stated horizon, each "
                    "with a short checklist of steps for one work session."
                ),
                validation_hint="Activities are specific and doable in a single sitting.",
                next_step_id="confirm_activities",
            ),
            WorkflowStep(
                id="confirm_activities",
                type=StepType.CONFIRM,
                label="Confirm or edit activities",
                fields_collected=("adoptedActivityTitles",),
            ),
        ),
    )


def _collect(step_id: str, label: str, field_name: str | None, next_step_id: str) -> WorkflowStep:
    return WorkflowStep(
        id=step_id,
        type=StepType.USER_INPUT,
        label=label,
        fields_collected=(field_name,) if field_name else (),
        hide_freeform_input=True,
        prompt_template="Acknowledge the selection in a single short sentence.",
        next_step_id=next_step_id,
    )


def _first_time_onboarding() -> WorkflowDefinition:
    # The presenter drives the end of this flow, so it never auto-completes.
    return WorkflowDefinition(
        id="firstTimeOnboarding",
        chat_mode="firstTimeOnboarding",
        label="First-time onboarding",
        version=2,
        system_prompt=FIRST_TIME_ONBOARDING_SYSTEM_PROMPT,
        handoff_kind=PayloadKind.ASPIRATION,
        auto_complete=False,
        steps=(
            _collect("soft_start", "Soft start", None, "vibe_select"),
            _collect("vibe_select", "Domain of becoming", "domain", "social_mirror"),
            _collect("social_mirror", "Motivational style", "motivation", "core_strength"),
            _collect("core_strength", "Signature trait", "signatureTrait", "growth_edge"),
            _collect("growth_edge", "Growth edge", "growthEdge", "everyday_moment"),
            _collect("everyday_moment", "Everyday proud moment", "proudMoment", "nickname_optional"),
            _collect("nickname_optional", "Nickname (optional)", "nickname", "aspiration_generate"),
            WorkflowStep(
                id="aspiration_generate",
                type=StepType.AGENT_GENERATE,
                label="Synthesize identity aspiration",
                fields_collected=("arcName", "arcNarrative", "nextSmallStep"),
                prompt_template=ASPIRATION_PROMPT,
                validation_hint='nextSmallStep must begin with "Your next small step: ".',
                quality_gate=True,
                next_step_id="aspiration_reveal",
            ),
            _collect("aspiration_reveal", "Reveal identity aspiration", None, "aspiration_confirm"),
            WorkflowStep(
                id="aspiration_confirm",
                type=StepType.CONFIRM,
                label="Confirmation",
                fields_collected=("confirmed",),
                next_step_on_confirm_id="closing_arc",
                next_step_on_edit_id="aspiration_generate",
            ),
            WorkflowStep(
                id="closing_arc",
                type=StepType.USER_INPUT,
                label="Closing",
                hide_freeform_input=True,
            ),
        ),
    )


def default_definitions() -> list[WorkflowDefinition]:
    return [_arc_creation(), _goal_creation(), _activity_creation(), _first_time_onboarding()]


def default_registry() -> WorkflowRegistry:
    return WorkflowRegistry(default_definitions())
