"""Immutable workflow definitions.

A definition is configuration: an ordered list of steps with optional next
pointers and prompt hints. The engine reads definitions and never mutates them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from guided_chat.handoff.parser import PayloadKind

Decision = Literal["confirm", "edit"]


class StepType(str, Enum):
    USER_INPUT = "user_input"
    AGENT_GENERATE = "agent_generate"
    CONFIRM = "confirm"


class InvalidWorkflowDefinitionError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class AgentBehavior:
    """Presentation hints for agent-driven steps."""

    loading_message: str | None = None
    loading_message_id: str | None = None


@dataclass(frozen=True, slots=True)
class WorkflowStep:
    id: str
    type: StepType
    label: str | None = None
    fields_collected: tuple[str, ...] = ()
    next_step_id: str | None = None
    next_step_on_confirm_id: str | None = None
    next_step_on_edit_id: str | None = None
    prompt_template: str | None = None
    validation_hint: str | None = None
    agent_behavior: AgentBehavior | None = None
    hide_freeform_input: bool = False
    # Only one generation kind is reviewed by the critic.
    quality_gate: bool = False

    @property
    def loading_message_id(self) -> str:
        if self.agent_behavior and self.agent_behavior.loading_message_id:
            return self.agent_behavior.loading_message_id
        return f"assistant-status-{self.id}"


@dataclass(frozen=True, slots=True)
class WorkflowDefinition:
    """One guided flow: its steps and the policies that govern them."""

    id: str
    chat_mode: str
    steps: tuple[WorkflowStep, ...]
    label: str = ""
    version: int = 1
    system_prompt: str | None = None
    handoff_kind: PayloadKind | None = None
    auto_complete: bool = True
    auto_bootstrap_first_message: bool = False
    persist_draft: bool = False

    @property
    def first_step(self) -> WorkflowStep | None:
        return self.steps[0] if self.steps else None

    def get_step(self, step_id: str) -> WorkflowStep | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def branch_target(self, step_id: str, decision: Decision) -> str | None:
        """Next step for a confirm/edit decision, falling back to `next_step_id`."""

        step = self.get_step(step_id)
        if step is None:
            return None
        if decision == "confirm" and step.next_step_on_confirm_id:
            return step.next_step_on_confirm_id
        if decision == "edit" and step.next_step_on_edit_id:
            return step.next_step_on_edit_id
        return step.next_step_id


def validate_definition(definition: WorkflowDefinition) -> None:
    """Reject definitions whose step graph points at steps that do not exist."""

    if not definition.id:
        raise InvalidWorkflowDefinitionError(f"Workflow missing id: {definition!r}")
    if not definition.chat_mode:
        raise InvalidWorkflowDefinitionError(f"Workflow {definition.id} missing chat_mode")
    if not definition.steps:
        raise InvalidWorkflowDefinitionError(f"Workflow {definition.id} must have at least one step")

    step_ids = [step.id for step in definition.steps]
    if len(set(step_ids)) != len(step_ids):
        raise InvalidWorkflowDefinitionError(f"Workflow {definition.id} has duplicate step ids")

    known = set(step_ids)
    for step in definition.steps:
        for attr in ("next_step_id", "next_step_on_confirm_id", "next_step_on_edit_id"):
            target = getattr(step, attr)
            if target and target not in known:
                raise InvalidWorkflowDefinitionError(
                    f"Workflow {definition.id} step {step.id} references invalid {attr}: {target}"
                )
