"""Hidden context turns assembled for each generator call."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sized
from dataclasses import dataclass

from guided_chat.workflow.definitions import WorkflowStep

COLLECTED_DATA_HEADER = (
    "Authoritative workflow data collected so far. Treat these values as facts "
    "and do not ask the user for them again:"
)


@dataclass(frozen=True, slots=True)
class EntityRef:
    type: str
    id: str


@dataclass(frozen=True, slots=True)
class LaunchContext:
    """Where a workflow was launched from and what it is focused on."""

    source: str
    intent: str | None = None
    entity_ref: EntityRef | None = None
    object_type: str | None = None
    object_id: str | None = None
    field_id: str | None = None
    field_label: str | None = None
    current_text: str | None = None


def serialize_launch_context(context: LaunchContext, workspace_snapshot: str | None = None) -> str:
    parts = [f"Launch source: {context.source}."]
    if context.intent:
        parts.append(f"Intent: {context.intent}.")
    if context.entity_ref:
        parts.append(f"Focused entity: {context.entity_ref.type}#{context.entity_ref.id}.")
    if context.object_type and context.object_id:
        parts.append(f"Object: {context.object_type}#{context.object_id}.")
    if context.field_id:
        label = f" ({context.field_label})" if context.field_label else ""
        parts.append(f"Field: {context.field_id}{label}.")
    if context.current_text:
        parts.append("Current field text (truncated if needed by the host):")
        parts.append(context.current_text)

    text = " ".join(parts)
    if workspace_snapshot:
        text = f"{text}\n\n{workspace_snapshot}"
    return text


def is_empty_value(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (Mapping, Sized)):
        return len(value) == 0
    return False


def _format_value(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    return json.dumps(value, ensure_ascii=False, default=str)


def summarize_collected_data(collected: Mapping[str, object]) -> str | None:
    """Render non-empty collected fields as ``- key: value`` lines, or None."""

    lines = [f"- {key}: {_format_value(value)}" for key, value in collected.items() if not is_empty_value(value)]
    if not lines:
        return None
    return "\n".join([COLLECTED_DATA_HEADER, *lines])


def build_step_instruction(step: WorkflowStep) -> str | None:
    if not step.prompt_template:
        return None
    heading = f"Current workflow step: {step.id}"
    if step.label:
        heading = f"{heading} ({step.label})"
    parts = [heading, step.prompt_template.strip()]
    if step.validation_hint:
        parts.append(f"Validation hint: {step.validation_hint.strip()}")
    return "\n\n".join(parts)
