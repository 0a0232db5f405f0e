"""Workflow instance state machine.

States are the step ids of the active definition plus a terminal "no current
step" state. Transitions are pure functions of `(step_id, collected, override)`
and always produce a new instance carrying a fresh `transition_id`, so callers
can tell that a transition happened without comparing object identity.
"""

from __future__ import annotations

import copy
import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum

from .definitions import WorkflowDefinition, WorkflowStep

logger = logging.getLogger(__name__)


class WorkflowStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def _new_transition_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class WorkflowInstance:
    id: str
    definition_id: str
    status: WorkflowStatus = WorkflowStatus.IN_PROGRESS
    current_step_id: str | None = None
    collected_data: dict[str, object] = field(default_factory=dict)
    outcome: dict[str, object] | None = None
    revision: int = 0
    transition_id: str = field(default_factory=_new_transition_id)

    @property
    def is_completed(self) -> bool:
        return self.status == WorkflowStatus.COMPLETED

    def to_json(self) -> dict[str, object]:
        return {
            "id": self.id,
            "definitionId": self.definition_id,
            "status": self.status.value,
            "currentStepId": self.current_step_id,
            "collectedData": dict(self.collected_data),
            "outcome": self.outcome,
            "revision": self.revision,
        }


@dataclass(frozen=True, slots=True)
class StepCompletion:
    """Emitted after a step transition has been applied."""

    definition: WorkflowDefinition
    previous_instance: WorkflowInstance
    next_instance: WorkflowInstance
    step_id: str
    collected: Mapping[str, object] | None
    next_step_id: str | None


def start_instance(
    definition: WorkflowDefinition, instance_id: str | None = None
) -> WorkflowInstance:
    first = definition.first_step
    return WorkflowInstance(
        id=instance_id or f"{definition.id}:local",
        definition_id=definition.id,
        current_step_id=first.id if first else None,
    )


def complete_step(
    definition: WorkflowDefinition,
    instance: WorkflowInstance,
    step_id: str,
    collected: Mapping[str, object] | None = None,
    next_step_id_override: str | None = None,
) -> WorkflowInstance:
    """Apply one step completion and return the next instance.

    `step_id` is not checked against `instance.current_step_id`; presenters may
    complete steps out of order and the runtime follows them.
    """

    merged = {**instance.collected_data, **(collected or {})}
    next_step_id = resolve_next_step_id(definition, step_id, next_step_id_override)

    if next_step_id is None and definition.auto_complete:
        return replace(
            instance,
            status=WorkflowStatus.COMPLETED,
            current_step_id=None,
            collected_data=merged,
            outcome=copy.deepcopy(merged),
            revision=instance.revision + 1,
            transition_id=_new_transition_id(),
        )

    return replace(
        instance,
        current_step_id=next_step_id or instance.current_step_id,
        collected_data=merged,
        revision=instance.revision + 1,
        transition_id=_new_transition_id(),
    )


def resolve_next_step_id(
    definition: WorkflowDefinition, step_id: str, next_step_id_override: str | None = None
) -> str | None:
    if next_step_id_override is not None:
        return next_step_id_override
    step = definition.get_step(step_id)
    return step.next_step_id if step else None


StepCompleteCallback = Callable[[StepCompletion], None]
StatusChangeCallback = Callable[[WorkflowInstance], None]


class WorkflowRuntime:
    """Owns the single active definition/instance pair of a workspace."""

    def __init__(
        self,
        *,
        on_step_complete: StepCompleteCallback | None = None,
        on_workflow_status_change: StatusChangeCallback | None = None,
    ) -> None:
        self.on_step_complete = on_step_complete
        self.on_workflow_status_change = on_workflow_status_change
        self.definition: WorkflowDefinition | None = None
        self.instance: WorkflowInstance | None = None
        self.session_id: str | None = None

    @property
    def is_active(self) -> bool:
        return self.definition is not None and self.instance is not None

    @property
    def current_step(self) -> WorkflowStep | None:
        if not self.is_active or self.instance.current_step_id is None:
            return None
        return self.definition.get_step(self.instance.current_step_id)

    def activate(
        self, definition: WorkflowDefinition, instance_id: str | None = None
    ) -> WorkflowInstance:
        self.definition = definition
        self.instance = start_instance(definition, instance_id)
        self.session_id = uuid.uuid4().hex
        logger.info(
            "Workflow started",
            extra={"workflow": definition.id, "instance": self.instance.id},
        )
        self._notify_status(self.instance)
        return self.instance

    def deactivate(self) -> None:
        if self.definition is not None:
            logger.info("Workflow deactivated", extra={"workflow": self.definition.id})
        self.definition = None
        self.instance = None
        self.session_id = None

    def complete_step(
        self,
        step_id: str,
        collected: Mapping[str, object] | None = None,
        next_step_id_override: str | None = None,
    ) -> WorkflowInstance | None:
        """Transition the active instance; a no-op returning None when idle."""

        if self.definition is None or self.instance is None:
            logger.debug("complete_step ignored: no active workflow", extra={"step": step_id})
            return None

        previous = self.instance
        nxt = complete_step(self.definition, previous, step_id, collected, next_step_id_override)
        self.instance = nxt

        logger.info(
            "Workflow step completed",
            extra={
                "workflow": self.definition.id,
                "step": step_id,
                "next_step": nxt.current_step_id,
                "status": nxt.status.value,
            },
        )

        if self.on_step_complete is not None:
            event = StepCompletion(
                definition=self.definition,
                previous_instance=previous,
                next_instance=nxt,
                step_id=step_id,
                collected=collected,
                next_step_id=resolve_next_step_id(self.definition, step_id, next_step_id_override),
            )
            try:
                self.on_step_complete(event)
            except Exception:
                logger.exception("on_step_complete callback failed")

        if nxt.status != previous.status:
            self._notify_status(nxt)
        return nxt

    def _notify_status(self, instance: WorkflowInstance) -> None:
        if self.on_workflow_status_change is None:
            return
        try:
            self.on_workflow_status_change(instance)
        except Exception:
            logger.exception("on_workflow_status_change callback failed")
