"""Single host object for one guided chat session.

`AgentWorkspace` owns the workflow runtime, the transcript, the orchestrator
and the draft slot. At most one workflow is active at a time; activating a new
one tears the previous session down first.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from guided_chat.core.config import EngineConfig
from guided_chat.handoff.parser import PayloadKind
from guided_chat.llm.transport import Transport
from guided_chat.orchestrator.agent import (
    AgentOrchestrator,
    InvocationResult,
    PayloadCallback,
    QuotaExceededCallback,
    TransportErrorCallback,
)
from guided_chat.orchestrator.context import LaunchContext, serialize_launch_context
from guided_chat.orchestrator.entitlements import GenerationAllowance
from guided_chat.quality.critic import QualityGate
from guided_chat.timeline.controller import TranscriptTimeline
from guided_chat.timeline.drafts import DraftAutosaver, DraftStore
from guided_chat.workflow.catalog import default_registry
from guided_chat.workflow.definitions import Decision, WorkflowDefinition
from guided_chat.workflow.registry import WorkflowRegistry
from guided_chat.workflow.state_machine import (
    StatusChangeCallback,
    StepCompleteCallback,
    WorkflowInstance,
    WorkflowRuntime,
)

logger = logging.getLogger(__name__)


@dataclass
class WorkspaceCallbacks:
    """Host hooks. All optional; return values are ignored."""

    on_step_complete: StepCompleteCallback | None = None
    on_workflow_status_change: StatusChangeCallback | None = None
    on_transport_error: TransportErrorCallback | None = None
    on_quota_exceeded: QuotaExceededCallback | None = None
    on_payload: PayloadCallback | None = None


class AgentWorkspace:
    def __init__(
        self,
        transport: Transport,
        *,
        config: EngineConfig | None = None,
        registry: WorkflowRegistry | None = None,
        callbacks: WorkspaceCallbacks | None = None,
        allowance: GenerationAllowance | None = None,
        paywall_source: str | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.registry = registry or default_registry()
        callbacks = callbacks or WorkspaceCallbacks()

        self.runtime = WorkflowRuntime(
            on_step_complete=callbacks.on_step_complete,
            on_workflow_status_change=callbacks.on_workflow_status_change,
        )
        quality_gate = None
        if self.config.quality.enabled:
            quality_gate = QualityGate(
                transport,
                min_total_score=self.config.quality.min_total_score,
                timeout_seconds=self.config.quality.critic_timeout_seconds,
            )
        self.orchestrator = AgentOrchestrator(
            self.runtime,
            transport,
            quality_gate=quality_gate,
            allowance=allowance,
            paywall_source=paywall_source,
            on_transport_error=callbacks.on_transport_error,
            on_quota_exceeded=callbacks.on_quota_exceeded,
            on_payload=callbacks.on_payload,
        )
        self.timeline: TranscriptTimeline | None = None

    @property
    def definition(self) -> WorkflowDefinition | None:
        return self.runtime.definition

    @property
    def instance(self) -> WorkflowInstance | None:
        return self.runtime.instance

    def draft_store(self, definition: WorkflowDefinition) -> DraftStore | None:
        if not (self.config.drafts.enabled and definition.persist_draft):
            return None
        return DraftStore(self.config.drafts.directory / f"{definition.id}.json")

    def activate(
        self,
        mode: str,
        *,
        launch_context: LaunchContext | None = None,
        workspace_snapshot: str | None = None,
        instance_id: str | None = None,
        resume_draft: bool = True,
    ) -> WorkflowInstance:
        """Start the workflow registered for `mode` in a fresh session.

        Raises:
            UnknownWorkflowError: If no workflow is registered for `mode`.
        """

        definition = self.registry.require(mode)
        if self.runtime.is_active:
            self.deactivate()

        store = self.draft_store(definition)
        autosaver = None
        if store is not None:
            autosaver = DraftAutosaver(store, debounce_seconds=self.config.drafts.debounce_seconds)
        timeline = TranscriptTimeline(self.config.reveal, autosaver=autosaver)

        instance = self.runtime.activate(definition, instance_id)

        restored = False
        if store is not None:
            if resume_draft:
                restored = timeline.restore_draft(store)
            else:
                store.clear()

        if not restored:
            if definition.system_prompt:
                timeline.append_system_message(definition.system_prompt)
            if launch_context is not None or workspace_snapshot:
                context_text = (
                    serialize_launch_context(launch_context, workspace_snapshot)
                    if launch_context is not None
                    else workspace_snapshot
                )
                timeline.append_system_message(context_text)

        self.timeline = timeline
        self.orchestrator.begin_session(
            timeline,
            launch_context_summary=serialize_launch_context(launch_context) if launch_context else None,
            bootstrapped=restored,
        )
        logger.info(
            "Workspace activated",
            extra={"mode": mode, "workflow": definition.id, "restored_draft": restored},
        )
        return instance

    def deactivate(self) -> None:
        if self.timeline is not None:
            self.timeline.close()
        self.orchestrator.end_session()
        self.runtime.deactivate()
        self.timeline = None

    def complete_step(
        self,
        step_id: str,
        collected: Mapping[str, object] | None = None,
        next_step_id_override: str | None = None,
    ) -> WorkflowInstance | None:
        return self.runtime.complete_step(step_id, collected, next_step_id_override)

    def decide(
        self, step_id: str, decision: Decision, collected: Mapping[str, object] | None = None
    ) -> WorkflowInstance | None:
        """Complete a confirm step along its confirm or edit branch."""

        if self.definition is None:
            return None
        target = self.definition.branch_target(step_id, decision)
        return self.runtime.complete_step(step_id, collected, target)

    async def invoke_agent_step(self, step_id: str) -> InvocationResult:
        return await self.orchestrator.invoke_agent_step(step_id)

    async def send_user_message(self, content: str) -> InvocationResult:
        return await self.orchestrator.respond_to_user(content)

    async def bootstrap(self) -> InvocationResult:
        return await self.orchestrator.bootstrap()

    def set_pending_input(self, text: str) -> None:
        if self.timeline is not None:
            self.timeline.set_pending_input(text)

    def pending_payload(self, kind: PayloadKind) -> object | None:
        return self.orchestrator.pending.get(kind)

    def confirm_payload(self, kind: PayloadKind) -> object | None:
        """Hand the pending payload of `kind` to the host and clear its slot."""
        return self.orchestrator.pending.take(kind)

    def skip_reveal(self) -> None:
        if self.timeline is not None:
            self.timeline.skip()

    async def wait_idle(self) -> None:
        if self.timeline is not None:
            await self.timeline.wait_idle()
