"""Agent invocation: context assembly, transport call, reply routing.

One orchestrator serves the active workflow session of a workspace. Results
that arrive after the session changed (deactivated, reactivated or the
timeline replaced) are dropped instead of written into the new session.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from guided_chat.handoff.parser import ParsedReply, PayloadKind, PendingPayloads, parse_handoff
from guided_chat.llm.transport import Transport, TransportMetadata, is_quota_exceeded
from guided_chat.quality.critic import QualityGate
from guided_chat.timeline.controller import TranscriptTimeline
from guided_chat.workflow.definitions import WorkflowStep
from guided_chat.workflow.state_machine import WorkflowRuntime

from .context import build_step_instruction, summarize_collected_data
from .entitlements import AlwaysAllow, GenerationAllowance

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = (
    "I'm having trouble responding right now. Try again in a moment, and if it "
    "keeps happening you can check your connection in Settings."
)

_CHAT_FLIGHT_KEY = "__chat__"
_BOOTSTRAP_FLIGHT_KEY = "__bootstrap__"


class InvocationStatus(str, Enum):
    DELIVERED = "delivered"
    SKIPPED = "skipped"
    IN_FLIGHT = "in_flight"
    STALE = "stale"
    QUOTA_EXCEEDED = "quota_exceeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class InvocationResult:
    status: InvocationStatus
    step_id: str | None = None
    message_id: str | None = None
    visible_text: str | None = None
    payload: object | None = None
    kind: PayloadKind | None = None
    used_fallback: bool = False
    error: BaseException | None = None


TransportErrorCallback = Callable[[BaseException], None]
QuotaExceededCallback = Callable[[str | None], None]
PayloadCallback = Callable[[PayloadKind, object], None]


@dataclass(slots=True)
class _Session:
    timeline: TranscriptTimeline
    session_id: str | None
    launch_context_summary: str | None = None
    bootstrapped: bool = False
    suppressed: bool = False
    in_flight: set[str] = field(default_factory=set)


class AgentOrchestrator:
    """Drives generator calls for the active workflow of a `WorkflowRuntime`.

    Calls are single-flight per step id: a second `invoke_agent_step` for a
    step that is still waiting on the transport returns `IN_FLIGHT` without
    sending anything. Free-form chat and the opening bootstrap reply have
    their own flight slots.
    """

    def __init__(
        self,
        runtime: WorkflowRuntime,
        transport: Transport,
        *,
        quality_gate: QualityGate | None = None,
        allowance: GenerationAllowance | None = None,
        pending: PendingPayloads | None = None,
        paywall_source: str | None = None,
        on_transport_error: TransportErrorCallback | None = None,
        on_quota_exceeded: QuotaExceededCallback | None = None,
        on_payload: PayloadCallback | None = None,
    ) -> None:
        self.runtime = runtime
        self.transport = transport
        self.quality_gate = quality_gate
        self.allowance: GenerationAllowance = allowance or AlwaysAllow()
        self.pending = pending or PendingPayloads()
        self.paywall_source = paywall_source
        self.on_transport_error = on_transport_error
        self.on_quota_exceeded = on_quota_exceeded
        self.on_payload = on_payload
        self._session: _Session | None = None

    @property
    def timeline(self) -> TranscriptTimeline | None:
        return self._session.timeline if self._session else None

    @property
    def generation_suppressed(self) -> bool:
        return self._session is not None and self._session.suppressed

    @property
    def bootstrapped(self) -> bool:
        return self._session is not None and self._session.bootstrapped

    def in_flight(self, step_id: str) -> bool:
        return self._session is not None and step_id in self._session.in_flight

    def begin_session(
        self,
        timeline: TranscriptTimeline,
        *,
        launch_context_summary: str | None = None,
        bootstrapped: bool = False,
    ) -> None:
        """Bind a timeline to the runtime's current session."""

        self._session = _Session(
            timeline=timeline,
            session_id=self.runtime.session_id,
            launch_context_summary=launch_context_summary,
            bootstrapped=bootstrapped,
        )
        self.pending.clear()

    def end_session(self) -> None:
        self._session = None
        self.pending.clear()

    async def invoke_agent_step(self, step_id: str) -> InvocationResult:
        """Generate the assistant turn for `step_id`.

        Never raises. Transport failures are reported through the result and
        the host callbacks.
        """

        session = self._session
        definition, instance = self.runtime.definition, self.runtime.instance
        if session is None or definition is None or instance is None:
            logger.debug("invoke_agent_step ignored: no active workflow", extra={"step": step_id})
            return InvocationResult(InvocationStatus.SKIPPED, step_id=step_id)
        if session.suppressed:
            return InvocationResult(InvocationStatus.SKIPPED, step_id=step_id)
        if step_id in session.in_flight:
            logger.info("Agent step already in flight", extra={"step": step_id})
            return InvocationResult(InvocationStatus.IN_FLIGHT, step_id=step_id)

        step = definition.get_step(step_id)
        turns = self._context_turns(session, step)

        if step is not None and step.agent_behavior and step.agent_behavior.loading_message:
            session.timeline.upsert_assistant_message(step.loading_message_id, step.agent_behavior.loading_message)

        return await self._generate(session, turns, flight_key=step_id, step_id=step_id, step=step)

    async def respond_to_user(self, content: str) -> InvocationResult:
        """Append a user message and generate a free-form reply to it.

        While a chat reply is pending, or generation is suppressed, the message
        is not recorded; the caller keeps it and may send it again.
        """

        session = self._session
        if session is None or not self.runtime.is_active:
            return InvocationResult(InvocationStatus.SKIPPED)
        if not content.strip() or session.suppressed:
            return InvocationResult(InvocationStatus.SKIPPED)
        if _CHAT_FLIGHT_KEY in session.in_flight:
            logger.info("Chat reply already in flight; message not recorded")
            return InvocationResult(InvocationStatus.IN_FLIGHT)

        session.timeline.append_user_message(content.strip())
        step_id = self.runtime.instance.current_step_id
        turns = self._context_turns(session, None)
        return await self._generate(session, turns, flight_key=_CHAT_FLIGHT_KEY, step_id=step_id, step=None)

    async def bootstrap(self) -> InvocationResult:
        """Opening assistant reply, at most once per session."""

        session = self._session
        definition = self.runtime.definition
        if session is None or definition is None or self.runtime.instance is None:
            return InvocationResult(InvocationStatus.SKIPPED)
        if session.bootstrapped or not definition.auto_bootstrap_first_message:
            return InvocationResult(InvocationStatus.SKIPPED)
        if session.suppressed:
            return InvocationResult(InvocationStatus.SKIPPED)

        session.bootstrapped = True
        step = self.runtime.current_step
        turns = self._context_turns(session, step)
        return await self._generate(
            session,
            turns,
            flight_key=_BOOTSTRAP_FLIGHT_KEY,
            step_id=step.id if step else None,
            step=None,
        )

    def _context_turns(self, session: _Session, step: WorkflowStep | None) -> list[dict[str, str]]:
        turns = session.timeline.get_history()
        summary = summarize_collected_data(self.runtime.instance.collected_data)
        if summary:
            turns.append({"role": "system", "content": summary})
        if step is not None:
            instruction = build_step_instruction(step)
            if instruction:
                turns.append({"role": "system", "content": instruction})
        return turns

    def _metadata(self, session: _Session, step_id: str | None) -> TransportMetadata:
        definition, instance = self.runtime.definition, self.runtime.instance
        return TransportMetadata(
            mode=definition.chat_mode,
            workflow_definition_id=definition.id,
            workflow_instance_id=instance.id,
            workflow_step_id=step_id,
            launch_context_summary=session.launch_context_summary,
            paywall_source=self.paywall_source,
        )

    def _is_stale(self, session: _Session) -> bool:
        return (
            self._session is not session
            or self.runtime.session_id != session.session_id
            or session.timeline.closed
        )

    async def _generate(
        self,
        session: _Session,
        turns: list[dict[str, str]],
        *,
        flight_key: str,
        step_id: str | None,
        step: WorkflowStep | None,
    ) -> InvocationResult:
        definition = self.runtime.definition
        metadata = self._metadata(session, step_id)

        if not self.allowance.can_generate():
            return self._quota_exceeded(session, step_id, None)

        session.in_flight.add(flight_key)
        try:
            try:
                raw = await self.transport.send(turns, metadata)
            except Exception as e:
                if self._is_stale(session):
                    logger.info("Dropping failure from a previous session", extra={"step": step_id})
                    return InvocationResult(InvocationStatus.STALE, step_id=step_id, error=e)
                if is_quota_exceeded(e):
                    return self._quota_exceeded(session, step_id, e)
                return self._transport_failed(session, step_id, e)

            if self._is_stale(session):
                logger.info("Dropping reply from a previous session", extra={"step": step_id})
                return InvocationResult(InvocationStatus.STALE, step_id=step_id)

            parsed = parse_handoff(raw, default_kind=definition.handoff_kind)
            payload, used_fallback = parsed.payload, False

            if payload is not None and step is not None and step.quality_gate and self.quality_gate:
                verdict = await self.quality_gate.review(payload, self.runtime.instance.collected_data, metadata)
                if self._is_stale(session):
                    return InvocationResult(InvocationStatus.STALE, step_id=step_id)
                payload, used_fallback = verdict.payload, verdict.used_fallback

            return self._deliver(session, parsed, payload, used_fallback, step_id)
        finally:
            session.in_flight.discard(flight_key)

    def _deliver(
        self,
        session: _Session,
        parsed: ParsedReply,
        payload: object | None,
        used_fallback: bool,
        step_id: str | None,
    ) -> InvocationResult:
        kind = parsed.kind
        if payload is not None and kind is not None:
            self.pending.replace(kind, payload)

        def on_done() -> None:
            if payload is None or kind is None or self.on_payload is None:
                return
            try:
                self.on_payload(kind, payload)
            except Exception:
                logger.exception("on_payload callback failed")

        base_id = f"assistant-{step_id}" if step_id else "assistant"
        message_id = session.timeline.stream_assistant_reply(parsed.visible_text, base_id, on_done=on_done)
        logger.info(
            "Agent reply delivered",
            extra={
                "step": step_id,
                "has_payload": payload is not None,
                "kind": kind.value if kind else None,
                "used_fallback": used_fallback,
            },
        )
        return InvocationResult(
            InvocationStatus.DELIVERED,
            step_id=step_id,
            message_id=message_id,
            visible_text=parsed.visible_text,
            payload=payload,
            kind=kind,
            used_fallback=used_fallback,
        )

    def _quota_exceeded(
        self, session: _Session, step_id: str | None, error: BaseException | None
    ) -> InvocationResult:
        session.suppressed = True
        logger.warning("Generation quota exceeded; suppressing further calls", extra={"step": step_id})
        if self.on_quota_exceeded is not None:
            try:
                self.on_quota_exceeded(self.paywall_source)
            except Exception:
                logger.exception("on_quota_exceeded callback failed")
        return InvocationResult(InvocationStatus.QUOTA_EXCEEDED, step_id=step_id, error=error)

    def _transport_failed(self, session: _Session, step_id: str | None, error: BaseException) -> InvocationResult:
        logger.error("Agent transport failed", extra={"step": step_id, "error": str(error)})
        message = session.timeline.append_assistant_message(APOLOGY_MESSAGE)
        if self.on_transport_error is not None:
            try:
                self.on_transport_error(error)
            except Exception:
                logger.exception("on_transport_error callback failed")
        return InvocationResult(
            InvocationStatus.FAILED,
            step_id=step_id,
            message_id=message.id,
            error=error,
        )
