"""Agent invocation orchestration."""

from .agent import APOLOGY_MESSAGE, AgentOrchestrator, InvocationResult, InvocationStatus
from .context import (
    EntityRef,
    LaunchContext,
    build_step_instruction,
    serialize_launch_context,
    summarize_collected_data,
)
from .entitlements import AlwaysAllow, GenerationAllowance

__all__ = [
    "APOLOGY_MESSAGE",
    "AgentOrchestrator",
    "AlwaysAllow",
    "EntityRef",
    "GenerationAllowance",
    "InvocationResult",
    "InvocationStatus",
    "LaunchContext",
    "build_step_instruction",
    "serialize_launch_context",
    "summarize_collected_data",
]
