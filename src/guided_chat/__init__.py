"""Guided chat.

A guided-conversation engine for multi-step, AI-assisted workflows:
- a workflow step state machine
- a shared transcript with paragraph-aware reveal and draft persistence
- a fail-open parser for JSON proposals embedded in generator prose
- a critic-based quality gate with a deterministic fallback
"""

__version__ = "0.1.0"

from guided_chat.core.config import EngineConfig
from guided_chat.workspace import AgentWorkspace, WorkspaceCallbacks

__all__ = ["__version__", "AgentWorkspace", "EngineConfig", "WorkspaceCallbacks"]
