"""Workflow definitions, registry and instance state machine."""

from .catalog import default_registry
from .definitions import (
    AgentBehavior,
    InvalidWorkflowDefinitionError,
    StepType,
    WorkflowDefinition,
    WorkflowStep,
    validate_definition,
)
from .registry import UnknownWorkflowError, WorkflowRegistry, launch_config
from .state_machine import (
    StepCompletion,
    WorkflowInstance,
    WorkflowRuntime,
    WorkflowStatus,
    complete_step,
    start_instance,
)

__all__ = [
    "AgentBehavior",
    "InvalidWorkflowDefinitionError",
    "StepCompletion",
    "StepType",
    "UnknownWorkflowError",
    "WorkflowDefinition",
    "WorkflowInstance",
    "WorkflowRegistry",
    "WorkflowRuntime",
    "WorkflowStatus",
    "WorkflowStep",
    "complete_step",
    "default_registry",
    "launch_config",
    "start_instance",
    "validate_definition",
]
