"""Read-only lookup of workflow definitions by chat mode."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from .definitions import WorkflowDefinition, validate_definition

logger = logging.getLogger(__name__)


class UnknownWorkflowError(KeyError):
    pass


class WorkflowRegistry:
    """Maps chat modes to immutable workflow definitions.

    Definitions are validated when registered. The registry hands out the same
    definition objects it holds; definitions are frozen so callers cannot
    change them.
    """

    def __init__(self, definitions: Iterable[WorkflowDefinition] = ()) -> None:
        self._by_mode: dict[str, WorkflowDefinition] = {}
        for definition in definitions:
            self.register(definition)

    def register(self, definition: WorkflowDefinition) -> None:
        validate_definition(definition)
        if definition.chat_mode in self._by_mode:
            raise ValueError(f"Workflow already registered for mode: {definition.chat_mode}")
        if self.by_id(definition.id) is not None:
            raise ValueError(f"Duplicate workflow id: {definition.id}")
        self._by_mode[definition.chat_mode] = definition
        logger.debug(
            "Registered workflow",
            extra={"workflow": definition.id, "mode": definition.chat_mode},
        )

    def get(self, mode: str) -> WorkflowDefinition | None:
        return self._by_mode.get(mode)

    def require(self, mode: str) -> WorkflowDefinition:
        definition = self._by_mode.get(mode)
        if definition is None:
            raise UnknownWorkflowError(mode)
        return definition

    def by_id(self, definition_id: str) -> WorkflowDefinition | None:
        for definition in self._by_mode.values():
            if definition.id == definition_id:
                return definition
        return None

    def modes(self) -> list[str]:
        return list(self._by_mode)

    def __iter__(self) -> Iterator[WorkflowDefinition]:
        return iter(self._by_mode.values())

    def __len__(self) -> int:
        return len(self._by_mode)

    def __contains__(self, mode: object) -> bool:
        return mode in self._by_mode


def launch_config(registry: WorkflowRegistry, mode: str) -> tuple[str, str]:
    """Return the ``(mode, definition_id)`` pair a host should launch with."""

    definition = registry.require(mode)
    return definition.chat_mode, definition.id
