"""Read-only entitlement seam queried before every generator call."""

from __future__ import annotations

from typing import Protocol


class GenerationAllowance(Protocol):
    def can_generate(self) -> bool: ...


class AlwaysAllow:
    def can_generate(self) -> bool:
        return True
