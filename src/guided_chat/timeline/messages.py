"""Transcript message types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Role = Literal["assistant", "user", "system"]


@dataclass(slots=True)
class ChatMessage:
    """One transcript entry.

    `content` only changes while a reveal is writing into the message. System
    messages are hidden from the visible timeline but are part of the history
    sent to the generator.
    """

    id: str
    role: Role
    content: str
    seq: int = 0

    def to_turn(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True, slots=True)
class TimelineItem:
    index: int
    message_id: str
    role: Role
    content: str
