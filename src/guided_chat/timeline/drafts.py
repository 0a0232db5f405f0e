"""Single-slot draft persistence for a transcript.

One JSON file per workflow kind holds ``{messages, pendingInput, updatedAt}``.
The slot is overwritten wholesale on every save and deleted when the draft is
empty.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .messages import Role

logger = logging.getLogger(__name__)


def _utc_iso_now() -> str:
    return datetime.now(tz=UTC).isoformat()


class DraftMessage(BaseModel):
    id: str
    role: Role
    content: str


class ChatDraft(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    messages: list[DraftMessage] = Field(default_factory=list)
    pending_input: str = Field(
        default="",
        validation_alias=AliasChoices("pendingInput", "input", "pending_input"),
        serialization_alias="pendingInput",
    )
    updated_at: str = Field(
        default_factory=_utc_iso_now,
        validation_alias=AliasChoices("updatedAt", "updated_at"),
        serialization_alias="updatedAt",
    )

    @property
    def is_empty(self) -> bool:
        return not self.messages and not self.pending_input.strip()

    @property
    def is_restorable(self) -> bool:
        """True when the draft holds something the user actually typed or saw."""
        has_visible = any(m.role != "system" for m in self.messages)
        return has_visible or bool(self.pending_input.strip())


@dataclass
class DraftStore:
    path: Path

    def load(self) -> ChatDraft | None:
        if not self.path.exists():
            return None
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return ChatDraft.model_validate(raw)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Ignoring unreadable draft", extra={"path": str(self.path), "error": str(e)})
            return None

    def save(self, draft: ChatDraft | None) -> None:
        if draft is None or draft.is_empty:
            self.clear()
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = draft.model_dump(mode="json", by_alias=True)
        self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class DraftAutosaver:
    """Debounce draft writes: each change reschedules a single pending write.

    The snapshot is taken when the write fires, so the latest state wins.
    """

    def __init__(self, store: DraftStore, *, debounce_seconds: float = 0.75) -> None:
        self.store = store
        self.debounce_seconds = debounce_seconds
        self._handle: asyncio.TimerHandle | None = None
        self._snapshot: Callable[[], ChatDraft | None] | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, snapshot: Callable[[], ChatDraft | None]) -> None:
        self._snapshot = snapshot
        self._cancel_timer()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Outside an event loop there is nothing to debounce against.
            self.flush()
            return
        self._handle = loop.call_later(self.debounce_seconds, self.flush)

    def flush(self) -> None:
        self._cancel_timer()
        if self._snapshot is None:
            return
        snapshot, self._snapshot = self._snapshot, None
        try:
            self.store.save(snapshot())
        except OSError:
            logger.exception("Failed to write draft", extra={"path": str(self.store.path)})

    def cancel(self) -> None:
        self._cancel_timer()
        self._snapshot = None

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
