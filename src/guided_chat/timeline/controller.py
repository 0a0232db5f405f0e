"""Shared transcript for one workflow session.

Hidden system turns and visible user/assistant turns live in one ordered
list. Assistant replies are revealed progressively by `RevealScheduler`; the
list is append-only apart from content growth during a reveal and stable-id
upserts of status messages.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable

from guided_chat.core.config import RevealConfig

from .drafts import ChatDraft, DraftAutosaver, DraftMessage, DraftStore
from .messages import ChatMessage, Role, TimelineItem
from .reveal import RevealScheduler

logger = logging.getLogger(__name__)


class TranscriptTimeline:
    def __init__(
        self,
        reveal_config: RevealConfig | None = None,
        *,
        autosaver: DraftAutosaver | None = None,
    ) -> None:
        self.reveal_config = reveal_config or RevealConfig()
        self.autosaver = autosaver
        self._messages: list[ChatMessage] = []
        self._pending_input = ""
        self._reveals: dict[str, RevealScheduler] = {}
        self._seq = itertools.count()
        self._reply_counter = itertools.count(1)
        self._closed = False

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def pending_input(self) -> str:
        return self._pending_input

    @property
    def is_revealing(self) -> bool:
        return any(r.is_active for r in self._reveals.values())

    @property
    def closed(self) -> bool:
        return self._closed

    def find(self, message_id: str) -> ChatMessage | None:
        for message in self._messages:
            if message.id == message_id:
                return message
        return None

    def _append(self, role: Role, content: str, message_id: str | None = None) -> ChatMessage:
        seq = next(self._seq)
        message = ChatMessage(id=message_id or f"{role}-{seq}", role=role, content=content, seq=seq)
        self._messages.append(message)
        self._changed()
        return message

    def append_user_message(self, content: str) -> ChatMessage:
        return self._append("user", content)

    def append_system_message(self, content: str) -> ChatMessage:
        return self._append("system", content)

    def append_assistant_message(self, content: str, message_id: str | None = None) -> ChatMessage:
        return self._append("assistant", content, message_id)

    def upsert_assistant_message(self, message_id: str, content: str) -> ChatMessage:
        """Replace the content of `message_id` in place, or append it."""

        existing = self.find(message_id)
        if existing is None:
            return self._append("assistant", content, message_id)
        existing.content = content
        self._changed()
        return existing

    def set_pending_input(self, text: str) -> None:
        if text == self._pending_input:
            return
        self._pending_input = text
        self._changed()

    def stream_assistant_reply(
        self,
        full_text: str,
        base_id: str = "assistant-reply",
        on_done: Callable[[], None] | None = None,
    ) -> str | None:
        """Append an empty assistant message and reveal `full_text` into it.

        Must be called from a running event loop. Returns the new message id,
        or None when nothing was appended (blank text or a closed timeline).
        """

        if self._closed:
            logger.debug("stream_assistant_reply ignored: timeline closed")
            return None
        if not full_text.strip():
            if on_done is not None:
                on_done()
            return None

        message_id = f"{base_id}-{next(self._reply_counter)}"
        while self.find(message_id) is not None:
            message_id = f"{base_id}-{next(self._reply_counter)}"
        message = self._append("assistant", "", message_id)

        def write(visible: str) -> None:
            message.content = visible
            self._changed()

        def finished() -> None:
            self._reveals.pop(message_id, None)
            if on_done is not None:
                on_done()

        reveal = RevealScheduler(full_text, write, config=self.reveal_config, on_done=finished)
        self._reveals[message_id] = reveal
        reveal.start()
        return message_id

    def skip(self) -> None:
        """Finish every running reveal immediately."""

        for reveal in list(self._reveals.values()):
            reveal.skip()

    async def wait_idle(self) -> None:
        futures = [r.finished for r in self._reveals.values() if r.finished is not None]
        if futures:
            await asyncio.gather(*futures)

    def get_history(self) -> list[dict[str, str]]:
        return [m.to_turn() for m in self._messages]

    def get_timeline(self) -> list[TimelineItem]:
        return [
            TimelineItem(index=m.seq, message_id=m.id, role=m.role, content=m.content)
            for m in self._messages
            if m.role != "system"
        ]

    def snapshot(self) -> ChatDraft:
        """Draft of the current state; running reveals are saved at full length."""

        return ChatDraft(
            messages=[
                DraftMessage(
                    id=m.id,
                    role=m.role,
                    content=self._reveals[m.id].full_text if m.id in self._reveals else m.content,
                )
                for m in self._messages
            ],
            pending_input=self._pending_input,
        )

    def restore_draft(self, store: DraftStore) -> bool:
        """Load a saved draft into this (empty) timeline.

        Drafts with no visible message and no pending input are deleted instead.
        """

        draft = store.load()
        if draft is None:
            return False
        if not draft.is_restorable:
            logger.info("Discarding empty draft", extra={"path": str(store.path)})
            store.clear()
            return False

        for saved in draft.messages:
            seq = next(self._seq)
            self._messages.append(ChatMessage(id=saved.id, role=saved.role, content=saved.content, seq=seq))
        self._pending_input = draft.pending_input
        logger.info(
            "Restored draft",
            extra={"path": str(store.path), "messages": len(draft.messages)},
        )
        return True

    def close(self, *, flush_draft: bool = True) -> None:
        """Tear down: stop every reveal and settle the pending draft write."""

        if self._closed:
            return
        if self.autosaver is not None:
            if flush_draft:
                self.autosaver.flush()
            else:
                self.autosaver.cancel()
        self._closed = True
        for reveal in list(self._reveals.values()):
            reveal.cancel()
        self._reveals.clear()

    def _changed(self) -> None:
        if self.autosaver is not None and not self._closed:
            self.autosaver.schedule(self.snapshot)
