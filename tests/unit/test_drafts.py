"""Unit tests for draft persistence."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from guided_chat.core.config import RevealConfig
from guided_chat.timeline.controller import TranscriptTimeline
from guided_chat.timeline.drafts import ChatDraft, DraftAutosaver, DraftMessage, DraftStore


def test_save_writes_aliased_json(tmp_path: Path) -> None:
    store = DraftStore(tmp_path / "drafts" / "arcCreation.json")
    draft = ChatDraft(
        messages=[DraftMessage(id="user-0", role="user", content="hi")],
        pending_input="more",
    )

    store.save(draft)

    raw = json.loads(store.path.read_text(encoding="utf-8"))
    assert raw["pendingInput"] == "more"
    assert "updatedAt" in raw
    assert raw["messages"] == [{"id": "user-0", "role": "user", "content": "hi"}]

    loaded = store.load()
    assert loaded is not None
    assert loaded.pending_input == "more"
    assert loaded.messages[0].content == "hi"


def test_load_accepts_legacy_input_key(tmp_path: Path) -> None:
    path = tmp_path / "draft.json"
    path.write_text(json.dumps({"messages": [], "input": "half typed"}), encoding="utf-8")

    draft = DraftStore(path).load()

    assert draft is not None
    assert draft.pending_input == "half typed"


def test_load_ignores_corrupt_file(tmp_path: Path) -> None:
    path = tmp_path / "draft.json"
    path.write_text("{not json", encoding="utf-8")

    assert DraftStore(path).load() is None
    assert DraftStore(tmp_path / "missing.json").load() is None


def test_saving_empty_draft_deletes_slot(tmp_path: Path) -> None:
    store = DraftStore(tmp_path / "draft.json")
    store.save(ChatDraft(pending_input="x"))
    assert store.path.exists()

    store.save(ChatDraft(pending_input="   "))

    assert not store.path.exists()


def test_restorable_rules() -> None:
    system_only = ChatDraft(messages=[DraftMessage(id="s", role="system", content="prompt")])
    with_user = ChatDraft(messages=[DraftMessage(id="u", role="user", content="hi")])

    assert not system_only.is_empty
    assert not system_only.is_restorable
    assert with_user.is_restorable
    assert ChatDraft(pending_input="typed").is_restorable


def test_schedule_without_loop_writes_immediately(tmp_path: Path) -> None:
    store = DraftStore(tmp_path / "draft.json")
    autosaver = DraftAutosaver(store, debounce_seconds=10)

    autosaver.schedule(lambda: ChatDraft(pending_input="now"))

    assert store.load().pending_input == "now"
    assert not autosaver.pending


@pytest.mark.asyncio
async def test_autosave_is_debounced(tmp_path: Path) -> None:
    store = DraftStore(tmp_path / "draft.json")
    autosaver = DraftAutosaver(store, debounce_seconds=0.05)
    snapshots: list[str] = []

    def snapshot(text: str):
        def take() -> ChatDraft:
            snapshots.append(text)
            return ChatDraft(pending_input=text)

        return take

    for text in ("a", "ab", "abc"):
        autosaver.schedule(snapshot(text))
    assert autosaver.pending
    assert not store.path.exists()

    await asyncio.sleep(0.15)

    assert snapshots == ["abc"]
    assert store.load().pending_input == "abc"


@pytest.mark.asyncio
async def test_cancel_drops_pending_write(tmp_path: Path) -> None:
    store = DraftStore(tmp_path / "draft.json")
    autosaver = DraftAutosaver(store, debounce_seconds=0.01)

    autosaver.schedule(lambda: ChatDraft(pending_input="x"))
    autosaver.cancel()
    await asyncio.sleep(0.05)

    assert not store.path.exists()


@pytest.mark.asyncio
async def test_timeline_restores_draft(tmp_path: Path, fast_reveal: RevealConfig) -> None:
    store = DraftStore(tmp_path / "draft.json")
    store.save(
        ChatDraft(
            messages=[
                DraftMessage(id="system-0", role="system", content="prompt"),
                DraftMessage(id="user-1", role="user", content="I like pottery"),
                DraftMessage(id="assistant-reply-1", role="assistant", content="Nice."),
            ],
            pending_input="and",
        )
    )
    timeline = TranscriptTimeline(fast_reveal)

    assert timeline.restore_draft(store) is True

    assert [m.id for m in timeline.messages] == ["system-0", "user-1", "assistant-reply-1"]
    assert timeline.pending_input == "and"
    message_id = timeline.stream_assistant_reply("Next.")
    await timeline.wait_idle()
    assert message_id == "assistant-reply-2"


def test_timeline_discards_system_only_draft(tmp_path: Path) -> None:
    store = DraftStore(tmp_path / "draft.json")
    store.save(ChatDraft(messages=[DraftMessage(id="system-0", role="system", content="prompt")]))
    timeline = TranscriptTimeline()

    assert timeline.restore_draft(store) is False

    assert timeline.messages == []
    assert not store.path.exists()


@pytest.mark.asyncio
async def test_close_flushes_pending_draft(tmp_path: Path, slow_reveal: RevealConfig) -> None:
    store = DraftStore(tmp_path / "draft.json")
    timeline = TranscriptTimeline(slow_reveal, autosaver=DraftAutosaver(store, debounce_seconds=60))
    timeline.append_user_message("hello")
    timeline.stream_assistant_reply("whole answer")

    timeline.close()

    saved = store.load()
    assert [m.content for m in saved.messages] == ["hello", "whole answer"]


def test_load_ignores_non_utf8_file(tmp_path: Path) -> None:
    path = tmp_path / "arcCreation.json"
    path.write_bytes(b'{"messages": [], "pendingInput": "\xff\xfe"}')

    assert DraftStore(path).load() is None


def test_timeline_survives_undecodable_draft(tmp_path: Path) -> None:
    store = DraftStore(tmp_path / "arcCreation.json")
    store.path.write_bytes(b"\xff")
    timeline = TranscriptTimeline()

    assert timeline.restore_draft(store) is False
    assert timeline.messages == []
