"""Transcript timeline, reveal scheduler and draft persistence."""

from .controller import TranscriptTimeline
from .drafts import ChatDraft, DraftAutosaver, DraftMessage, DraftStore
from .messages import ChatMessage, TimelineItem
from .reveal import RevealOutcome, RevealScheduler, paragraph_pause_points

__all__ = [
    "ChatDraft",
    "ChatMessage",
    "DraftAutosaver",
    "DraftMessage",
    "DraftStore",
    "RevealOutcome",
    "RevealScheduler",
    "TimelineItem",
    "TranscriptTimeline",
    "paragraph_pause_points",
]
