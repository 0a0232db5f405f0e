"""Paragraph-aware character reveal ("typing" animation).

The scheduler never computes text. It only decides how much of an already
known string is visible and pushes that prefix to a writer callback on an
asyncio timer.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable
from enum import Enum

from guided_chat.core.config import RevealConfig

logger = logging.getLogger(__name__)

_PARAGRAPH_BREAK_RE = re.compile(r"(?:\r?\n)\s*(?:\r?\n)")


class RevealOutcome(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


def paragraph_pause_points(text: str) -> list[int]:
    """Offsets right after each blank-line run, excluding the end of the text."""

    points: list[int] = []
    for match in _PARAGRAPH_BREAK_RE.finditer(text):
        end = match.end()
        if 0 < end < len(text) and (not points or end > points[-1]):
            points.append(end)
    return points


class RevealScheduler:
    """Reveal `full_text` into a writer in fixed increments with paragraph pauses.

    Args:
        full_text: The text to reveal. Never changes during the reveal.
        write: Called with the visible prefix after every advance.
        config: Tick size and timings.
        on_done: Fired exactly once, on natural completion or on `skip()`.
            Never fired after `cancel()`.
    """

    def __init__(
        self,
        full_text: str,
        write: Callable[[str], None],
        *,
        config: RevealConfig | None = None,
        on_done: Callable[[], None] | None = None,
    ) -> None:
        self.full_text = full_text
        self.config = config or RevealConfig()
        self._write = write
        self._on_done = on_done
        self._pause_points = paragraph_pause_points(full_text)
        self._next_pause = 0
        self._handle: asyncio.TimerHandle | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

        self.revealed = 0
        self.used_pause_points: list[int] = []
        self.cancelled = False
        self.done = False
        self.finished: asyncio.Future[RevealOutcome] | None = None

    @property
    def is_active(self) -> bool:
        return self.finished is not None and not self.done

    def start(self) -> asyncio.Future[RevealOutcome]:
        """Schedule the first tick on the running loop."""

        if self.finished is not None:
            return self.finished
        self._loop = asyncio.get_running_loop()
        self.finished = self._loop.create_future()
        self._schedule(self.config.initial_delay_seconds)
        return self.finished

    def skip(self) -> None:
        """Jump straight to the full text and fire `on_done`."""

        if self.done:
            return
        self._cancel_timer()
        self.revealed = len(self.full_text)
        self._write(self.full_text)
        self._finish(RevealOutcome.SKIPPED)

    def cancel(self) -> None:
        """Stop without writing again and without firing `on_done`."""

        if self.done:
            return
        self.cancelled = True
        self._cancel_timer()
        self.done = True
        if self.finished is not None and not self.finished.done():
            self.finished.set_result(RevealOutcome.CANCELLED)

    def _schedule(self, delay: float) -> None:
        if self._loop is None:
            raise RuntimeError("RevealScheduler.start() has not been called")
        self._handle = self._loop.call_later(delay, self._tick)

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _tick(self) -> None:
        self._handle = None
        if self.cancelled or self.done:
            return

        total = len(self.full_text)
        target = min(self.revealed + self.config.chars_per_tick, total)
        pause_at: int | None = None
        if self._next_pause < len(self._pause_points):
            boundary = self._pause_points[self._next_pause]
            if self.revealed < boundary <= target:
                pause_at = boundary

        if pause_at is not None:
            target = pause_at
            self._next_pause += 1
            self.used_pause_points.append(pause_at)

        self.revealed = target
        self._write(self.full_text[:target])

        if self.revealed >= total:
            self._finish(RevealOutcome.COMPLETED)
            return
        if pause_at is not None:
            self._schedule(self.config.paragraph_pause_seconds)
        else:
            self._schedule(self.config.tick_seconds)

    def _finish(self, outcome: RevealOutcome) -> None:
        self.done = True
        if self._on_done is not None:
            try:
                self._on_done()
            except Exception:
                logger.exception("Reveal on_done callback failed")
        if self.finished is not None and not self.finished.done():
            self.finished.set_result(outcome)
