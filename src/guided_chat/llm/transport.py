"""Async transport seam between the engine and a generative-AI service.

The engine only ever sees `Transport.send(turns, metadata) -> str`. Everything
provider-specific (SDKs, threads, context windows) stays behind this seam.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Protocol

from guided_chat.llm.provider import LLMProvider, QuotaExceededError, TransportError

logger = logging.getLogger(__name__)

# Lower-cased fragments that mark a quota failure even when the upstream
# error carries no explicit flag.
QUOTA_ERROR_MARKERS: tuple[str, ...] = (
    "quota_exceeded",
    "quota exceeded",
    "insufficient_quota",
    "generative_quota_exceeded",
)


@dataclass(frozen=True, slots=True)
class TransportMetadata:
    """Request metadata forwarded with every generator call."""

    mode: str | None = None
    workflow_definition_id: str | None = None
    workflow_instance_id: str | None = None
    workflow_step_id: str | None = None
    launch_context_summary: str | None = None
    paywall_source: str | None = None

    def to_json(self) -> dict[str, object]:
        return {key: value for key, value in asdict(self).items() if value is not None}


class Transport(Protocol):
    """Sends ordered chat turns to the generator and returns plain text."""

    async def send(
        self, turns: Sequence[dict[str, str]], metadata: TransportMetadata
    ) -> str: ...


def is_quota_exceeded(error: BaseException) -> bool:
    """Classify a transport failure as quota-exceeded or generic."""

    if isinstance(error, QuotaExceededError):
        return True
    if getattr(error, "quota_exceeded", False) is True:
        return True
    message = str(error).lower()
    return any(marker in message for marker in QUOTA_ERROR_MARKERS)


def window_history(
    turns: Sequence[dict[str, str]], *, recent_turns_max: int = 16
) -> list[dict[str, str]]:
    """Trim a transcript to what the model should see on one request.

    Blank turns are dropped. System turns (workflow prompt, launch context,
    collected data) are always kept and come first, followed by the most recent
    `recent_turns_max` user/assistant turns in their original order.
    """

    normalized = [
        {"role": turn["role"], "content": turn["content"].strip()}
        for turn in turns
        if isinstance(turn.get("content"), str) and turn["content"].strip()
    ]
    system_turns = [t for t in normalized if t["role"] == "system"]
    other_turns = [t for t in normalized if t["role"] != "system"]
    recent = other_turns[-recent_turns_max:] if recent_turns_max > 0 else []
    return [*system_turns, *recent]


class ProviderTransport:
    """Adapt a blocking `LLMProvider` to the async `Transport` protocol."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        system_prompt: str | None = None,
        history_window: int | None = 16,
    ) -> None:
        self.provider = provider
        self.system_prompt = system_prompt
        self.history_window = history_window

    def build_messages(self, turns: Sequence[dict[str, str]]) -> list[dict[str, str]]:
        if self.history_window is None:
            messages = [dict(t) for t in turns]
        else:
            messages = window_history(turns, recent_turns_max=self.history_window)
        if self.system_prompt:
            messages.insert(0, {"role": "system", "content": self.system_prompt})
        return messages

    async def send(self, turns: Sequence[dict[str, str]], metadata: TransportMetadata) -> str:
        messages = self.build_messages(turns)
        logger.info(
            "Sending chat request",
            extra={"turns": len(messages), **metadata.to_json()},
        )
        try:
            return await asyncio.to_thread(self.provider.chat, messages)
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(f"Provider call failed: {e}") from e
