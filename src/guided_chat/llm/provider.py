"""Abstract base class for LLM providers."""

from abc import ABC, abstractmethod
from typing import Any


class TransportError(Exception):
    """A generator call failed.

    Attributes:
        quota_exceeded: True when the upstream service reported that the
            caller ran out of generation quota.
    """

    def __init__(self, message: str, *, quota_exceeded: bool = False) -> None:
        super().__init__(message)
        self.quota_exceeded = quota_exceeded


class QuotaExceededError(TransportError):
    """The upstream service refused the call because quota is exhausted."""

    def __init__(self, message: str = "Generation quota exceeded") -> None:
        super().__init__(message, quota_exceeded=True)


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    This interface allows pluggable LLM backends (OpenAI, LLaMA, etc.)
    """

    @abstractmethod
    def chat(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> str:
        """Generate chat completion from messages.

        Args:
            messages: List of message dicts with 'role' and 'content'.
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature.
            **kwargs: Additional provider-specific parameters.

        Returns:
            Generated chat response.

        Raises:
            QuotaExceededError: If the provider reports exhausted quota.
            TransportError: For any other provider failure.
        """
        pass

    @abstractmethod
    def count_tokens(self, text: str) -> int:
        """Count the number of tokens in text.

        Args:
            text: Text to count tokens for.

        Returns:
            Number of tokens.
        """
        pass
