"""OpenAI LLM provider implementation."""

import logging
from typing import Any

from openai import APIError, OpenAI, OpenAIError, RateLimitError

from guided_chat.core.config import LLMConfig
from guided_chat.llm.provider import LLMProvider, QuotaExceededError, TransportError

logger = logging.getLogger(__name__)

_QUOTA_ERROR_CODES = frozenset({"insufficient_quota", "quota_exceeded"})


class OpenAIProvider(LLMProvider):
    """OpenAI API provider implementation."""

    def __init__(self, config: LLMConfig, client: OpenAI | None = None) -> None:
        """Initialize the OpenAI provider.

        Args:
            config: LLM configuration.
            client: Optional pre-built client (tests inject a fake here).

        Raises:
            ValueError: If API key is not provided.
        """
        if client is None and not config.openai_api_key:
            raise ValueError("OpenAI API key is required")

        self.config = config
        self.client = client or OpenAI(api_key=config.openai_api_key)
        self.model = config.openai_model
        self.temperature = config.openai_temperature

        logger.info(f"OpenAI provider initialized with model: {self.model}")

    def chat(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> str:
        """Generate chat completion using OpenAI API.

        Args:
            messages: List of message dicts with 'role' and 'content'.
            max_tokens: Maximum tokens to generate.
            temperature: Sampling temperature.
            **kwargs: Additional OpenAI-specific parameters.

        Returns:
            Generated chat response.

        Raises:
            QuotaExceededError: If the account has no quota left.
            TransportError: For any other API failure.
        """
        temp = temperature if temperature is not None else self.temperature

        logger.debug(f"Generating chat completion with {len(messages)} messages")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore
                max_tokens=max_tokens,
                temperature=temp,
                **kwargs,
            )
        except RateLimitError as e:
            if _error_code(e) in _QUOTA_ERROR_CODES:
                raise QuotaExceededError(str(e)) from e
            raise TransportError(str(e)) from e
        except APIError as e:
            raise TransportError(str(e), quota_exceeded=_error_code(e) in _QUOTA_ERROR_CODES) from e
        except OpenAIError as e:
            raise TransportError(str(e)) from e

        content = response.choices[0].message.content or ""
        logger.debug(f"Generated {len(content)} characters")

        return content

    def count_tokens(self, text: str) -> int:
        """Count tokens using a simple approximation.

        Args:
            text: Text to count tokens for.

        Returns:
            Estimated number of tokens.

        Note:
            This is a rough approximation. For accurate counts,
            use tiktoken library with the specific model's encoding.
        """
        # Rough approximation: 1 token ≈ 4 characters
        return len(text) // 4


def _error_code(error: OpenAIError) -> str | None:
    code = getattr(error, "code", None)
    if isinstance(code, str):
        return code
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        nested = body.get("error") if isinstance(body.get("error"), dict) else body
        raw = nested.get("code")
        return raw if isinstance(raw, str) else None
    return None
