"""Local LLaMA LLM provider implementation."""

import logging
from typing import Any

from guided_chat.core.config import LLMConfig
from guided_chat.llm.provider import LLMProvider, TransportError

logger = logging.getLogger(__name__)


class LLaMAProvider(LLMProvider):
    """Local LLaMA model provider implementation.

    Requires llama-cpp-python to be installed:
        pip install "guided-chat[llama]"
    """

    def __init__(self, config: LLMConfig) -> None:
        """Load the local model.

        Args:
            config: LLM configuration.

        Raises:
            ValueError: If model path is not provided.
            ImportError: If llama-cpp-python is not installed.
        """
        if not config.llama_model_path:
            raise ValueError("LLaMA model path is required")

        try:
            from llama_cpp import Llama
        except ImportError as e:
            raise ImportError(
                "llama-cpp-python is required for LLaMA provider. "
                'Install it with: pip install "guided-chat[llama]"'
            ) from e

        self.config = config

        logger.info(f"Loading LLaMA model from: {config.llama_model_path}")

        self.llm = Llama(
            model_path=str(config.llama_model_path),
            n_ctx=config.llama_n_ctx,
            verbose=False,
        )

    def chat(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
        **kwargs: Any,
    ) -> str:
        """Generate a chat reply with the local model.

        A local model has no notion of quota, so every failure is generic.
        """
        logger.debug(f"Generating chat completion with {len(messages)} messages")

        try:
            result = self.llm.create_chat_completion(
                messages=messages,
                max_tokens=max_tokens or 512,
                temperature=temperature if temperature is not None else 0.55,
                **kwargs,
            )
        except (RuntimeError, ValueError) as e:
            raise TransportError(f"Local model failed: {e}") from e

        return result["choices"][0]["message"]["content"] or ""

    def count_tokens(self, text: str) -> int:
        return len(self.llm.tokenize(text.encode("utf-8")))
