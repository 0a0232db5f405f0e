"""Factory for creating LLM providers and transports."""

import logging

from guided_chat.core.config import LLMConfig
from guided_chat.llm.llama_provider import LLaMAProvider
from guided_chat.llm.openai_provider import OpenAIProvider
from guided_chat.llm.provider import LLMProvider
from guided_chat.llm.transport import ProviderTransport

logger = logging.getLogger(__name__)


class LLMFactory:
    """Factory for creating LLM provider instances."""

    @staticmethod
    def create(config: LLMConfig) -> LLMProvider:
        """Create an LLM provider based on configuration.

        Args:
            config: LLM configuration specifying the provider.

        Returns:
            Configured LLM provider instance.

        Raises:
            ValueError: If provider type is not supported.
        """
        logger.info(f"Creating LLM provider: {config.provider}")

        if config.provider == "openai":
            return OpenAIProvider(config)
        elif config.provider == "llama":
            return LLaMAProvider(config)
        else:
            raise ValueError(f"Unsupported LLM provider: {config.provider}")

    @staticmethod
    def create_transport(config: LLMConfig, system_prompt: str | None = None) -> ProviderTransport:
        """Create the async transport the orchestrator talks to.

        Args:
            config: LLM configuration specifying the provider.
            system_prompt: Optional global prompt placed before every request.
        """
        return ProviderTransport(
            LLMFactory.create(config),
            system_prompt=system_prompt,
            history_window=config.history_window,
        )
