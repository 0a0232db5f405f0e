"""Core configuration for the guided-chat engine."""

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from guided_chat.core.logging import configure_logging


class LLMConfig(BaseSettings):
    """Configuration for LLM providers."""

    provider: Literal["openai", "llama"] = Field(
        default="openai",
        description="LLM provider to use",
    )

    # OpenAI settings
    openai_api_key: str | None = Field(
        default=None,
        description="OpenAI API key",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model to use",
    )
    openai_temperature: float = Field(
        default=0.55,
        ge=0.0,
        le=2.0,
        description="Temperature for OpenAI model",
    )

    # LLaMA settings
    llama_model_path: Path | None = Field(
        default=None,
        description="Path to LLaMA model file",
    )
    llama_n_ctx: int = Field(
        default=4096,
        gt=0,
        description="Context window size for LLaMA",
    )

    history_window: int = Field(
        default=16,
        ge=0,
        description="Max number of non-system turns sent verbatim to the provider",
    )

    model_config = SettingsConfigDict(
        env_prefix="GUIDED_CHAT_LLM_",
        env_file=".env",
        extra="ignore",
    )


class RevealConfig(BaseSettings):
    """Pacing of the character-reveal ("typing") animation."""

    chars_per_tick: int = Field(
        default=2,
        gt=0,
        description="Characters revealed on each tick",
    )
    tick_seconds: float = Field(
        default=0.04,
        ge=0.0,
        description="Delay between two ticks",
    )
    paragraph_pause_seconds: float = Field(
        default=0.8,
        ge=0.0,
        description="Delay after reaching a paragraph boundary",
    )
    initial_delay_seconds: float = Field(
        default=0.02,
        ge=0.0,
        description="Delay before the first tick",
    )

    model_config = SettingsConfigDict(
        env_prefix="GUIDED_CHAT_REVEAL_",
        env_file=".env",
        extra="ignore",
    )


class DraftConfig(BaseSettings):
    """Configuration for transcript draft persistence."""

    enabled: bool = Field(
        default=True,
        description="Persist drafts for workflows that opt in",
    )
    directory: Path = Field(
        default=Path(".drafts"),
        description="Directory holding one draft slot per workflow kind",
    )
    debounce_seconds: float = Field(
        default=0.75,
        ge=0.0,
        description="Quiet period before a draft is written",
    )

    model_config = SettingsConfigDict(
        env_prefix="GUIDED_CHAT_DRAFT_",
        env_file=".env",
        extra="ignore",
    )


class QualityConfig(BaseSettings):
    """Configuration for the critic-based quality gate."""

    enabled: bool = Field(
        default=True,
        description="Run the critic for quality-gated steps",
    )
    min_total_score: float = Field(
        default=8,
        ge=0,
        description="Critic total below which the generated payload is replaced",
    )
    critic_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Give up on the critic after this many seconds",
    )

    model_config = SettingsConfigDict(
        env_prefix="GUIDED_CHAT_QUALITY_",
        env_file=".env",
        extra="ignore",
    )


class EngineConfig(BaseSettings):
    """Main configuration for the engine."""

    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    llm: LLMConfig = Field(
        default_factory=LLMConfig,
        description="LLM configuration",
    )
    reveal: RevealConfig = Field(
        default_factory=RevealConfig,
        description="Reveal pacing configuration",
    )
    drafts: DraftConfig = Field(
        default_factory=DraftConfig,
        description="Draft persistence configuration",
    )
    quality: QualityConfig = Field(
        default_factory=QualityConfig,
        description="Quality gate configuration",
    )

    model_config = SettingsConfigDict(
        env_prefix="GUIDED_CHAT_",
        env_file=".env",
        extra="ignore",
    )

    def setup_logging(self) -> None:
        """Configure logging based on settings."""
        configure_logging(self.log_level)

        if self.debug:
            logging.getLogger("guided_chat").setLevel(logging.DEBUG)
