"""Core package initialization."""

from guided_chat.core.config import (
    DraftConfig,
    EngineConfig,
    LLMConfig,
    QualityConfig,
    RevealConfig,
)

__all__ = [
    "DraftConfig",
    "EngineConfig",
    "LLMConfig",
    "QualityConfig",
    "RevealConfig",
]
