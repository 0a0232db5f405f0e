"""LLM package initialization."""

from guided_chat.llm.factory import LLMFactory
from guided_chat.llm.provider import LLMProvider, QuotaExceededError, TransportError
from guided_chat.llm.transport import (
    ProviderTransport,
    Transport,
    TransportMetadata,
    is_quota_exceeded,
)

__all__ = [
    "LLMFactory",
    "LLMProvider",
    "ProviderTransport",
    "QuotaExceededError",
    "Transport",
    "TransportError",
    "TransportMetadata",
    "is_quota_exceeded",
]
