"""LLM provider layer."""

from storyforge.infrastructure.llm.base import (
    AuthenticationError,
    LLMError,
    LLMProvider,
    LLMTimeoutError,
    ModelNotFoundError,
    RateLimitError,
)
from storyforge.infrastructure.llm.models import (
    LLMMessage,
    MessageRole,
    StreamEvent,
    StreamEventType,
)
from storyforge.infrastructure.llm.openrouter_provider import OpenRouterProvider
from storyforge.infrastructure.llm.provider_factory import ProviderFactory, ProviderType
from storyforge.infrastructure.llm.streaming import StreamingHandler

__all__ = [
    "AuthenticationError",
    "LLMError",
    "LLMMessage",
    "LLMProvider",
    "LLMTimeoutError",
    "MessageRole",
    "ModelNotFoundError",
    "OpenRouterProvider",
    "ProviderFactory",
    "ProviderType",
    "RateLimitError",
    "StreamEvent",
    "StreamEventType",
    "StreamingHandler",
]
