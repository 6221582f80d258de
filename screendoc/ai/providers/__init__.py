"""
AI Providers Module - the generative model transport.

Every provider exposes the same coroutine:
    response = await provider.generate(prompt, model=..., max_tokens=..., images=...)
"""

from screendoc.ai.providers.base import (
    AIProvider,
    AIResponse,
    ImageAttachment,
    ProviderType,
    TokenUsage,
)
from screendoc.ai.providers.anthropic_provider import AnthropicProvider

__all__ = [
    "AIProvider",
    "AIResponse",
    "ImageAttachment",
    "ProviderType",
    "TokenUsage",
    "AnthropicProvider",
]
