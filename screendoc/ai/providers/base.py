"""
Base AI Provider - Abstract interface for the generative model transport.

This module defines the contract every provider follows. The pipeline
only ever talks to this interface, so tests can swap in a fake provider
and the Anthropic client can be replaced without touching the stages.

Example:
    provider = AnthropicProvider()
    response = await provider.generate("Hello, world!", model="claude-...")
    print(response.content)
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Any, Dict, List, Sequence
from enum import Enum
import logging

logger = logging.getLogger("screendoc.ai")


class ProviderType(str, Enum):
    """Enum of supported AI providers."""
    ANTHROPIC = "anthropic"


@dataclass
class TokenUsage:
    """
    Token usage statistics for an AI request.

    The pipeline sums these per job to estimate cost.
    """
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __post_init__(self):
        """Calculate total if not provided."""
        if self.total_tokens == 0:
            self.total_tokens = self.prompt_tokens + self.completion_tokens


@dataclass(frozen=True)
class ImageAttachment:
    """An inline image sent alongside the prompt (base64 encoded)."""
    media_type: str
    data_base64: str


@dataclass
class AIResponse:
    """
    Standardized response from any AI provider.

    Attributes:
        content: The generated text response
        provider: Which provider generated this response
        model: The specific model used
        usage: Token usage statistics
        latency_ms: How long the request took
        success: Whether the request succeeded
        error: Error message if failed
        raw_response: Original provider response (for debugging)
        metadata: Additional provider-specific data
        created_at: Timestamp of the response
    """
    content: str
    provider: ProviderType
    model: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    latency_ms: float = 0.0
    success: bool = True
    error: Optional[str] = None
    raw_response: Optional[Any] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "content": self.content[:100] + "..." if len(self.content) > 100 else self.content,
            "provider": self.provider.value,
            "model": self.model,
            "tokens": {
                "prompt": self.usage.prompt_tokens,
                "completion": self.usage.completion_tokens,
                "total": self.usage.total_tokens,
            },
            "latency_ms": self.latency_ms,
            "success": self.success,
            "error": self.error,
            "created_at": self.created_at.isoformat(),
        }


class AIProvider(ABC):
    """
    Abstract base class for AI providers.

    Responsibilities:
    - Generate text responses from prompts (optionally with images)
    - Capture errors in the response instead of raising
    - Track token usage and latency
    """

    provider_type: ProviderType

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        model: Optional[str] = None,
        images: Optional[Sequence[ImageAttachment]] = None,
        **kwargs
    ) -> AIResponse:
        """
        Generate a response from the AI model.

        Args:
            prompt: The user's message/query
            system_prompt: Optional system instructions for the model
            temperature: Creativity level (0=deterministic, 1=creative)
            max_tokens: Maximum tokens in the response
            model: Model override for this call (default: provider default)
            images: Inline images placed before the prompt text
            **kwargs: Provider-specific options

        Returns:
            AIResponse with the generated content

        Raises:
            This method should NOT raise exceptions.
            Errors are captured in AIResponse.error
        """
        pass

    def _measure_latency(self, start_time: float) -> float:
        """Calculate latency in milliseconds."""
        return (time.time() - start_time) * 1000

    def _create_error_response(
        self,
        error: str,
        model: str,
        latency_ms: float = 0.0
    ) -> AIResponse:
        """Create a standardized error response."""
        logger.error(f"AI Provider Error [{self.provider_type.value}]: {error}")
        return AIResponse(
            content="",
            provider=self.provider_type,
            model=model,
            latency_ms=latency_ms,
            success=False,
            error=error,
        )

    @staticmethod
    def _build_content_blocks(prompt: str, images: Optional[Sequence[ImageAttachment]]) -> List[Dict[str, Any]]:
        """Images first, then the text block."""
        blocks: List[Dict[str, Any]] = []
        for image in images or ():
            blocks.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": image.media_type,
                    "data": image.data_base64,
                },
            })
        blocks.append({"type": "text", "text": prompt})
        return blocks

    async def health_check(self) -> bool:
        """
        Check if the provider is available and configured.

        Returns:
            True if provider is ready to use, False otherwise
        """
        try:
            response = await self.generate(
                prompt="Say 'ok' and nothing else.",
                max_tokens=10,
            )
            return response.success and len(response.content) > 0
        except Exception as e:
            logger.error(f"Health check failed for {self.provider_type.value}: {e}")
            return False
