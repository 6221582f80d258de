"""
Anthropic Provider - Claude client used by every pipeline stage.

Two model classes are configured: a large model for screenshot analysis,
content writing and planning, and a small model for building and
validating the HTML package. The stage picks the class, this provider
only sends the request.

API Documentation: https://docs.anthropic.com/en/api
"""

import time
import logging
from typing import Optional, Sequence

from anthropic import AsyncAnthropic

from screendoc.core.config import settings
from screendoc.ai.providers.base import (
    AIProvider,
    AIResponse,
    ImageAttachment,
    ProviderType,
    TokenUsage
)

logger = logging.getLogger("screendoc.ai.anthropic")


class AnthropicProvider(AIProvider):
    """
    Anthropic Claude provider implementation.

    Usage:
        provider = AnthropicProvider()
        response = await provider.generate(
            prompt="Describe every control in this screenshot...",
            images=[ImageAttachment("image/png", b64)],
            model=settings.ANTHROPIC_MODEL_LARGE,
            max_tokens=8000,
        )
    """

    provider_type = ProviderType.ANTHROPIC

    def __init__(self, model: str = None, api_key: str = None, timeout: float = None):
        """
        Initialize the Anthropic provider.

        Args:
            model: Default model name (default: settings.ANTHROPIC_MODEL_LARGE)
            api_key: API key (default: from settings.ANTHROPIC_API_KEY)
            timeout: Request timeout in seconds (default: settings.AI_REQUEST_TIMEOUT)
        """
        self.model = model or settings.ANTHROPIC_MODEL_LARGE
        self.api_key = api_key or settings.ANTHROPIC_API_KEY
        self.timeout = timeout or settings.AI_REQUEST_TIMEOUT

        if self.api_key:
            self._client = AsyncAnthropic(api_key=self.api_key, timeout=self.timeout)
            logger.info(f"Anthropic provider initialized with model: {self.model}")
        else:
            self._client = None
            logger.warning("Anthropic API key not configured - provider unavailable")

    @property
    def is_configured(self) -> bool:
        return self._client is not None

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
        Generate a response using Claude.

        Args:
            prompt: The user's message
            system_prompt: Optional system instructions
            temperature: Creativity (0-1)
            max_tokens: Maximum response length
            model: Model override for this request
            images: Inline images sent before the text

        Returns:
            AIResponse with the generated content
        """
        start_time = time.time()
        model_name = model or self.model

        if not self._client:
            return self._create_error_response(
                error="Anthropic API key not configured",
                model=model_name,
                latency_ms=self._measure_latency(start_time)
            )

        try:
            content = self._build_content_blocks(prompt, images) if images else prompt
            request_params = {
                "model": model_name,
                "max_tokens": max_tokens,
                "messages": [{"role": "user", "content": content}],
                "temperature": temperature,
            }

            if system_prompt:
                request_params["system"] = system_prompt

            response = await self._client.messages.create(**request_params)

            latency_ms = self._measure_latency(start_time)

            # Claude returns a list of content blocks
            text = ""
            if response.content:
                for block in response.content:
                    if hasattr(block, 'text'):
                        text += block.text

            usage = TokenUsage(
                prompt_tokens=response.usage.input_tokens if response.usage else 0,
                completion_tokens=response.usage.output_tokens if response.usage else 0,
            )

            logger.info(f"Anthropic request completed in {latency_ms:.0f}ms, tokens: {usage.total_tokens}")

            return AIResponse(
                content=text,
                provider=self.provider_type,
                model=model_name,
                usage=usage,
                latency_ms=latency_ms,
                success=True,
                raw_response=response,
                metadata={"stop_reason": getattr(response, "stop_reason", None)},
            )

        except Exception as e:
            latency_ms = self._measure_latency(start_time)
            logger.error(f"Anthropic generation failed: {e}")
            return self._create_error_response(
                error=str(e),
                model=model_name,
                latency_ms=latency_ms
            )
