"""Anthropic Messages API client."""
import logging
from typing import Optional

from anthropic import AsyncAnthropic

from src.exceptions.pr_review_exceptions import LLMGenerationError

from .base_client import BaseLLMClient, Completion

logger = logging.getLogger(__name__)


class ClaudeClient(BaseLLMClient):

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-sonnet-20241022",
        max_tokens: int = 4000,
        temperature: float = 0.0,
        timeout: float = 120.0,
        max_retries: int = 3
    ):
        super().__init__(api_key, model, max_tokens, temperature, timeout, max_retries)
        self.client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=max_retries)

    @property
    def provider_name(self) -> str:
        return "claude"

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> Completion:
        request = {
            "model": self.model,
            "max_tokens": max_tokens or self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            request["system"] = system_prompt

        try:
            response = await self.client.messages.create(**request)
        except Exception as e:
            logger.error(f"Claude request for {self.model} failed: {e}")
            raise LLMGenerationError(str(e), provider=self.provider_name, model=self.model, cause=e) from e

        # tool_use and thinking blocks carry no reply text
        text = "".join(getattr(block, "text", "") for block in response.content if block.type == "text")
        return Completion(
            text=text,
            response_id=response.id,
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            stop_reason=response.stop_reason,
        )
