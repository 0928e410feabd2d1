"""OpenAI (or compatible endpoint) chat completions client."""
import logging
from typing import Optional

from openai import AsyncOpenAI

from src.exceptions.pr_review_exceptions import LLMGenerationError

from .base_client import BaseLLMClient, Completion

logger = logging.getLogger(__name__)


class OpenAIClient(BaseLLMClient):

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        max_tokens: int = 4000,
        temperature: float = 0.0,
        timeout: float = 120.0,
        max_retries: int = 3,
        base_url: Optional[str] = None,
        organization: Optional[str] = None
    ):
        super().__init__(api_key, model, max_tokens, temperature, timeout, max_retries)
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            timeout=timeout,
            max_retries=max_retries,
        )

    @property
    def provider_name(self) -> str:
        return "openai"

    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> Completion:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens or self.max_tokens,
                temperature=self.temperature,
                messages=messages,
            )
        except Exception as e:
            logger.error(f"OpenAI request for {self.model} failed: {e}")
            raise LLMGenerationError(str(e), provider=self.provider_name, model=self.model, cause=e) from e

        choice = response.choices[0]
        usage = response.usage
        return Completion(
            text=choice.message.content or "",
            response_id=response.id,
            model=response.model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            stop_reason=choice.finish_reason,
        )
