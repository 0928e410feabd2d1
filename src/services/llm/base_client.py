"""Provider-neutral completion interface used by the chat bots."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

# stop reasons meaning the reply was cut at max_tokens
TRUNCATION_STOP_REASONS = ("max_tokens", "length")


@dataclass
class Completion:
    """One model reply, normalized across providers."""
    text: str
    response_id: str = ""
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    stop_reason: Optional[str] = None

    @property
    def truncated(self) -> bool:
        return self.stop_reason in TRUNCATION_STOP_REASONS


class BaseLLMClient(ABC):
    """
    A single provider/model pair.

    Retries and timeouts are handed to the provider SDK, so ``complete``
    raises only once ``max_retries`` attempts have failed.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 4000,
        temperature: float = 0.0,
        timeout: float = 120.0,
        max_retries: int = 3
    ):
        if not api_key:
            raise ValueError(f"{type(self).__name__} requires an API key")
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max_retries

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short provider key ('claude' or 'openai') used for pricing lookups."""

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
    ) -> Completion:
        """Send ``prompt`` as a single user turn and return the normalized reply."""

    def describe(self) -> str:
        return f"{self.provider_name}/{self.model}"
