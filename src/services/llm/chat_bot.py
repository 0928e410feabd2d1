"""
Chat Bot

Thin conversation layer over a ``BaseLLMClient``: builds the system message,
short-circuits blank prompts, records usage and turns provider failures into
an empty reply so one failed call never aborts a review run.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple

from .base_client import BaseLLMClient
from .cost_tracker import CostTracker
from .token_limits import TokenLimits
from .tokenizer import get_token_count

logger = logging.getLogger(__name__)


@dataclass
class ConversationState:
    """Opaque state threaded through successive ``chat`` calls."""
    response_ids: List[str] = field(default_factory=list)

    @property
    def last_response_id(self) -> Optional[str]:
        return self.response_ids[-1] if self.response_ids else None


class ChatBot:
    """One model tier (light or heavy) bound to its token limits."""

    def __init__(
        self,
        client: BaseLLMClient,
        token_limits: TokenLimits,
        system_message: str = "",
        language: str = "en-US",
        cost_tracker: Optional[CostTracker] = None,
    ):
        self.client = client
        self.token_limits = token_limits
        self.cost_tracker = cost_tracker
        self.system_prompt = (
            f"{system_message}\n"
            f"Knowledge cutoff: {token_limits.knowledge_cutoff}\n"
            f"Current date: {date.today().isoformat()}\n\n"
            f"IMPORTANT: Entire response must be in the language with ISO code: {language}"
        )

    def token_count(self, text: str) -> int:
        return get_token_count(text)

    def model_info(self) -> str:
        return f"{self.client.describe()} ({self.token_limits})"

    async def chat(
        self,
        prompt: str,
        state: Optional[ConversationState] = None,
    ) -> Tuple[str, ConversationState]:
        """
        Send one prompt.

        Returns:
            Tuple of (reply text, updated state). The reply is empty when the
            prompt is blank or the provider failed after its retries.
        """
        state = state or ConversationState()
        if not prompt or not prompt.strip():
            return "", state

        start = time.monotonic()
        try:
            completion = await self.client.complete(
                prompt,
                system_prompt=self.system_prompt,
                max_tokens=self.token_limits.response_tokens,
            )
        except Exception as e:
            logger.warning(f"Failed to chat with {self.client.describe()}: {e}")
            return "", state

        logger.info(f"{self.client.model} response time: {(time.monotonic() - start) * 1000:.0f} ms")
        if completion.truncated:
            logger.warning(f"{self.client.model} reply hit the {self.token_limits.response_tokens} token cap")

        if self.cost_tracker is not None:
            self.cost_tracker.record_usage(
                self.client.provider_name,
                self.client.model,
                completion.input_tokens,
                completion.output_tokens,
            )

        text = completion.text
        if text.startswith("with "):
            text = text[5:]

        new_state = ConversationState(response_ids=state.response_ids + [completion.response_id])
        logger.debug(f"{self.client.model} response: {text}")
        return text, new_state
