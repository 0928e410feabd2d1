"""LLM service module for PR review."""

from .base_client import BaseLLMClient, Completion
from .claude_client import ClaudeClient
from .openai_client import OpenAIClient
from .llm_factory import LLMFactory, LLMProvider
from .cost_tracker import CostTracker, LLM_PRICING
from .token_limits import TokenLimits
from .tokenizer import get_token_count
from .chat_bot import ChatBot, ConversationState

__all__ = [
    "BaseLLMClient",
    "Completion",
    "ClaudeClient",
    "OpenAIClient",
    "LLMFactory",
    "LLMProvider",
    "CostTracker",
    "LLM_PRICING",
    "TokenLimits",
    "get_token_count",
    "ChatBot",
    "ConversationState",
]
