"""Factory for creating LLM clients."""
import logging
from enum import Enum
from typing import Optional

from src.core.config import Settings, settings
from src.exceptions.pr_review_exceptions import ConfigurationError

from .base_client import BaseLLMClient
from .claude_client import ClaudeClient
from .openai_client import OpenAIClient

logger = logging.getLogger(__name__)


class LLMProvider(str, Enum):
    """Supported LLM providers."""
    CLAUDE = "claude"
    OPENAI = "openai"
    AUTO = "auto"


# Default model per provider and tier (light = summaries, heavy = reviews)
DEFAULT_MODELS = {
    LLMProvider.CLAUDE: {
        "light": "claude-3-5-haiku-latest",
        "heavy": "claude-3-5-sonnet-latest",
    },
    LLMProvider.OPENAI: {
        "light": "gpt-4o-mini",
        "heavy": "gpt-4o",
    },
}


class LLMFactory:
    """Factory for creating LLM clients based on provider."""

    @staticmethod
    def resolve_provider(provider: str = "auto", app_settings: Optional[Settings] = None) -> LLMProvider:
        """
        Turn ``auto`` into a concrete provider by the API key that is set.

        Raises:
            ConfigurationError: If no key is available for the provider
        """
        app_settings = app_settings or settings
        try:
            resolved = LLMProvider(provider.lower())
        except ValueError:
            raise ConfigurationError(f"Unsupported LLM provider: {provider}", setting="models.provider")

        if resolved == LLMProvider.AUTO:
            if app_settings.ANTHROPIC_API_KEY:
                resolved = LLMProvider.CLAUDE
            elif app_settings.OPENAI_API_KEY:
                resolved = LLMProvider.OPENAI
            else:
                raise ConfigurationError(
                    "No LLM API key configured; set ANTHROPIC_API_KEY or OPENAI_API_KEY",
                    setting="ANTHROPIC_API_KEY",
                )

        if resolved == LLMProvider.CLAUDE and not app_settings.ANTHROPIC_API_KEY:
            raise ConfigurationError("ANTHROPIC_API_KEY not configured", setting="ANTHROPIC_API_KEY")
        if resolved == LLMProvider.OPENAI and not app_settings.OPENAI_API_KEY:
            raise ConfigurationError("OPENAI_API_KEY not configured", setting="OPENAI_API_KEY")
        return resolved

    @staticmethod
    def default_model(provider: LLMProvider, tier: str = "heavy") -> str:
        return DEFAULT_MODELS[provider][tier]

    @staticmethod
    def create_client(
        provider: str = "auto",
        model: Optional[str] = None,
        tier: str = "heavy",
        max_tokens: int = 4000,
        temperature: float = 0.0,
        timeout: float = 120.0,
        max_retries: int = 3,
        app_settings: Optional[Settings] = None,
    ) -> BaseLLMClient:
        """
        Create an LLM client.

        Args:
            provider: "claude", "openai" or "auto"
            model: Model name; provider default for ``tier`` when omitted
            tier: "light" or "heavy"
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            timeout: Per-request timeout in seconds
            max_retries: Retries performed by the SDK before giving up
        """
        app_settings = app_settings or settings
        resolved = LLMFactory.resolve_provider(provider, app_settings)
        model = model or LLMFactory.default_model(resolved, tier)
        logger.info(f"Creating {resolved.value} client for model {model}")

        if resolved == LLMProvider.CLAUDE:
            return ClaudeClient(
                api_key=app_settings.ANTHROPIC_API_KEY,
                model=model,
                max_tokens=max_tokens,
                temperature=temperature,
                timeout=timeout,
                max_retries=max_retries,
            )

        return OpenAIClient(
            api_key=app_settings.OPENAI_API_KEY,
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
            timeout=timeout,
            max_retries=max_retries,
            base_url=app_settings.OPENAI_API_BASE_URL,
            organization=app_settings.OPENAI_API_ORG,
        )

