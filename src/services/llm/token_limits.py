"""Per-model context window sizes."""

from dataclasses import dataclass

# (max_tokens, response_tokens, knowledge_cutoff)
MODEL_LIMITS = {
    "gpt-3.5-turbo": (4000, 1000, "2021-09-01"),
    "gpt-3.5-turbo-16k": (16300, 3000, "2021-09-01"),
    "gpt-4": (8000, 2000, "2021-09-01"),
    "gpt-4-32k": (32600, 4000, "2021-09-01"),
    "gpt-4-turbo": (128000, 4000, "2023-12-01"),
    "gpt-4o": (128000, 4000, "2023-10-01"),
    "gpt-4o-mini": (128000, 4000, "2023-10-01"),
    "claude-3-5-sonnet": (200000, 8000, "2024-04-01"),
    "claude-3-5-haiku": (200000, 8000, "2024-07-01"),
    "claude-3-7-sonnet": (200000, 8000, "2024-10-01"),
    "claude-sonnet-4": (200000, 8000, "2025-03-01"),
}

DEFAULT_LIMITS = (4000, 1000, "2021-09-01")

# Headroom kept free for the system message and chat framing
REQUEST_MARGIN = 100


@dataclass
class TokenLimits:
    model: str
    max_tokens: int
    response_tokens: int
    request_tokens: int
    knowledge_cutoff: str

    def __post_init__(self):
        if self.request_tokens >= self.max_tokens:
            raise ValueError("request_tokens must be smaller than max_tokens")

    @classmethod
    def for_model(cls, model: str) -> "TokenLimits":
        """Look up limits by exact name, then by longest known prefix."""
        limits = MODEL_LIMITS.get(model)
        if limits is None:
            prefixes = sorted((k for k in MODEL_LIMITS if model.startswith(k)), key=len, reverse=True)
            limits = MODEL_LIMITS[prefixes[0]] if prefixes else DEFAULT_LIMITS

        max_tokens, response_tokens, cutoff = limits
        return cls(
            model=model,
            max_tokens=max_tokens,
            response_tokens=response_tokens,
            request_tokens=max_tokens - response_tokens - REQUEST_MARGIN,
            knowledge_cutoff=cutoff,
        )

    def __str__(self) -> str:
        return (
            f"max_tokens={self.max_tokens}, request_tokens={self.request_tokens}, "
            f"response_tokens={self.response_tokens}"
        )
