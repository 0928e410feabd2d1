"""Cost tracking for LLM API usage."""
import logging
from dataclasses import dataclass, field
from typing import Dict, Tuple

logger = logging.getLogger(__name__)


# USD per token, keyed by provider then model prefix
LLM_PRICING = {
    "claude": {
        "claude-3-5-sonnet": {
            "input": 3.0 / 1_000_000,
            "output": 15.0 / 1_000_000
        },
        "claude-3-5-haiku": {
            "input": 0.80 / 1_000_000,
            "output": 4.0 / 1_000_000
        },
        "claude-3-7-sonnet": {
            "input": 3.0 / 1_000_000,
            "output": 15.0 / 1_000_000
        },
        "claude-sonnet-4": {
            "input": 3.0 / 1_000_000,
            "output": 15.0 / 1_000_000
        }
    },
    "openai": {
        "gpt-4o-mini": {
            "input": 0.15 / 1_000_000,
            "output": 0.60 / 1_000_000
        },
        "gpt-4o": {
            "input": 2.50 / 1_000_000,
            "output": 10.0 / 1_000_000
        },
        "gpt-4-turbo": {
            "input": 10.0 / 1_000_000,
            "output": 30.0 / 1_000_000
        }
    }
}


def _lookup_pricing(provider: str, model: str) -> Dict[str, float]:
    models = LLM_PRICING.get(provider, {})
    if model in models:
        return models[model]
    prefixes = sorted((k for k in models if model.startswith(k)), key=len, reverse=True)
    return models[prefixes[0]] if prefixes else {}


@dataclass
class CostTracker:
    """Track LLM API usage and costs per provider/model for one run."""

    usage: Dict[Tuple[str, str], Dict[str, int]] = field(default_factory=dict)

    def record_usage(self, provider: str, model: str, input_tokens: int, output_tokens: int):
        """Record token usage of one completion."""
        entry = self.usage.setdefault(
            (provider, model), {"input_tokens": 0, "output_tokens": 0, "requests": 0}
        )
        entry["input_tokens"] += input_tokens
        entry["output_tokens"] += output_tokens
        entry["requests"] += 1

    @property
    def total_requests(self) -> int:
        return sum(e["requests"] for e in self.usage.values())

    def get_total_cost(self) -> float:
        """Calculate total cost in USD; models without pricing count as free."""
        total = 0.0
        for (provider, model), entry in self.usage.items():
            pricing = _lookup_pricing(provider, model)
            if not pricing:
                logger.warning(f"No pricing data for {provider}/{model}")
                continue
            total += entry["input_tokens"] * pricing["input"]
            total += entry["output_tokens"] * pricing["output"]
        return total

    def get_stats(self) -> Dict:
        """Get usage statistics."""
        return {
            "total_requests": self.total_requests,
            "models": {
                f"{provider}/{model}": dict(entry)
                for (provider, model), entry in self.usage.items()
            },
            "total_cost_usd": round(self.get_total_cost(), 4)
        }
