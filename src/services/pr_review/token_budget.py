"""
Token Budget

Greedy, order-preserving packing of hunks and optional context into a single
model request.
"""

from typing import Callable, Iterable

from src.utils.logging import get_logger

logger = get_logger(__name__)


class TokenBudget:
    """
    Running token count for one request against a fixed ceiling.

    Items are packed in their original order and packing stops at the first
    item that would overflow, even if a later item is small enough to fit.
    Optional extras are added only when they fit and are otherwise dropped.
    """

    def __init__(
        self,
        request_tokens: int,
        token_counter: Callable[[str], int],
        initial_text: str = "",
    ):
        self.request_tokens = request_tokens
        self.token_counter = token_counter
        self.tokens = token_counter(initial_text) if initial_text else 0

    @property
    def remaining(self) -> int:
        return self.request_tokens - self.tokens

    def fits(self, text: str) -> bool:
        return self.tokens + self.token_counter(text) <= self.request_tokens

    def try_add(self, text: str, times: int = 1) -> bool:
        """
        Account for ``text`` if it fits; leave the budget untouched otherwise.

        ``times`` charges the text once per occurrence in the rendered prompt.
        """
        if not text:
            return True
        cost = self.token_counter(text) * times
        if self.tokens + cost > self.request_tokens:
            return False
        self.tokens += cost
        return True

    def pack(self, items: Iterable[str]) -> int:
        """
        Add items in order until the first one that does not fit.

        Returns:
            Number of leading items packed
        """
        items = list(items)
        packed = 0
        for item in items:
            if not self.try_add(item):
                logger.info(
                    f"only packing {packed} / {len(items)} items, "
                    f"tokens: {self.tokens} / {self.request_tokens}"
                )
                break
            packed += 1
        return packed
