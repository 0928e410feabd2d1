"""Token counting shared by the packer and the chat bots."""

from functools import lru_cache

import tiktoken

DEFAULT_ENCODING = "cl100k_base"


@lru_cache(maxsize=None)
def _encoding(name: str = DEFAULT_ENCODING) -> tiktoken.Encoding:
    return tiktoken.get_encoding(name)


def get_token_count(text: str) -> int:
    """Count tokens the way the budget is accounted; special markers count as text."""
    if not text:
        return 0
    text = text.replace("<|endoftext|>", "")
    return len(_encoding().encode(text, disallowed_special=()))
