"""Per-run cache of GitHub listings, keyed by pull request number."""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class RunCache:
    """
    Listings fetched at most once per run.

    A fresh instance is created for each event and handed to whoever needs
    it; nothing survives between runs. Writers append to the cached lists so
    later lookups in the same run see comments the bot just created.
    """
    issue_comments: Dict[int, List[Dict[str, Any]]] = field(default_factory=dict)
    review_comments: Dict[int, List[Dict[str, Any]]] = field(default_factory=dict)
    commits: Dict[int, List[Dict[str, Any]]] = field(default_factory=dict)

    def clear(self) -> None:
        self.issue_comments.clear()
        self.review_comments.clear()
        self.commits.clear()
