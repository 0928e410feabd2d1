"""
GitHub Services Package

REST client, comment bookkeeping and review submission for pull requests.
"""

from src.services.github.pr_api_client import GitHubAPIRateLimit, PRApiClient
from src.services.github.run_cache import RunCache
from src.services.github.commenter import Commenter
from src.services.github.comment_submitter import CommentSubmitter

__all__ = [
    # GitHub API client
    "PRApiClient",
    "GitHubAPIRateLimit",
    # Comment bookkeeping
    "RunCache",
    "Commenter",
    # Review submission
    "CommentSubmitter",
]
