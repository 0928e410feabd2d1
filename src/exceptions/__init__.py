"""Exception types shared across the PR review pipeline."""

from .pr_review_exceptions import (
    PRReviewException,
    ConfigurationError,
    PRHunkParsingException,
    GitHubAPIException,
    GitHubPRNotFoundException,
    GitHubRateLimitException,
    GitHubAuthenticationException,
    GitHubPermissionException,
    LLMGenerationError,
)

__all__ = [
    "PRReviewException",
    "ConfigurationError",
    "PRHunkParsingException",
    "GitHubAPIException",
    "GitHubPRNotFoundException",
    "GitHubRateLimitException",
    "GitHubAuthenticationException",
    "GitHubPermissionException",
    "LLMGenerationError",
]
