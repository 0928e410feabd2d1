"""
Global test configuration and fixtures for PR Review tests.

Provides common fixtures and test utilities used across multiple test modules.
"""

from typing import Callable, List, Optional
from unittest.mock import AsyncMock

import pytest

from src.core.config import Settings
from src.core.pr_review_config import PRReviewSettings, create_development_config
from src.models.schemas.pr_review import PullRequestContext
from src.services.llm.chat_bot import ConversationState
from src.services.llm.token_limits import TokenLimits


class FakeBot:
    """
    Stand-in for ``ChatBot``: replies come from ``responder(prompt)`` and
    every prompt is recorded in ``prompts``.
    """

    def __init__(self, responder: Callable[[str], str], model: str = "gpt-4o"):
        self.token_limits = TokenLimits.for_model(model)
        self.prompts: List[str] = []
        self.responder = responder

        async def _chat(prompt: str, state: Optional[ConversationState] = None):
            self.prompts.append(prompt)
            return self.responder(prompt), state or ConversationState()

        self.chat = AsyncMock(side_effect=_chat)

    def token_count(self, text: str) -> int:
        return len(text) // 4


@pytest.fixture
def test_pr_review_settings() -> PRReviewSettings:
    """Create test-specific PR review settings with reduced limits."""
    settings = create_development_config()

    # Override with test-friendly values
    settings.limits.max_files = 10
    settings.timeouts.github_api_timeout = 5
    settings.bot_icon = ""
    settings.path_filters = []

    return settings


@pytest.fixture
def test_app_settings() -> Settings:
    return Settings(
        _env_file=None,
        GITHUB_TOKEN="ghp_test_token",
        OPENAI_API_KEY="sk-test",
        ANTHROPIC_API_KEY=None,
    )


@pytest.fixture
def sample_installation_id() -> int:
    """Sample GitHub installation ID."""
    return 12345678


@pytest.fixture
def sample_pr_number() -> int:
    """Sample PR number."""
    return 42


@pytest.fixture
def sample_head_sha() -> str:
    """Sample head commit SHA."""
    return "1234567890abcdef1234567890abcdef12345678"


@pytest.fixture
def sample_base_sha() -> str:
    """Sample base commit SHA."""
    return "abcdef1234567890abcdef1234567890abcdef12"


@pytest.fixture
def sample_pr_context(
    sample_installation_id: int,
    sample_pr_number: int,
    sample_head_sha: str,
    sample_base_sha: str,
) -> PullRequestContext:
    """Create a sample pull request context."""
    return PullRequestContext(
        repo_full_name="test-owner/test-repo",
        number=sample_pr_number,
        title="Add new test feature",
        body="This PR adds a new test feature with proper error handling.",
        base_sha=sample_base_sha,
        head_sha=sample_head_sha,
        installation_id=sample_installation_id,
    )


@pytest.fixture
def sample_pull_request_payload(
    sample_installation_id: int,
    sample_pr_number: int,
    sample_head_sha: str,
    sample_base_sha: str,
) -> dict:
    """Trimmed ``pull_request`` webhook payload."""
    return {
        "action": "synchronize",
        "number": sample_pr_number,
        "pull_request": {
            "number": sample_pr_number,
            "title": "Add new test feature",
            "body": "This PR adds a new test feature with proper error handling.",
            "base": {"ref": "main", "sha": sample_base_sha},
            "head": {"ref": "feature/new-test-feature", "sha": sample_head_sha},
        },
        "repository": {"name": "test-repo", "full_name": "test-owner/test-repo"},
        "installation": {"id": sample_installation_id},
    }


@pytest.fixture
def mock_api() -> AsyncMock:
    """PRApiClient double with empty listings and canned write responses."""
    api = AsyncMock()
    api.list_issue_comments.return_value = []
    api.list_review_comments.return_value = []
    api.list_reviews.return_value = []
    api.list_pr_commits.return_value = []
    api.get_file_content.return_value = ""
    api.get_pr_details.return_value = {"body": ""}
    api.create_issue_comment.return_value = {"id": 1001, "body": ""}
    api.create_review.return_value = {"id": 555}
    return api


@pytest.fixture
def fake_bot_factory():
    """Build a FakeBot from a prompt -> reply function."""
    return FakeBot


# Test utilities
def assert_valid_sha(sha_string: str, length: int = 40) -> bool:
    """Utility to validate SHA format in tests."""
    if not sha_string or len(sha_string) != length:
        return False
    try:
        int(sha_string, 16)
        return True
    except ValueError:
        return False
