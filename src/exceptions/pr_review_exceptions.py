"""
PR Review Exception Hierarchy

Error categories for the review pipeline: configuration problems (fatal,
raised before any network call), diff parsing problems (per file), GitHub API
failures and model provider failures.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class PRReviewException(Exception):
    """Base exception for all PR review errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.recoverable = recoverable
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
            "timestamp": self.timestamp.isoformat()
        }

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"


# ============================================================================
# CONFIGURATION ERRORS
# ============================================================================

class ConfigurationError(PRReviewException):
    """Raised when required configuration (credentials, models) is missing."""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details={"setting": setting},
            recoverable=False
        )


# ============================================================================
# DIFF PARSING ERRORS
# ============================================================================

class PRHunkParsingException(PRReviewException):
    """Raised when a single hunk header cannot be parsed."""

    def __init__(self, file_path: str, header: str):
        super().__init__(
            message=f"Failed to parse hunk header in {file_path}: {header!r}",
            error_code="HUNK_PARSING_ERROR",
            details={"file_path": file_path, "header": header},
            recoverable=True
        )
        self.file_path = file_path
        self.header = header


# ============================================================================
# GITHUB API ERRORS
# ============================================================================

class GitHubAPIException(PRReviewException):
    """Raised when a GitHub API request fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None
    ):
        super().__init__(
            message=message,
            error_code="GITHUB_API_ERROR",
            details={"status_code": status_code, "endpoint": endpoint},
            recoverable=True
        )
        self.status_code = status_code
        self.endpoint = endpoint


class GitHubPRNotFoundException(GitHubAPIException):
    """Raised when the pull request (or another resource) does not exist."""

    def __init__(self, repo_name: str, pr_number: int, endpoint: Optional[str] = None):
        super().__init__(
            message=f"Pull request #{pr_number} not found in {repo_name}",
            status_code=404,
            endpoint=endpoint
        )
        self.error_code = "GITHUB_NOT_FOUND"


class GitHubRateLimitException(GitHubAPIException):
    """Raised when GitHub rate limits the installation."""

    def __init__(self, retry_after_seconds: Optional[int] = None, endpoint: Optional[str] = None):
        super().__init__(
            message=f"GitHub API rate limit exceeded, retry after {retry_after_seconds}s",
            status_code=429,
            endpoint=endpoint
        )
        self.error_code = "GITHUB_RATE_LIMIT"
        self.retry_after_seconds = retry_after_seconds
        self.details["retry_after_seconds"] = retry_after_seconds


class GitHubAuthenticationException(GitHubAPIException):
    """Raised when the token is rejected."""

    def __init__(self, endpoint: Optional[str] = None):
        super().__init__(
            message="GitHub authentication failed",
            status_code=401,
            endpoint=endpoint
        )
        self.error_code = "GITHUB_AUTHENTICATION_ERROR"
        self.recoverable = False


class GitHubPermissionException(GitHubAPIException):
    """Raised when the token lacks a required permission."""

    def __init__(self, endpoint: Optional[str] = None):
        super().__init__(
            message=f"GitHub permission denied for {endpoint}",
            status_code=403,
            endpoint=endpoint
        )
        self.error_code = "GITHUB_PERMISSION_ERROR"
        self.recoverable = False


# ============================================================================
# LLM ERRORS
# ============================================================================

class LLMGenerationError(PRReviewException):
    """Raised when a model provider call fails after its retries."""

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        model: Optional[str] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            error_code="LLM_GENERATION_ERROR",
            details={
                "provider": provider,
                "model": model,
                "cause": str(cause) if cause else None
            },
            recoverable=True
        )
        self.__cause__ = cause
