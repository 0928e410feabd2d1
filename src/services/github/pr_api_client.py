"""
GitHub PR API Client

Async wrapper around the GitHub REST endpoints the review pipeline needs:
commit comparison, file contents, issue and review comments, reviews, pull
request metadata and commit listing.

Errors are mapped onto the GitHub exception family so callers can decide
which failures are fatal and which only cost some context.
"""

import base64
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from src.core.config import Settings, settings
from src.exceptions.pr_review_exceptions import (
    GitHubAPIException,
    GitHubAuthenticationException,
    GitHubPermissionException,
    GitHubPRNotFoundException,
    GitHubRateLimitException,
)
from src.services.github.helpers import GithubHelpers
from src.utils.logging import get_logger

logger = get_logger(__name__)

PER_PAGE = 100


@dataclass
class GitHubAPIRateLimit:
    """Rate limit state reported by the last response."""
    limit: int
    remaining: int
    reset_time: int
    used: int

    @classmethod
    def from_headers(cls, headers) -> "GitHubAPIRateLimit":
        def _int(name: str) -> int:
            try:
                return int(headers.get(name, 0))
            except (TypeError, ValueError):
                return 0

        return cls(
            limit=_int("x-ratelimit-limit"),
            remaining=_int("x-ratelimit-remaining"),
            reset_time=_int("x-ratelimit-reset"),
            used=_int("x-ratelimit-used"),
        )


class PRApiClient:
    """
    GitHub API client bound to one installation.

    Every call opens its own ``httpx.AsyncClient``; concurrency is bounded by
    the caller's host-API pool, not here.
    """

    def __init__(
        self,
        installation_id: Optional[int] = None,
        app_settings: Optional[Settings] = None,
        timeout: float = 30.0,
    ):
        self.settings = app_settings or settings
        self.installation_id = installation_id
        self.timeout = timeout
        self.helpers = GithubHelpers(self.settings)
        self.rate_limit: Optional[GitHubAPIRateLimit] = None

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _headers(self, installation_id: Optional[int] = None) -> Dict[str, str]:
        token = await self.helpers.generate_installation_token(installation_id or self.installation_id)
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        repo_name: str = "",
        pr_number: int = 0,
        installation_id: Optional[int] = None,
    ) -> httpx.Response:
        headers = await self._headers(installation_id)
        url = f"{self.settings.GITHUB_API_URL}{endpoint}"

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.request(method, url, headers=headers, json=json, params=params)

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._raise_for_status(response, endpoint, repo_name, pr_number, e)

        self.rate_limit = GitHubAPIRateLimit.from_headers(response.headers)
        return response

    def _raise_for_status(
        self,
        response: httpx.Response,
        endpoint: str,
        repo_name: str,
        pr_number: int,
        cause: Exception,
    ) -> None:
        status = response.status_code
        logger.warning(f"GitHub API {endpoint} returned {status}")

        if status == 401:
            raise GitHubAuthenticationException(endpoint=endpoint) from cause
        if status == 429 or (status == 403 and _header(response, "x-ratelimit-remaining") == "0"):
            retry_after = _header(response, "retry-after")
            raise GitHubRateLimitException(
                retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                endpoint=endpoint,
            ) from cause
        if status == 403:
            raise GitHubPermissionException(endpoint=endpoint) from cause
        if status == 404:
            raise GitHubPRNotFoundException(repo_name, pr_number, endpoint=endpoint) from cause
        raise GitHubAPIException(
            f"GitHub API request failed with status {status}",
            status_code=status,
            endpoint=endpoint,
        ) from cause

    async def _paginate(
        self,
        endpoint: str,
        repo_name: str = "",
        pr_number: int = 0,
        installation_id: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        page = 1
        while True:
            response = await self._request(
                "GET",
                endpoint,
                params={"per_page": PER_PAGE, "page": page},
                repo_name=repo_name,
                pr_number=pr_number,
                installation_id=installation_id,
            )
            batch = response.json()
            items.extend(batch)
            if len(batch) < PER_PAGE:
                return items
            page += 1

    # ------------------------------------------------------------------
    # Pull requests and commits
    # ------------------------------------------------------------------

    async def get_pr_details(
        self, repo_name: str, pr_number: int, installation_id: Optional[int] = None
    ) -> Dict[str, Any]:
        response = await self._request(
            "GET", f"/repos/{repo_name}/pulls/{pr_number}",
            repo_name=repo_name, pr_number=pr_number, installation_id=installation_id,
        )
        return response.json()

    async def update_pr(
        self, repo_name: str, pr_number: int, body: str, installation_id: Optional[int] = None
    ) -> Dict[str, Any]:
        response = await self._request(
            "PATCH", f"/repos/{repo_name}/pulls/{pr_number}", json={"body": body},
            repo_name=repo_name, pr_number=pr_number, installation_id=installation_id,
        )
        return response.json()

    async def get_pr_files(
        self, repo_name: str, pr_number: int, installation_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return await self._paginate(
            f"/repos/{repo_name}/pulls/{pr_number}/files", repo_name, pr_number, installation_id
        )

    async def list_pr_commits(
        self, repo_name: str, pr_number: int, installation_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return await self._paginate(
            f"/repos/{repo_name}/pulls/{pr_number}/commits", repo_name, pr_number, installation_id
        )

    async def compare_commits(
        self, repo_name: str, base: str, head: str, installation_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """Compare two commits; the result carries ``files`` and ``commits``."""
        response = await self._request(
            "GET", f"/repos/{repo_name}/compare/{base}...{head}",
            repo_name=repo_name, installation_id=installation_id,
        )
        return response.json()

    async def get_file_content(
        self, repo_name: str, path: str, ref: str, installation_id: Optional[int] = None
    ) -> Optional[str]:
        """File text at ``ref``, or None when the file does not exist there."""
        try:
            response = await self._request(
                "GET", f"/repos/{repo_name}/contents/{path}", params={"ref": ref},
                repo_name=repo_name, installation_id=installation_id,
            )
        except GitHubPRNotFoundException:
            return None

        data = response.json()
        if isinstance(data, list) or data.get("type") != "file" or not data.get("content"):
            return None
        return base64.b64decode(data["content"]).decode("utf-8", errors="replace")

    # ------------------------------------------------------------------
    # Issue comments
    # ------------------------------------------------------------------

    async def list_issue_comments(
        self, repo_name: str, issue_number: int, installation_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return await self._paginate(
            f"/repos/{repo_name}/issues/{issue_number}/comments", repo_name, issue_number, installation_id
        )

    async def create_issue_comment(
        self, repo_name: str, issue_number: int, body: str, installation_id: Optional[int] = None
    ) -> Dict[str, Any]:
        response = await self._request(
            "POST", f"/repos/{repo_name}/issues/{issue_number}/comments", json={"body": body},
            repo_name=repo_name, pr_number=issue_number, installation_id=installation_id,
        )
        return response.json()

    async def update_issue_comment(
        self, repo_name: str, comment_id: int, body: str, installation_id: Optional[int] = None
    ) -> Dict[str, Any]:
        response = await self._request(
            "PATCH", f"/repos/{repo_name}/issues/comments/{comment_id}", json={"body": body},
            repo_name=repo_name, installation_id=installation_id,
        )
        return response.json()

    # ------------------------------------------------------------------
    # Review comments
    # ------------------------------------------------------------------

    async def list_review_comments(
        self, repo_name: str, pr_number: int, installation_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return await self._paginate(
            f"/repos/{repo_name}/pulls/{pr_number}/comments", repo_name, pr_number, installation_id
        )

    async def create_review_comment(
        self,
        repo_name: str,
        pr_number: int,
        comment: Dict[str, Any],
        commit_id: str,
        installation_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Create a standalone review comment from a ``{path, body, line, ...}`` payload."""
        payload = dict(comment)
        payload["commit_id"] = commit_id
        response = await self._request(
            "POST", f"/repos/{repo_name}/pulls/{pr_number}/comments", json=payload,
            repo_name=repo_name, pr_number=pr_number, installation_id=installation_id,
        )
        return response.json()

    async def create_reply_for_review_comment(
        self,
        repo_name: str,
        pr_number: int,
        comment_id: int,
        body: str,
        installation_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        response = await self._request(
            "POST", f"/repos/{repo_name}/pulls/{pr_number}/comments/{comment_id}/replies",
            json={"body": body},
            repo_name=repo_name, pr_number=pr_number, installation_id=installation_id,
        )
        return response.json()

    async def update_review_comment(
        self, repo_name: str, comment_id: int, body: str, installation_id: Optional[int] = None
    ) -> Dict[str, Any]:
        response = await self._request(
            "PATCH", f"/repos/{repo_name}/pulls/comments/{comment_id}", json={"body": body},
            repo_name=repo_name, installation_id=installation_id,
        )
        return response.json()

    async def delete_review_comment(
        self, repo_name: str, comment_id: int, installation_id: Optional[int] = None
    ) -> None:
        await self._request(
            "DELETE", f"/repos/{repo_name}/pulls/comments/{comment_id}",
            repo_name=repo_name, installation_id=installation_id,
        )

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def list_reviews(
        self, repo_name: str, pr_number: int, installation_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        return await self._paginate(
            f"/repos/{repo_name}/pulls/{pr_number}/reviews", repo_name, pr_number, installation_id
        )

    async def create_review(
        self,
        repo_name: str,
        pr_number: int,
        review_data: Dict[str, Any],
        installation_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Create a review; without an ``event`` it stays PENDING until submitted."""
        response = await self._request(
            "POST", f"/repos/{repo_name}/pulls/{pr_number}/reviews", json=review_data,
            repo_name=repo_name, pr_number=pr_number, installation_id=installation_id,
        )
        return response.json()

    async def submit_review(
        self,
        repo_name: str,
        pr_number: int,
        review_id: int,
        body: str,
        event: str = "COMMENT",
        installation_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        response = await self._request(
            "POST", f"/repos/{repo_name}/pulls/{pr_number}/reviews/{review_id}/events",
            json={"event": event, "body": body},
            repo_name=repo_name, pr_number=pr_number, installation_id=installation_id,
        )
        return response.json()

    async def delete_pending_review(
        self, repo_name: str, pr_number: int, review_id: int, installation_id: Optional[int] = None
    ) -> None:
        await self._request(
            "DELETE", f"/repos/{repo_name}/pulls/{pr_number}/reviews/{review_id}",
            repo_name=repo_name, pr_number=pr_number, installation_id=installation_id,
        )

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    async def check_api_health(self, installation_id: Optional[int] = None) -> bool:
        """True when the API answers an authenticated rate-limit query."""
        try:
            await self._request("GET", "/rate_limit", installation_id=installation_id)
            return True
        except Exception as e:
            logger.warning(f"GitHub API health check failed: {e}")
            return False


def _header(response: httpx.Response, name: str) -> Optional[str]:
    headers = getattr(response, "headers", None)
    if not isinstance(headers, (dict, httpx.Headers)):
        return None
    value = headers.get(name)
    return str(value) if value is not None else None
