"""
Commenter

Issue-comment and review-comment helpers for one pull request: tagged
create-or-replace, cached listings, comment chains and threaded replies.
"""

from typing import Any, Dict, List, Optional, Tuple

from src.services.github.comment_tags import (
    COMMENT_REPLY_TAG,
    COMMENT_TAG,
    DESCRIPTION_END_TAG,
    DESCRIPTION_START_TAG,
    comment_greeting,
    get_description,
)
from src.services.github.pr_api_client import PRApiClient
from src.services.github.run_cache import RunCache
from src.utils.logging import get_logger

logger = get_logger(__name__)


class Commenter:
    """Comment operations on ``repo_name#pr_number`` backed by a per-run cache."""

    def __init__(
        self,
        api: PRApiClient,
        repo_name: str,
        pr_number: int,
        cache: RunCache,
        bot_icon: str = "",
        bot_name: str = "sentinel",
    ):
        self.api = api
        self.repo_name = repo_name
        self.pr_number = pr_number
        self.cache = cache
        self.greeting = comment_greeting(bot_icon, bot_name)

    # ------------------------------------------------------------------
    # Issue comments
    # ------------------------------------------------------------------

    async def comment(self, message: str, tag: str = COMMENT_TAG, mode: str = "replace") -> None:
        """Post ``message`` framed by greeting and ``tag``; ``replace`` edits the tagged comment in place."""
        body = f"{self.greeting}\n\n{message}\n\n{tag}"
        if mode == "create":
            await self.create(body)
        elif mode == "replace":
            await self.replace(body, tag)
        else:
            logger.warning(f"Unknown comment mode: {mode}, falling back to replace")
            await self.replace(body, tag)

    async def create(self, body: str) -> None:
        try:
            created = await self.api.create_issue_comment(self.repo_name, self.pr_number, body)
        except Exception as e:
            logger.warning(f"Failed to create comment: {e}")
            return
        if self.pr_number in self.cache.issue_comments:
            self.cache.issue_comments[self.pr_number].append(created)

    async def replace(self, body: str, tag: str) -> None:
        existing = await self.find_comment_with_tag(tag)
        if existing is None:
            await self.create(body)
            return
        try:
            await self.api.update_issue_comment(self.repo_name, existing["id"], body)
            existing["body"] = body
        except Exception as e:
            logger.warning(f"Failed to replace comment: {e}")

    async def find_comment_with_tag(self, tag: str) -> Optional[Dict[str, Any]]:
        for comment in await self.list_all_comments():
            if comment.get("body") and tag in comment["body"]:
                return comment
        return None

    async def list_all_comments(self) -> List[Dict[str, Any]]:
        if self.pr_number in self.cache.issue_comments:
            return self.cache.issue_comments[self.pr_number]
        try:
            comments = await self.api.list_issue_comments(self.repo_name, self.pr_number)
        except Exception as e:
            logger.warning(f"Failed to list comments: {e}")
            return []
        self.cache.issue_comments[self.pr_number] = comments
        return comments

    # ------------------------------------------------------------------
    # Review comments
    # ------------------------------------------------------------------

    async def list_review_comments(self) -> List[Dict[str, Any]]:
        if self.pr_number in self.cache.review_comments:
            return self.cache.review_comments[self.pr_number]
        try:
            comments = await self.api.list_review_comments(self.repo_name, self.pr_number)
        except Exception as e:
            logger.warning(f"Failed to list review comments: {e}")
            return []
        self.cache.review_comments[self.pr_number] = comments
        return comments

    async def get_comments_within_range(self, path: str, start_line: int, end_line: int) -> List[Dict[str, Any]]:
        comments = await self.list_review_comments()
        return [
            c for c in comments
            if c.get("path") == path and c.get("body") and _within_range(c, start_line, end_line)
        ]

    async def get_comments_at_range(self, path: str, start_line: int, end_line: int) -> List[Dict[str, Any]]:
        comments = await self.list_review_comments()
        return [
            c for c in comments
            if c.get("path") == path and c.get("body") and _at_range(c, start_line, end_line)
        ]

    async def get_comment_chains_within_range(
        self, path: str, start_line: int, end_line: int, tag: str = ""
    ) -> str:
        """All conversation chains on ``path`` within the range whose text contains ``tag``."""
        existing = await self.get_comments_within_range(path, start_line, end_line)
        chains = ""
        chain_num = 0
        for top_level in (c for c in existing if not c.get("in_reply_to_id")):
            chain = self.compose_comment_chain(existing, top_level)
            if chain and tag in chain:
                chain_num += 1
                chains += f"Conversation Chain {chain_num}:\n{chain}\n---\n"
        return chains

    def compose_comment_chain(self, review_comments: List[Dict[str, Any]], top_level: Dict[str, Any]) -> str:
        replies = [
            f"{_login(c)}: {c.get('body', '')}"
            for c in review_comments
            if c.get("in_reply_to_id") == top_level["id"]
        ]
        return "\n---\n".join([f"{_login(top_level)}: {top_level.get('body', '')}"] + replies)

    def get_top_level_comment(self, review_comments: List[Dict[str, Any]], comment: Dict[str, Any]) -> Dict[str, Any]:
        top_level = comment
        by_id = {c["id"]: c for c in review_comments}
        while top_level.get("in_reply_to_id"):
            parent = by_id.get(top_level["in_reply_to_id"])
            if parent is None:
                break
            top_level = parent
        return top_level

    async def get_comment_chain(self, comment: Dict[str, Any]) -> Tuple[str, Optional[Dict[str, Any]]]:
        """Chain text from ``comment``'s root, and the root comment itself."""
        try:
            review_comments = await self.list_review_comments()
            top_level = self.get_top_level_comment(review_comments, comment)
            return self.compose_comment_chain(review_comments, top_level), top_level
        except Exception as e:
            logger.warning(f"Failed to get conversation chain: {e}")
            return "", None

    async def review_comment_reply(self, top_level: Dict[str, Any], message: str) -> None:
        """Reply in the thread, then mark the thread root as answered."""
        reply = f"{self.greeting}\n\n{message}\n\n{COMMENT_REPLY_TAG}\n"
        try:
            await self.api.create_reply_for_review_comment(
                self.repo_name, self.pr_number, top_level["id"], reply
            )
        except Exception as e:
            logger.warning(f"Failed to reply to the top-level comment: {e}")
            try:
                await self.api.create_reply_for_review_comment(
                    self.repo_name,
                    self.pr_number,
                    top_level["id"],
                    f"Could not post the reply to the top-level comment due to the following error: {e}",
                )
            except Exception as inner:
                logger.warning(f"Failed to reply to the top-level comment: {inner}")

        try:
            body = top_level.get("body") or ""
            if COMMENT_TAG in body:
                await self.api.update_review_comment(
                    self.repo_name, top_level["id"], body.replace(COMMENT_TAG, COMMENT_REPLY_TAG)
                )
        except Exception as e:
            logger.warning(f"Failed to update the top-level comment: {e}")

    async def delete_review_comment(self, comment: Dict[str, Any]) -> bool:
        try:
            await self.api.delete_review_comment(self.repo_name, comment["id"])
        except Exception as e:
            logger.warning(f"Failed to delete review comment {comment.get('id')}: {e}")
            return False
        cached = self.cache.review_comments.get(self.pr_number)
        if cached is not None:
            self.cache.review_comments[self.pr_number] = [c for c in cached if c["id"] != comment["id"]]
        return True

    # ------------------------------------------------------------------
    # Pull request
    # ------------------------------------------------------------------

    async def update_description(self, message: str) -> None:
        """Write ``message`` between the release-notes tags, keeping the human-written description."""
        try:
            pr = await self.api.get_pr_details(self.repo_name, self.pr_number)
            description = get_description(pr.get("body") or "")
            cleaned = message.replace(DESCRIPTION_START_TAG, "").replace(DESCRIPTION_END_TAG, "")
            new_body = f"{description}\n{DESCRIPTION_START_TAG}\n{cleaned}\n{DESCRIPTION_END_TAG}"
            await self.api.update_pr(self.repo_name, self.pr_number, new_body)
        except Exception as e:
            logger.warning(f"Failed to get PR: {e}, skipping adding release notes to description.")

    async def get_all_commit_ids(self) -> List[str]:
        """PR commit SHAs, oldest first."""
        if self.pr_number not in self.cache.commits:
            try:
                self.cache.commits[self.pr_number] = await self.api.list_pr_commits(
                    self.repo_name, self.pr_number
                )
            except Exception as e:
                logger.warning(f"Failed to list commits: {e}")
                return []
        return [c["sha"] for c in self.cache.commits[self.pr_number]]


def _login(comment: Dict[str, Any]) -> str:
    return (comment.get("user") or {}).get("login", "")


def _within_range(comment: Dict[str, Any], start_line: int, end_line: int) -> bool:
    line = comment.get("line")
    comment_start = comment.get("start_line")
    if comment_start is not None and line is not None:
        if comment_start >= start_line and line <= end_line:
            return True
    return start_line == end_line and line == end_line


def _at_range(comment: Dict[str, Any], start_line: int, end_line: int) -> bool:
    line = comment.get("line")
    if comment.get("start_line") == start_line and line == end_line:
        return True
    return start_line == end_line and line == end_line
