"""
Comment Submitter

Buffers positioned review comments for one run and publishes them as a
single GitHub review, replacing the bot's earlier comments at the same
ranges. When the batched review is rejected, each comment is posted on its
own so one bad position does not lose the rest.
"""

import asyncio
from typing import List, Optional

from src.models.schemas.pr_review.review_output import ReviewDraftComment
from src.services.github.comment_tags import COMMENT_TAG
from src.services.github.commenter import Commenter
from src.utils.logging import get_logger

logger = get_logger(__name__)


class CommentSubmitter:
    """Review-comment buffer for one pull request."""

    def __init__(self, commenter: Commenter, github_pool: Optional[asyncio.Semaphore] = None):
        self.commenter = commenter
        # host-API pool shared with the rest of the run
        self.github_pool = github_pool or asyncio.Semaphore(1)
        self._buffer: List[ReviewDraftComment] = []
        self._lock = asyncio.Lock()

    @property
    def api(self):
        return self.commenter.api

    @property
    def pending(self) -> List[ReviewDraftComment]:
        return list(self._buffer)

    async def buffer(self, path: str, start_line: int, end_line: int, message: str) -> None:
        """Queue a comment; the body gets the greeting and the bot tag."""
        body = f"{self.commenter.greeting}\n\n{message}\n\n{COMMENT_TAG}"
        async with self._lock:
            self._buffer.append(
                ReviewDraftComment(path=path, start_line=start_line, end_line=end_line, body=body)
            )

    async def delete_pending_review(self) -> None:
        """Remove a PENDING review left behind by an earlier, interrupted run."""
        try:
            async with self.github_pool:
                reviews = await self.api.list_reviews(self.commenter.repo_name, self.commenter.pr_number)
            pending = next((r for r in reviews if r.get("state") == "PENDING"), None)
            if pending is not None:
                logger.info(f"Deleting pending review for PR #{self.commenter.pr_number} id: {pending['id']}")
                async with self.github_pool:
                    await self.api.delete_pending_review(
                        self.commenter.repo_name, self.commenter.pr_number, pending["id"]
                    )
        except Exception as e:
            logger.warning(f"Failed to delete pending review: {e}")

    async def _delete_stale_comments(self) -> None:
        """Delete the bot's earlier comments at the buffered ranges, concurrently within the pool."""
        async with self.github_pool:
            await self.commenter.list_review_comments()

        stale = {}
        for draft in self._buffer:
            existing = await self.commenter.get_comments_at_range(draft.path, draft.start_line, draft.end_line)
            for comment in existing:
                if COMMENT_TAG in (comment.get("body") or ""):
                    stale[comment.get("id")] = comment

        async def _delete(comment):
            async with self.github_pool:
                await self.commenter.delete_review_comment(comment)

        await asyncio.gather(*(_delete(c) for c in stale.values()))

    async def submit_review(self, commit_id: str, status_body: str) -> None:
        """
        Publish the buffer as one review carrying ``status_body``.

        An empty buffer still produces a review so the status is visible.
        """
        repo_name = self.commenter.repo_name
        pr_number = self.commenter.pr_number

        if not self._buffer:
            logger.info(f"Submitting empty review for PR #{pr_number}")
            try:
                async with self.github_pool:
                    await self.api.create_review(
                        repo_name,
                        pr_number,
                        {"commit_id": commit_id, "event": "COMMENT", "body": status_body},
                    )
            except Exception as e:
                logger.warning(f"Failed to submit empty review: {e}")
            return

        await self._delete_stale_comments()
        await self.delete_pending_review()

        comments = [draft.to_review_comment() for draft in self._buffer]
        review_id = None
        try:
            async with self.github_pool:
                review = await self.api.create_review(
                    repo_name, pr_number, {"commit_id": commit_id, "comments": comments}
                )
            review_id = review["id"]
            logger.info(f"Submitting review for PR #{pr_number}, total comments: {len(comments)}, review id: {review_id}")
            async with self.github_pool:
                await self.api.submit_review(repo_name, pr_number, review_id, status_body, event="COMMENT")
        except Exception as e:
            logger.warning(f"Failed to create review: {e}. Falling back to individual comments.")
            await self._fallback_to_individual_comments(commit_id, review_id)
            return

        self._buffer.clear()

    async def _fallback_to_individual_comments(self, commit_id: str, review_id) -> None:
        repo_name = self.commenter.repo_name
        pr_number = self.commenter.pr_number

        if review_id is not None:
            try:
                async with self.github_pool:
                    await self.api.delete_pending_review(repo_name, pr_number, review_id)
            except Exception as e:
                logger.warning(f"Failed to delete pending review {review_id}: {e}")
        else:
            await self.delete_pending_review()

        created = 0
        for draft in self._buffer:
            try:
                async with self.github_pool:
                    await self.api.create_review_comment(
                        repo_name, pr_number, draft.to_review_comment(), commit_id
                    )
                created += 1
            except Exception as e:
                logger.warning(f"Failed to create review comment on {draft.path}:{draft.start_line}-{draft.end_line}: {e}")

        logger.info(f"Created {created} / {len(self._buffer)} review comments individually")
        self._buffer.clear()
