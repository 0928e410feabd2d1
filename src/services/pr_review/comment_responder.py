"""
Comment Responder

Answers review comments addressed to the bot: replies in conversations the
bot is part of, or where the new comment mentions it.
"""

from typing import Any, Dict, Optional

from src.core.pr_review_config import PRReviewSettings
from src.models.schemas.pr_review.pr_request import PullRequestContext, ReviewCommentEvent
from src.services.github.comment_tags import SUMMARIZE_TAG, get_description, get_short_summary, has_bot_tag
from src.services.github.commenter import Commenter
from src.services.github.pr_api_client import PRApiClient
from src.services.github.run_cache import RunCache
from src.services.llm.chat_bot import ChatBot
from src.services.pr_review.prompts import Inputs, PromptLibrary
from src.services.pr_review.token_budget import TokenBudget
from src.utils.logging import Logger

DIFF_NOT_FOUND_REPLY = "Cannot reply to this comment as diff could not be found."
DIFF_TOO_LARGE_REPLY = (
    "Cannot reply to this comment as diff being commented is too large and exceeds the token limit."
)


class CommentResponder:
    """Handles one ``pull_request_review_comment`` event."""

    def __init__(
        self,
        pr: PullRequestContext,
        api: PRApiClient,
        heavy_bot: ChatBot,
        review_settings: PRReviewSettings,
        prompts: Optional[PromptLibrary] = None,
        cache: Optional[RunCache] = None,
    ):
        self.pr = pr
        self.api = api
        self.bot = heavy_bot
        self.settings = review_settings
        self.prompts = prompts or PromptLibrary()
        self.commenter = Commenter(
            api, pr.repo_full_name, pr.number, cache if cache is not None else RunCache(),
            bot_icon=review_settings.bot_icon, bot_name=review_settings.bot_name,
        )
        self.logger = Logger(__name__, {"repository": pr.repo_full_name, "pr_number": pr.number})

    def should_respond(self, chain: str, body: str) -> bool:
        return has_bot_tag(chain) or self.settings.mention in body

    async def respond(self, comment: ReviewCommentEvent) -> bool:
        """
        Reply to ``comment`` when it is addressed to the bot.

        Returns:
            True when a reply (answer or notice) was posted
        """
        if has_bot_tag(comment.body):
            self.logger.info("Skipped: comment is from the bot itself")
            return False

        inputs = Inputs(system_message=self.settings.system_message)
        inputs.title = self.pr.title or inputs.title
        if self.pr.body:
            inputs.description = get_description(self.pr.body)
        inputs.comment = f"{comment.author}: {comment.body}"
        inputs.diff = comment.diff_hunk
        inputs.filename = comment.path

        chain, top_level = await self.commenter.get_comment_chain(_as_review_comment(comment))
        if top_level is None:
            self.logger.warning("Failed to find the top-level comment to reply to")
            return False
        inputs.comment_chain = chain

        if not self.should_respond(chain, comment.body):
            return False

        file_diff = await self._fetch_file_diff(comment.path)
        if not inputs.diff:
            if file_diff:
                inputs.diff = file_diff
                file_diff = ""
            else:
                await self.commenter.review_comment_reply(top_level, DIFF_NOT_FOUND_REPLY)
                return True

        budget = TokenBudget(
            self.bot.token_limits.request_tokens,
            self.bot.token_count,
            initial_text=self.prompts.render_comment(inputs),
        )
        if budget.remaining < 0:
            await self.commenter.review_comment_reply(top_level, DIFF_TOO_LARGE_REPLY)
            return True

        # the diff is substituted once per placeholder occurrence
        placeholders = self.prompts.comment.count("$file_diff")
        if file_diff and placeholders > 0 and budget.try_add(file_diff, times=placeholders):
            inputs.file_diff = file_diff

        summary = await self.commenter.find_comment_with_tag(SUMMARIZE_TAG)
        if summary is not None:
            short_summary = get_short_summary(summary.get("body") or "")
            if budget.try_add(short_summary):
                inputs.short_summary = short_summary

        reply, _ = await self.bot.chat(self.prompts.render_comment(inputs))
        if not reply:
            self.logger.warning("comment: nothing obtained from the model")
            return False
        await self.commenter.review_comment_reply(top_level, reply)
        return True

    async def _fetch_file_diff(self, filename: str) -> str:
        try:
            diff = await self.api.compare_commits(self.pr.repo_full_name, self.pr.base_sha, self.pr.head_sha)
        except Exception as e:
            self.logger.warning(f"Failed to get file diff: {e}, skipping.")
            return ""
        for entry in diff.get("files") or []:
            if entry.get("filename") == filename:
                return entry.get("patch") or ""
        return ""


def _as_review_comment(comment: ReviewCommentEvent) -> Dict[str, Any]:
    if comment.raw:
        return comment.raw
    return {
        "id": comment.id,
        "body": comment.body,
        "path": comment.path,
        "in_reply_to_id": comment.in_reply_to_id,
        "user": {"login": comment.author},
    }
