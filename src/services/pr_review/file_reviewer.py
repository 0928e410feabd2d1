"""
File Reviewer

Reviews one file: packs as many hunks as fit the heavy model's budget (with
existing conversation chains as optional context), asks for a review, parses
the reply into positioned comments and buffers them for submission.
"""

import asyncio
from typing import List, Optional

from src.core.pr_review_config import PRReviewSettings
from src.models.schemas.pr_review.pr_patch import PRFilePatch
from src.models.schemas.pr_review.review_output import FileOutcome, FileReviewResult, ParsedReview, Suggestion
from src.services.github.comment_submitter import CommentSubmitter
from src.services.github.comment_tags import COMMENT_REPLY_TAG
from src.services.github.commenter import Commenter
from src.services.llm.chat_bot import ChatBot
from src.services.pr_review.prompts import Inputs, PromptLibrary
from src.services.pr_review.response_parser import ResponseParser
from src.services.pr_review.suggestion_extractor import extract_suggestion, to_suggestion_block
from src.services.pr_review.token_budget import TokenBudget
from src.utils.logging import get_logger

logger = get_logger(__name__)

LGTM_MARKERS = ("LGTM", "looks good to me")


def is_lgtm(comment: str) -> bool:
    return any(marker in comment for marker in LGTM_MARKERS)


def suggestion_applies(file: PRFilePatch, review: ParsedReview, suggestion: Suggestion) -> bool:
    """
    Whether committing ``suggestion`` would replace exactly the lines it was
    written for: same file, a range inside one hunk, and not a range inherited
    from a comment that was moved onto a hunk.
    """
    if suggestion.path != file.file_path or suggestion.start_line > suggestion.end_line:
        return False
    if review.relocated and not suggestion.range_from_tag:
        return False
    return any(h.contains(suggestion.start_line, suggestion.end_line) for h in file.hunks)


class FileReviewer:
    """Heavy-tier review of single files, feeding a shared submitter."""

    def __init__(
        self,
        bot: ChatBot,
        prompts: PromptLibrary,
        commenter: Commenter,
        submitter: CommentSubmitter,
        review_settings: PRReviewSettings,
        github_pool: Optional[asyncio.Semaphore] = None,
    ):
        self.bot = bot
        self.prompts = prompts
        self.commenter = commenter
        self.submitter = submitter
        self.settings = review_settings
        self.github_pool = github_pool or asyncio.Semaphore(review_settings.concurrency.github_concurrency_limit)

    async def review(self, file: PRFilePatch, inputs: Inputs) -> FileOutcome:
        """
        Review ``file`` and buffer its comments.

        Returns:
            ``ok`` carrying a FileReviewResult, ``skipped`` when not even one
            hunk fits the budget, ``failed`` when the model gave nothing back
            or the call raised
        """
        filename = file.file_path
        logger.info(f"reviewing {filename}")

        try:
            ins = inputs.clone()
            ins.filename = filename

            budget = TokenBudget(
                self.bot.token_limits.request_tokens,
                self.bot.token_count,
                initial_text=self.prompts.render_review_file_diff(ins),
            )
            packed = budget.pack(hunk.annotated_body for hunk in file.hunks)
            if packed == 0:
                return FileOutcome.skipped(filename, "diff too large")

            for hunk in file.hunks[:packed]:
                chains = await self._comment_chains(filename, hunk.new_start, hunk.new_end)
                if chains and not budget.try_add(chains):
                    chains = ""

                ins.patches += f"\n{hunk.annotated_body}\n"
                if chains:
                    ins.patches += f"\n---comment_chains---\n```\n{chains}\n```\n"
                ins.patches += "\n---end_change_section---\n"

            response, _ = await self.bot.chat(self.prompts.render_review_file_diff(ins))
            if not response:
                logger.info("review: nothing obtained from the model")
                return FileOutcome.failed(filename, "no response")

            reviews = ResponseParser(file.hunk_ranges, debug=self.settings.debug).parse(response)
            result = await self._buffer_reviews(file, reviews)
            return FileOutcome.ok(filename, result)

        except Exception as e:
            logger.warning(f"Failed to review {filename}: {e}, skipping.")
            return FileOutcome.failed(filename, str(e))

    async def _comment_chains(self, filename: str, start_line: int, end_line: int) -> str:
        try:
            async with self.github_pool:
                chains = await self.commenter.get_comment_chains_within_range(
                    filename, start_line, end_line, COMMENT_REPLY_TAG
                )
        except Exception as e:
            logger.warning(f"Failed to get comments: {e}, skipping.")
            return ""
        if chains:
            logger.info(f"Found comment chains: {chains} for {filename}")
        return chains

    async def _buffer_reviews(self, file: PRFilePatch, reviews: List[ParsedReview]) -> FileReviewResult:
        result = FileReviewResult()
        filename = file.file_path

        for review in reviews:
            if not self.settings.review_comment_lgtm and is_lgtm(review.comment):
                result.lgtm_count += 1
                continue

            start_line, end_line = review.start_line, review.end_line
            extracted = extract_suggestion(review.comment, filename, start_line, end_line)
            suggestion = extracted.suggestion
            if suggestion is not None and suggestion_applies(file, review, suggestion):
                body = to_suggestion_block(suggestion)
                start_line, end_line = suggestion.start_line, suggestion.end_line
            else:
                if suggestion is not None:
                    logger.info(
                        f"Dropping suggestion for {suggestion.path}:{suggestion.start_line}-{suggestion.end_line}, "
                        f"not applicable to {filename}"
                    )
                body = extracted.comment

            if not body:
                continue

            try:
                await self.submitter.buffer(filename, start_line, end_line, body)
                result.review_count += 1
            except Exception as e:
                result.failures.append(f"{filename} comment failed ({e})")

        return result
