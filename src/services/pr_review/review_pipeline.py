"""
Review Pipeline

Runs one review of a pull request through a fixed sequence of states:

    DETERMINE_WATERMARK -> FETCH_DIFF -> FILTER_PATHS -> SUMMARIZE_FILES
    -> AGGREGATE_SUMMARIES -> FINAL_SUMMARY -> RELEASE_NOTES -> SHORT_SUMMARY
    -> POST_SUMMARY -> REVIEW_FILES -> SUBMIT_REVIEW -> POST_FINAL_SUMMARY

Per-file work (summaries, reviews, base content fetches) runs concurrently
under two independent pools, one for model calls and one for GitHub calls.
A failing file is recorded in the run status and never stops its siblings.
"""

import asyncio
import re
from enum import Enum
from typing import Dict, List, Optional

from src.core.pr_review_config import PRReviewSettings
from src.models.schemas.pr_review.pr_patch import PRFilePatch
from src.models.schemas.pr_review.pr_request import PullRequestContext
from src.models.schemas.pr_review.review_output import FileOutcome, FileSummary
from src.services.github.comment_submitter import CommentSubmitter
from src.services.github.comment_tags import (
    RAW_SUMMARY_END_TAG,
    RAW_SUMMARY_START_TAG,
    SHORT_SUMMARY_END_TAG,
    SHORT_SUMMARY_START_TAG,
    SUMMARIZE_TAG,
    add_in_progress_status,
    get_description,
    get_raw_summary,
    get_short_summary,
    remove_in_progress_status,
)
from src.services.github.commenter import Commenter
from src.services.github.pr_api_client import PRApiClient
from src.services.github.run_cache import RunCache
from src.services.llm.chat_bot import ChatBot
from src.services.pr_review.file_processor import FileProcessor
from src.services.pr_review.file_reviewer import FileReviewer
from src.services.pr_review.path_filter import PathFilter
from src.services.pr_review.prompts import Inputs, PromptLibrary
from src.services.pr_review.status_report import RunStatus
from src.services.pr_review.watermark import WatermarkTracker
from src.utils.logging import Logger

TRIAGE_PATTERN = re.compile(r'\[TRIAGE\]:\s*(NEEDS_REVIEW|APPROVED)')


class PipelineState(str, Enum):
    DETERMINE_WATERMARK = "determine_watermark"
    FETCH_DIFF = "fetch_diff"
    FILTER_PATHS = "filter_paths"
    SUMMARIZE_FILES = "summarize_files"
    AGGREGATE_SUMMARIES = "aggregate_summaries"
    FINAL_SUMMARY = "final_summary"
    RELEASE_NOTES = "release_notes"
    SHORT_SUMMARY = "short_summary"
    POST_SUMMARY = "post_summary"
    REVIEW_FILES = "review_files"
    SUBMIT_REVIEW = "submit_review"
    POST_FINAL_SUMMARY = "post_final_summary"
    SKIPPED = "skipped"
    DONE = "done"


def parse_triage(response: str, review_simple_changes: bool) -> FileSummary:
    """
    Split a summarize reply into summary text and review verdict.

    Without a well-formed ``[TRIAGE]:`` marker the file needs review.
    """
    if not review_simple_changes:
        match = TRIAGE_PATTERN.search(response)
        if match:
            summary = TRIAGE_PATTERN.sub("", response).strip()
            return FileSummary(filename="", summary=summary, needs_review=match.group(1) == "NEEDS_REVIEW")
    return FileSummary(filename="", summary=response, needs_review=True)


class ReviewPipeline:
    """One review run over one pull request."""

    def __init__(
        self,
        pr: PullRequestContext,
        api: PRApiClient,
        light_bot: ChatBot,
        heavy_bot: ChatBot,
        review_settings: PRReviewSettings,
        prompts: Optional[PromptLibrary] = None,
        cache: Optional[RunCache] = None,
    ):
        self.pr = pr
        self.api = api
        self.light_bot = light_bot
        self.heavy_bot = heavy_bot
        self.settings = review_settings
        self.prompts = prompts or PromptLibrary()
        self.cache = cache if cache is not None else RunCache()

        self.logger = Logger(__name__, {"repository": pr.repo_full_name, "pr_number": pr.number})
        self.llm_pool = asyncio.Semaphore(review_settings.concurrency.llm_concurrency_limit)
        self.github_pool = asyncio.Semaphore(review_settings.concurrency.github_concurrency_limit)

        self.commenter = Commenter(
            api, pr.repo_full_name, pr.number, self.cache,
            bot_icon=review_settings.bot_icon, bot_name=review_settings.bot_name,
        )
        self.submitter = CommentSubmitter(self.commenter, self.github_pool)
        self.file_processor = FileProcessor(api, PathFilter(review_settings.path_filters), self.github_pool)
        self.reviewer = FileReviewer(
            heavy_bot, self.prompts, self.commenter, self.submitter, review_settings, self.github_pool
        )

        self.state = PipelineState.DETERMINE_WATERMARK
        self.inputs = Inputs(system_message=review_settings.system_message)
        self.watermark = WatermarkTracker()
        self.status = RunStatus(base_sha=pr.base_sha, head_sha=pr.head_sha)
        self.existing_summary_body = ""
        self.commits: List[Dict] = []
        self.files: List[PRFilePatch] = []
        self.summaries: List[FileSummary] = []
        self.final_summary = ""
        self.summarize_comment = ""

    def _enter(self, state: PipelineState) -> None:
        self.state = state
        self.logger.debug(f"pipeline state: {state.value}")

    def _skip(self, reason: str) -> None:
        self.logger.warning(f"Skipped: {reason}")
        self.state = PipelineState.SKIPPED

    @property
    def processed_files(self) -> List[PRFilePatch]:
        """Files within the ``max_files`` cap; the rest are never attempted."""
        max_files = self.settings.limits.max_files
        return self.files if max_files <= 0 else self.files[:max_files]

    async def run(self) -> Optional[RunStatus]:
        """
        Execute the pipeline.

        Returns:
            The run status, or None when the run was skipped (ignore keyword,
            nothing changed, everything filtered out)
        """
        self.inputs.title = self.pr.title or self.inputs.title
        if self.pr.body:
            self.inputs.description = get_description(self.pr.body)
        if self.settings.ignore_keyword in self.inputs.description:
            self._skip("description contains ignore_keyword")
            return None

        self._enter(PipelineState.DETERMINE_WATERMARK)
        from_sha = await self.determine_watermark()

        self._enter(PipelineState.FETCH_DIFF)
        files, self.commits = await self.file_processor.get_changed_files(self.pr, from_sha)
        if not files:
            self._skip("no changed files")
            return None
        self.status.base_sha = from_sha

        self._enter(PipelineState.FILTER_PATHS)
        selected, ignored = self.file_processor.filter_ignored_files(files)
        self.status.ignored = [f["filename"] for f in ignored]
        if not selected:
            self._skip("all files filtered out")
            return None

        self.files, no_hunks = await self.file_processor.build_file_changes(selected, self.pr)
        for outcome in no_hunks:
            self.status.record(outcome, "parse")
        if not self.files:
            self._skip("no files to review")
            return None
        self.status.selected = [(f.file_path, len(f.hunks)) for f in self.files]

        await self.post_in_progress()

        self._enter(PipelineState.SUMMARIZE_FILES)
        await self.summarize_files()

        self._enter(PipelineState.AGGREGATE_SUMMARIES)
        await self.aggregate_summaries()

        self._enter(PipelineState.FINAL_SUMMARY)
        self.final_summary = await self._heavy_chat(self.prompts.render_summarize(self.inputs), "summarize")

        if not self.settings.disable_release_notes:
            self._enter(PipelineState.RELEASE_NOTES)
            await self.release_notes()

        self._enter(PipelineState.SHORT_SUMMARY)
        self.inputs.short_summary = await self._heavy_chat(
            self.prompts.render_summarize_short(self.inputs), "short summary"
        )

        self._enter(PipelineState.POST_SUMMARY)
        await self.post_summary()

        if not self.settings.disable_review:
            self._enter(PipelineState.REVIEW_FILES)
            await self.review_files()

            self._enter(PipelineState.SUBMIT_REVIEW)
            await self.submit_review()

        self._enter(PipelineState.POST_FINAL_SUMMARY)
        await self.commenter.comment(self.summarize_comment, SUMMARIZE_TAG, "replace")

        self._enter(PipelineState.DONE)
        return self.status

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    async def determine_watermark(self) -> str:
        existing = await self.commenter.find_comment_with_tag(SUMMARIZE_TAG)
        if existing is not None:
            self.existing_summary_body = existing.get("body") or ""
            self.inputs.raw_summary = get_raw_summary(self.existing_summary_body)
            self.inputs.short_summary = get_short_summary(self.existing_summary_body)
        self.watermark = WatermarkTracker(self.existing_summary_body)

        all_commit_ids = await self.commenter.get_all_commit_ids()
        return self.watermark.resolve(all_commit_ids, self.pr.base_sha, self.pr.head_sha)

    async def post_in_progress(self) -> None:
        body = self._strip_frame(self.existing_summary_body)
        await self.commenter.comment(
            add_in_progress_status(body, self.status.render_files()), SUMMARIZE_TAG, "replace"
        )

    async def summarize_files(self) -> None:
        processed = self.processed_files
        for skipped in self.files[len(processed):]:
            self.status.record(FileOutcome.skipped(skipped.file_path, "limit reached"), "limit")

        outcomes = await asyncio.gather(*(self._summarize_in_pool(f) for f in processed))
        for outcome in outcomes:
            if outcome.is_ok:
                self.summaries.append(outcome.data)
            else:
                self.status.record(outcome, "summarize")

    async def _summarize_in_pool(self, file: PRFilePatch) -> FileOutcome:
        async with self.llm_pool:
            return await self.summarize_file(file)

    async def summarize_file(self, file: PRFilePatch) -> FileOutcome:
        filename = file.file_path
        self.logger.info(f"summarize: {filename}")
        if not file.patch:
            return FileOutcome.failed(filename, "empty diff")

        ins = self.inputs.clone()
        ins.filename = filename
        ins.file_diff = file.patch
        prompt = self.prompts.render_summarize_file_diff(ins, self.settings.review_simple_changes)

        if self.light_bot.token_count(prompt) > self.light_bot.token_limits.request_tokens:
            self.logger.info(f"summarize: diff tokens exceeds limit, skip {filename}")
            return FileOutcome.failed(filename, "diff tokens exceeds limit")

        try:
            response, _ = await self.light_bot.chat(prompt)
        except Exception as e:
            self.logger.warning(f"summarize: error from the model: {e}")
            return FileOutcome.failed(filename, f"error from the model: {e}")

        if not response:
            return FileOutcome.failed(filename, "nothing obtained from the model")

        summary = parse_triage(response, self.settings.review_simple_changes)
        summary.filename = filename
        self.logger.info(f"filename: {filename}, needs review: {summary.needs_review}")
        return FileOutcome.ok(filename, summary)

    async def aggregate_summaries(self) -> None:
        """Fold per-file summaries into the raw summary, one sequential call per batch."""
        batch_size = self.settings.limits.summary_batch_size
        for i in range(0, len(self.summaries), batch_size):
            for summary in self.summaries[i:i + batch_size]:
                self.inputs.raw_summary += f"---\n{summary.filename}: {summary.summary}\n"
            response = await self._heavy_chat(
                self.prompts.render_summarize_changesets(self.inputs), "summarize changesets"
            )
            if response:
                self.inputs.raw_summary = response

    async def release_notes(self) -> None:
        response = await self._heavy_chat(
            self.prompts.render_summarize_release_notes(self.inputs), "release notes"
        )
        if not response:
            return
        bot = self.settings.bot_name.capitalize()
        await self.commenter.update_description(f"### Summary by {bot}\n\n{response}")

    async def post_summary(self) -> None:
        self.summarize_comment = (
            f"{self.final_summary}\n"
            f"{RAW_SUMMARY_START_TAG}\n{self.inputs.raw_summary}\n{RAW_SUMMARY_END_TAG}\n"
            f"{SHORT_SUMMARY_START_TAG}\n{self.inputs.short_summary}\n{SHORT_SUMMARY_END_TAG}\n"
        )
        in_progress = self.status.render_files() + self.status.render_processing()
        await self.commenter.comment(
            add_in_progress_status(self.summarize_comment, in_progress), SUMMARIZE_TAG, "replace"
        )

    async def review_files(self) -> None:
        verdicts = {s.filename: s.needs_review for s in self.summaries}
        to_review: List[PRFilePatch] = []
        for file in self.processed_files:
            if verdicts.get(file.file_path, True):
                to_review.append(file)
            else:
                self.status.record(FileOutcome.skipped(file.file_path, "approved by triage"), "review")

        outcomes = await asyncio.gather(*(self._review_in_pool(f) for f in to_review))
        for outcome in outcomes:
            if outcome.is_ok:
                self.status.review_count += outcome.data.review_count
                self.status.lgtm_count += outcome.data.lgtm_count
                self.status.reviews_failed.extend(outcome.data.failures)
            else:
                self.status.record(outcome, "review")

    async def _review_in_pool(self, file: PRFilePatch) -> FileOutcome:
        async with self.llm_pool:
            return await self.reviewer.review(file, self.inputs)

    async def submit_review(self) -> None:
        self.summarize_comment += f"\n{self.watermark.mark_reviewed(self.pr.head_sha)}"
        commit_id = self.commits[-1]["sha"] if self.commits else self.pr.head_sha
        await self.submitter.submit_review(commit_id, self.status.render(self.settings.bot_name))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _heavy_chat(self, prompt: str, step: str) -> str:
        response, _ = await self.heavy_bot.chat(prompt)
        if not response:
            self.logger.info(f"{step}: nothing obtained from the model")
        return response

    def _strip_frame(self, body: str) -> str:
        """Previous summary body without greeting, tag or stale progress block."""
        body = remove_in_progress_status(body).replace(SUMMARIZE_TAG, "")
        if body.startswith(self.commenter.greeting):
            body = body[len(self.commenter.greeting):]
        return body.strip()
