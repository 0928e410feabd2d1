"""
File Processor

Collects the files a run should look at: the incremental diff since the
watermark intersected with the full PR diff, filtered by path rules and
parsed into hunks.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

from src.models.schemas.pr_review.pr_patch import PRFilePatch
from src.models.schemas.pr_review.pr_request import PullRequestContext
from src.models.schemas.pr_review.review_output import FileOutcome
from src.services.diff_parsing.unified_diff_parser import UnifiedDiffParser
from src.services.github.pr_api_client import PRApiClient
from src.services.pr_review.path_filter import PathFilter
from src.utils.logging import get_logger

logger = get_logger(__name__)

FileEntry = Dict[str, Any]


class FileProcessor:
    """Fetches, filters and parses the changed files of a pull request."""

    def __init__(
        self,
        api: PRApiClient,
        path_filter: PathFilter,
        github_pool: asyncio.Semaphore,
        parser: Optional[UnifiedDiffParser] = None,
    ):
        self.api = api
        self.path_filter = path_filter
        self.github_pool = github_pool
        self.parser = parser or UnifiedDiffParser()

    async def get_changed_files(
        self, pr: PullRequestContext, highest_reviewed_commit: str
    ) -> Tuple[List[FileEntry], List[Dict[str, Any]]]:
        """
        Files of the full PR diff that also changed since ``highest_reviewed_commit``.

        The full-diff entry is kept so hunks are positioned against the PR
        base, which is what review comments attach to.

        Returns:
            Tuple of (files, commits of the incremental range)
        """
        incremental = await self.api.compare_commits(pr.repo_full_name, highest_reviewed_commit, pr.head_sha)
        target_branch = await self.api.compare_commits(pr.repo_full_name, pr.base_sha, pr.head_sha)

        commits = incremental.get("commits") or []
        incremental_files = incremental.get("files")
        target_files = target_branch.get("files")
        if incremental_files is None or target_files is None:
            logger.warning("Skipped: files data is missing")
            return [], commits

        changed = {f["filename"] for f in incremental_files}
        files = [f for f in target_files if f["filename"] in changed]
        return files, commits

    def filter_ignored_files(self, files: List[FileEntry]) -> Tuple[List[FileEntry], List[FileEntry]]:
        selected: List[FileEntry] = []
        ignored: List[FileEntry] = []
        for entry in files:
            ok = self.path_filter.check(entry["filename"])
            logger.debug(f"checking path: {entry['filename']} => {ok}")
            (selected if ok else ignored).append(entry)
        return selected, ignored

    async def build_file_changes(
        self, files: List[FileEntry], pr: PullRequestContext
    ) -> Tuple[List[PRFilePatch], List[FileOutcome]]:
        """
        Parse each selected file, fetching base contents through the host-API pool.

        Returns:
            Tuple of (parsed files in input order, "no hunks" outcomes)
        """
        results = await asyncio.gather(*(self._build_one(entry, pr) for entry in files))

        patches: List[PRFilePatch] = []
        no_hunks: List[FileOutcome] = []
        for entry, patch in zip(files, results):
            if patch is None:
                no_hunks.append(FileOutcome.skipped(entry["filename"], "no hunks"))
            else:
                patches.append(patch)
        return patches, no_hunks

    async def _build_one(self, entry: FileEntry, pr: PullRequestContext) -> Optional[PRFilePatch]:
        filename = entry["filename"]
        async with self.github_pool:
            base_content = await self._get_base_content(filename, pr)
        return self.parser.parse_file(
            filename,
            entry.get("patch"),
            base_content=base_content,
            previous_filename=entry.get("previous_filename"),
        )

    async def _get_base_content(self, filename: str, pr: PullRequestContext) -> str:
        try:
            content = await self.api.get_file_content(pr.repo_full_name, filename, pr.base_sha)
        except Exception as e:
            logger.warning(f"Failed to get file contents: {e}. This is OK if it's a new file.")
            return ""
        return content or ""
