"""
Commit Watermark

The summary comment records every head SHA the bot has reviewed inside a
hidden block. On the next run the newest PR commit found in that block is
the starting point of the incremental diff.
"""

from typing import List, Sequence

from src.services.github.comment_tags import COMMIT_ID_END_TAG, COMMIT_ID_START_TAG
from src.utils.logging import get_logger

logger = get_logger(__name__)


class WatermarkTracker:
    """Reads and extends the reviewed-commit block of the summary comment."""

    def __init__(self, summary_body: str = ""):
        self.block = self.get_reviewed_commit_ids_block(summary_body)

    @staticmethod
    def get_reviewed_commit_ids_block(comment_body: str) -> str:
        start = comment_body.find(COMMIT_ID_START_TAG)
        end = comment_body.find(COMMIT_ID_END_TAG)
        if start == -1 or end == -1:
            return ""
        return comment_body[start:end + len(COMMIT_ID_END_TAG)]

    @staticmethod
    def get_reviewed_commit_ids(comment_body: str) -> List[str]:
        start = comment_body.find(COMMIT_ID_START_TAG)
        end = comment_body.find(COMMIT_ID_END_TAG)
        if start == -1 or end == -1:
            return []
        ids = comment_body[start + len(COMMIT_ID_START_TAG):end]
        return [
            part.replace("-->", "").strip()
            for part in ids.split("<!--")
            if part.replace("-->", "").strip()
        ]

    @staticmethod
    def add_reviewed_commit_id(comment_body: str, commit_id: str) -> str:
        """Append ``commit_id`` to the block, creating the block when missing."""
        start = comment_body.find(COMMIT_ID_START_TAG)
        end = comment_body.find(COMMIT_ID_END_TAG)
        if start == -1 or end == -1:
            return f"{comment_body}\n{COMMIT_ID_START_TAG}\n<!-- {commit_id} -->\n{COMMIT_ID_END_TAG}"
        ids = comment_body[start + len(COMMIT_ID_START_TAG):end]
        return (
            f"{comment_body[:start + len(COMMIT_ID_START_TAG)]}"
            f"{ids}<!-- {commit_id} -->\n"
            f"{comment_body[end:]}"
        )

    @staticmethod
    def highest_reviewed_commit(all_commit_ids: Sequence[str], reviewed_commit_ids: Sequence[str]) -> str:
        """Newest PR commit that was already reviewed, or '' when none was."""
        reviewed = set(reviewed_commit_ids)
        for commit_id in reversed(all_commit_ids):
            if commit_id in reviewed:
                return commit_id
        return ""

    def resolve(self, all_commit_ids: Sequence[str], base_sha: str, head_sha: str) -> str:
        """
        Commit the incremental diff starts from.

        Falls back to the PR base when nothing was reviewed yet, and also when
        the head itself was already reviewed so a re-run reviews everything.
        """
        highest = ""
        if self.block:
            highest = self.highest_reviewed_commit(all_commit_ids, self.get_reviewed_commit_ids(self.block))

        if not highest or highest == head_sha:
            logger.info(f"Will review from the base commit: {base_sha}")
            return base_sha

        logger.info(f"Will review from commit: {highest}")
        return highest

    def mark_reviewed(self, head_sha: str) -> str:
        """Block with ``head_sha`` appended; also kept as the tracker's current block."""
        self.block = self.add_reviewed_commit_id(self.block, head_sha)
        return self.block
