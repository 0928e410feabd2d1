"""Tests for the reviewed-commit watermark kept in the summary comment."""

from src.services.github.comment_tags import COMMIT_ID_END_TAG, COMMIT_ID_START_TAG
from src.services.pr_review.watermark import WatermarkTracker

BASE = "b" * 40
C1 = "1" * 40
C2 = "2" * 40
HEAD = "3" * 40


def _summary_with(*commit_ids):
    ids = "".join(f"<!-- {c} -->\n" for c in commit_ids)
    return f"Walkthrough text\n{COMMIT_ID_START_TAG}\n{ids}{COMMIT_ID_END_TAG}\n"


class TestReviewedCommitIds:

    def test_ids_are_read_back(self):
        assert WatermarkTracker.get_reviewed_commit_ids(_summary_with(C1, C2)) == [C1, C2]

    def test_missing_block(self):
        assert WatermarkTracker.get_reviewed_commit_ids("no block here") == []
        assert WatermarkTracker.get_reviewed_commit_ids_block("no block here") == ""

    def test_block_spans_both_tags(self):
        block = WatermarkTracker.get_reviewed_commit_ids_block(_summary_with(C1))

        assert block.startswith(COMMIT_ID_START_TAG)
        assert block.endswith(COMMIT_ID_END_TAG)

    def test_add_creates_block(self):
        body = WatermarkTracker.add_reviewed_commit_id("summary", C1)

        assert body.startswith("summary\n")
        assert WatermarkTracker.get_reviewed_commit_ids(body) == [C1]

    def test_add_appends_to_existing_block(self):
        body = WatermarkTracker.add_reviewed_commit_id(_summary_with(C1), C2)

        assert WatermarkTracker.get_reviewed_commit_ids(body) == [C1, C2]
        assert body.startswith("Walkthrough text\n")


class TestResolve:

    def test_highest_reviewed_is_newest_pr_commit(self):
        assert WatermarkTracker.highest_reviewed_commit([C1, C2, HEAD], [C2, C1]) == C2
        assert WatermarkTracker.highest_reviewed_commit([C1, C2], ["f" * 40]) == ""

    def test_first_run_starts_at_base(self):
        assert WatermarkTracker("").resolve([C1, HEAD], BASE, HEAD) == BASE

    def test_incremental_run_starts_at_last_reviewed(self):
        tracker = WatermarkTracker(_summary_with(C1))

        assert tracker.resolve([C1, C2, HEAD], BASE, HEAD) == C1

    def test_reviewed_head_falls_back_to_base(self):
        tracker = WatermarkTracker(_summary_with(C1, HEAD))

        assert tracker.resolve([C1, HEAD], BASE, HEAD) == BASE

    def test_force_pushed_commits_are_ignored(self):
        tracker = WatermarkTracker(_summary_with("e" * 40))

        assert tracker.resolve([C1, HEAD], BASE, HEAD) == BASE

    def test_mark_reviewed_extends_block(self):
        tracker = WatermarkTracker(_summary_with(C1))

        block = tracker.mark_reviewed(HEAD)

        assert WatermarkTracker.get_reviewed_commit_ids(block) == [C1, HEAD]
        assert tracker.block == block
        assert not block.startswith("Walkthrough")
