"""
Tests for Commenter and CommentSubmitter

The API client is an AsyncMock; listings go through the per-run cache.
"""

import asyncio

import pytest

from src.services.github.comment_submitter import CommentSubmitter
from src.services.github.comment_tags import (
    COMMENT_REPLY_TAG,
    COMMENT_TAG,
    DESCRIPTION_END_TAG,
    DESCRIPTION_START_TAG,
    SUMMARIZE_TAG,
)
from src.services.github.commenter import Commenter
from src.services.github.run_cache import RunCache

REPO = "test-owner/test-repo"
COMMIT = "1234567890abcdef1234567890abcdef12345678"


@pytest.fixture
def commenter(mock_api):
    return Commenter(mock_api, REPO, 42, RunCache(), bot_icon="*", bot_name="sentinel")


@pytest.fixture
def thread():
    return [
        {"id": 1, "path": "a.py", "start_line": 10, "line": 12, "body": f"Top {COMMENT_TAG}",
         "user": {"login": "sentinel[bot]"}},
        {"id": 2, "path": "a.py", "start_line": 10, "line": 12, "in_reply_to_id": 1, "body": "why?",
         "user": {"login": "dev"}},
        {"id": 3, "path": "a.py", "line": 30, "body": "human note", "user": {"login": "dev"}},
        {"id": 4, "path": "b.py", "start_line": 10, "line": 12, "body": f"Other {COMMENT_TAG}",
         "user": {"login": "sentinel[bot]"}},
    ]


class TestIssueComments:

    @pytest.mark.asyncio
    async def test_replace_creates_when_missing(self, commenter, mock_api):
        await commenter.comment("hello", SUMMARIZE_TAG, "replace")

        repo, number, body = mock_api.create_issue_comment.call_args.args
        assert (repo, number) == (REPO, 42)
        assert body == f"{commenter.greeting}\n\nhello\n\n{SUMMARIZE_TAG}"

    @pytest.mark.asyncio
    async def test_replace_updates_tagged_comment(self, commenter, mock_api):
        mock_api.list_issue_comments.return_value = [
            {"id": 9, "body": "unrelated"},
            {"id": 5, "body": f"old {SUMMARIZE_TAG}"},
        ]

        await commenter.comment("new", SUMMARIZE_TAG, "replace")

        mock_api.update_issue_comment.assert_awaited_once()
        assert mock_api.update_issue_comment.call_args.args[1] == 5
        mock_api.create_issue_comment.assert_not_called()

        # the cached copy reflects the edit
        found = await commenter.find_comment_with_tag(SUMMARIZE_TAG)
        assert "new" in found["body"]

    @pytest.mark.asyncio
    async def test_listing_is_cached(self, commenter, mock_api):
        await commenter.list_all_comments()
        await commenter.find_comment_with_tag(SUMMARIZE_TAG)

        mock_api.list_issue_comments.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_created_comment_joins_cache(self, commenter, mock_api):
        mock_api.create_issue_comment.return_value = {"id": 11, "body": f"x {SUMMARIZE_TAG}"}
        await commenter.list_all_comments()

        await commenter.comment("x", SUMMARIZE_TAG, "create")

        assert (await commenter.find_comment_with_tag(SUMMARIZE_TAG))["id"] == 11

    @pytest.mark.asyncio
    async def test_update_description_keeps_human_text(self, commenter, mock_api):
        mock_api.get_pr_details.return_value = {
            "body": f"Human text\n{DESCRIPTION_START_TAG}\nold notes\n{DESCRIPTION_END_TAG}"
        }

        await commenter.update_description("new notes")

        body = mock_api.update_pr.call_args.args[2]
        assert body == f"Human text\n\n{DESCRIPTION_START_TAG}\nnew notes\n{DESCRIPTION_END_TAG}"

    @pytest.mark.asyncio
    async def test_commit_ids_oldest_first(self, commenter, mock_api):
        mock_api.list_pr_commits.return_value = [{"sha": "a1"}, {"sha": "b2"}]

        assert await commenter.get_all_commit_ids() == ["a1", "b2"]
        assert await commenter.get_all_commit_ids() == ["a1", "b2"]
        mock_api.list_pr_commits.assert_awaited_once()


class TestReviewComments:

    @pytest.mark.asyncio
    async def test_chains_within_range(self, commenter, mock_api, thread):
        mock_api.list_review_comments.return_value = thread

        chains = await commenter.get_comment_chains_within_range("a.py", 10, 15, COMMENT_TAG)

        assert chains == (
            f"Conversation Chain 1:\nsentinel[bot]: Top {COMMENT_TAG}\n---\ndev: why?\n---\n"
        )

    @pytest.mark.asyncio
    async def test_chains_filtered_by_tag(self, commenter, mock_api, thread):
        mock_api.list_review_comments.return_value = thread

        assert await commenter.get_comment_chains_within_range("a.py", 10, 15, COMMENT_REPLY_TAG) == ""

    @pytest.mark.asyncio
    async def test_single_line_comment_matches_single_line_range(self, commenter, mock_api, thread):
        mock_api.list_review_comments.return_value = thread

        within = await commenter.get_comments_within_range("a.py", 30, 30)
        at = await commenter.get_comments_at_range("a.py", 10, 12)

        assert [c["id"] for c in within] == [3]
        assert [c["id"] for c in at] == [1, 2]

    @pytest.mark.asyncio
    async def test_comment_chain_from_reply(self, commenter, mock_api, thread):
        mock_api.list_review_comments.return_value = thread

        chain, top_level = await commenter.get_comment_chain(thread[1])

        assert top_level["id"] == 1
        assert chain.endswith("dev: why?")

    @pytest.mark.asyncio
    async def test_reply_marks_thread_answered(self, commenter, mock_api, thread):
        await commenter.review_comment_reply(thread[0], "Here you go")

        repo, number, comment_id, reply = mock_api.create_reply_for_review_comment.call_args.args
        assert (repo, number, comment_id) == (REPO, 42, 1)
        assert "Here you go" in reply and COMMENT_REPLY_TAG in reply
        mock_api.update_review_comment.assert_awaited_once_with(REPO, 1, f"Top {COMMENT_REPLY_TAG}")

    @pytest.mark.asyncio
    async def test_delete_updates_cache(self, commenter, mock_api, thread):
        mock_api.list_review_comments.return_value = list(thread)
        await commenter.list_review_comments()

        assert await commenter.delete_review_comment(thread[0])

        assert 1 not in [c["id"] for c in await commenter.list_review_comments()]

    @pytest.mark.asyncio
    async def test_delete_failure_reports_false(self, commenter, mock_api, thread):
        mock_api.delete_review_comment.side_effect = Exception("gone")

        assert not await commenter.delete_review_comment(thread[0])


class TestCommentSubmitter:

    @pytest.mark.asyncio
    async def test_empty_buffer_posts_status_review(self, commenter, mock_api):
        submitter = CommentSubmitter(commenter)

        await submitter.submit_review(COMMIT, "status body")

        mock_api.create_review.assert_awaited_once_with(
            REPO, 42, {"commit_id": COMMIT, "event": "COMMENT", "body": "status body"}
        )
        mock_api.submit_review.assert_not_called()

    @pytest.mark.asyncio
    async def test_buffered_comments_submitted_as_one_review(self, commenter, mock_api, thread):
        mock_api.list_review_comments.return_value = list(thread)
        mock_api.list_reviews.return_value = [{"id": 77, "state": "PENDING"}]
        submitter = CommentSubmitter(commenter)

        await submitter.buffer("a.py", 10, 12, "Refactor this")
        await submitter.buffer("a.py", 20, 20, "Typo")
        await submitter.submit_review(COMMIT, "status body")

        # only the bot's earlier comment at the same range is replaced
        mock_api.delete_review_comment.assert_awaited_once_with(REPO, 1)
        mock_api.delete_pending_review.assert_awaited_once_with(REPO, 42, 77)

        review_data = mock_api.create_review.call_args.args[2]
        assert review_data["commit_id"] == COMMIT
        first, second = review_data["comments"]
        assert first["start_line"] == 10 and first["line"] == 12 and first["start_side"] == "RIGHT"
        assert COMMENT_TAG in first["body"] and "Refactor this" in first["body"]
        assert "start_line" not in second and second["line"] == 20

        mock_api.submit_review.assert_awaited_once_with(REPO, 42, 555, "status body", event="COMMENT")
        assert submitter.pending == []

    @pytest.mark.asyncio
    async def test_rejected_review_falls_back_to_single_comments(self, commenter, mock_api):
        mock_api.submit_review.side_effect = Exception("422 Unprocessable Entity")
        mock_api.create_review_comment.side_effect = [{"id": 1}, Exception("line not in diff")]
        submitter = CommentSubmitter(commenter)

        await submitter.buffer("a.py", 10, 12, "One")
        await submitter.buffer("a.py", 99, 99, "Two")
        await submitter.submit_review(COMMIT, "status body")

        mock_api.delete_pending_review.assert_awaited_once_with(REPO, 42, 555)
        assert mock_api.create_review_comment.await_count == 2
        assert mock_api.create_review_comment.call_args_list[0].args[3] == COMMIT
        assert submitter.pending == []

    @pytest.mark.asyncio
    async def test_api_calls_run_inside_github_pool(self, commenter, mock_api, thread):
        pool = asyncio.Semaphore(1)
        held = []

        async def _record(*args, **kwargs):
            held.append(pool.locked())
            return {"id": 555}

        mock_api.list_review_comments.return_value = list(thread)
        mock_api.delete_review_comment.side_effect = _record
        mock_api.create_review.side_effect = _record
        mock_api.submit_review.side_effect = _record
        submitter = CommentSubmitter(commenter, pool)

        await submitter.buffer("a.py", 10, 12, "Refactor this")
        await submitter.submit_review(COMMIT, "status body")

        assert held == [True, True, True]
