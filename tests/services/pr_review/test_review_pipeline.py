"""
End-to-end tests for ReviewPipeline

GitHub is an AsyncMock and both model tiers are FakeBots answering by
prompt content, so a whole run can be followed from watermark to the final
summary comment.
"""

import pytest

from src.services.github.comment_tags import (
    COMMIT_ID_END_TAG,
    COMMIT_ID_START_TAG,
    IN_PROGRESS_START_TAG,
    RAW_SUMMARY_START_TAG,
    SUMMARIZE_TAG,
)
from src.services.pr_review.review_pipeline import PipelineState, ReviewPipeline, parse_triage

HEAD = "1234567890abcdef1234567890abcdef12345678"
BASE = "abcdef1234567890abcdef1234567890abcdef12"
EARLIER = "1111111111111111111111111111111111111111"

CALC_PATCH = "@@ -1,2 +1,3 @@\n def add(x, y):\n-    return x+y\n+    z = x + y\n+    return z"
README_PATCH = "@@ -1 +1 @@\n-Helo world\n+Hello world"


def light_responder(prompt: str) -> str:
    if "def add" in prompt:
        return "Adds a temporary variable to add().\n[TRIAGE]: NEEDS_REVIEW"
    if "Hello world" in prompt:
        return "Fixes a typo in the README.\n[TRIAGE]: APPROVED"
    return ""


def heavy_responder(prompt: str) -> str:
    if "Changes made to `src/calc.py`" in prompt:
        return (
            "2-3:\nReturn the sum directly.\n"
            '<SUGGEST start="2" end="3" title="Simplify">\n    return x + y\n</SUGGEST>\n---\n'
        )
    if "deduplicate" in prompt:
        return "---\nsrc/calc.py, README.md: small tidy-ups\n"
    if "release notes" in prompt:
        return "- Refactor: simplified add()"
    if "concise summary of the changes" in prompt:
        return "Tidies add() and fixes a README typo."
    if "Walkthrough" in prompt:
        return "## Walkthrough\nSmall tidy-ups."
    return ""


@pytest.fixture
def changed_files():
    return [
        {"filename": "src/calc.py", "status": "modified", "patch": CALC_PATCH},
        {"filename": "README.md", "status": "modified", "patch": README_PATCH},
        {"filename": "dist/bundle.js", "status": "modified", "patch": "@@ -1 +1 @@\n-a\n+b"},
        {"filename": "assets/logo.png", "status": "added", "patch": None},
    ]


@pytest.fixture
def api(mock_api, changed_files):
    mock_api.list_pr_commits.return_value = [{"sha": HEAD}]
    mock_api.compare_commits.return_value = {"files": changed_files, "commits": [{"sha": HEAD}]}
    mock_api.create_issue_comment.side_effect = lambda repo, number, body: {"id": 1001, "body": body}
    return mock_api


@pytest.fixture
def settings(test_pr_review_settings):
    test_pr_review_settings.path_filters = ["!dist/**"]
    return test_pr_review_settings


@pytest.fixture
def bots(fake_bot_factory):
    return fake_bot_factory(light_responder, "gpt-4o-mini"), fake_bot_factory(heavy_responder)


def _pipeline(pr, api, bots, settings):
    light, heavy = bots
    return ReviewPipeline(pr, api, light, heavy, settings)


class TestParseTriage:

    def test_approved(self):
        summary = parse_triage("Fixes a typo.\n[TRIAGE]: APPROVED", review_simple_changes=False)

        assert summary.summary == "Fixes a typo."
        assert not summary.needs_review

    def test_malformed_marker_needs_review(self):
        summary = parse_triage("Fixes a typo.\n[TRIAGE]: LOOKS_OK", review_simple_changes=False)

        assert summary.needs_review
        assert summary.summary == "Fixes a typo.\n[TRIAGE]: LOOKS_OK"

    def test_review_simple_changes_ignores_verdict(self):
        assert parse_triage("x\n[TRIAGE]: APPROVED", review_simple_changes=True).needs_review


class TestReviewPipelineRun:

    @pytest.mark.asyncio
    async def test_full_run(self, sample_pr_context, api, bots, settings):
        light, heavy = bots
        pipeline = _pipeline(sample_pr_context, api, bots, settings)

        status = await pipeline.run()

        assert pipeline.state == PipelineState.DONE
        assert status.ignored == ["dist/bundle.js"]
        assert [o.filename for o in status.no_hunks] == ["assets/logo.png"]
        assert status.selected == [("src/calc.py", 1), ("README.md", 1)]
        assert [o.filename for o in status.reviews_skipped] == ["README.md"]
        assert status.review_count == 1
        assert status.lgtm_count == 0

        # both files summarized, only the one needing review went to the heavy model
        assert len(light.prompts) == 2
        review_prompts = [p for p in heavy.prompts if "Changes made to" in p]
        assert len(review_prompts) == 1
        assert "---end_change_section---" in review_prompts[0]

    @pytest.mark.asyncio
    async def test_full_run_github_calls(self, sample_pr_context, api, bots, settings):
        await _pipeline(sample_pr_context, api, bots, settings).run()

        repo = sample_pr_context.repo_full_name
        # no watermark yet: incremental and full diff both start at the base
        for call in api.compare_commits.call_args_list:
            assert call.args == (repo, BASE, HEAD)

        _, _, review_data = api.create_review.call_args.args
        assert review_data["commit_id"] == HEAD
        (comment,) = review_data["comments"]
        assert comment["path"] == "src/calc.py"
        assert (comment["start_line"], comment["line"]) == (2, 3)
        assert "```suggestion\n    return x + y\n```" in comment["body"]
        assert "**Simplify**" in comment["body"]

        submit = api.submit_review.call_args
        assert submit.args[:3] == (repo, 42, 555)
        assert "* Review: 1" in submit.args[3]
        assert submit.kwargs["event"] == "COMMENT"

        description = api.update_pr.call_args.args[2]
        assert "### Summary by Sentinel" in description
        assert "- Refactor: simplified add()" in description

    @pytest.mark.asyncio
    async def test_final_summary_comment(self, sample_pr_context, api, bots, settings):
        await _pipeline(sample_pr_context, api, bots, settings).run()

        api.create_issue_comment.assert_awaited_once()
        first_body = api.create_issue_comment.call_args.args[2]
        assert IN_PROGRESS_START_TAG in first_body

        final_body = api.update_issue_comment.call_args.args[2]
        assert IN_PROGRESS_START_TAG not in final_body
        assert final_body.rstrip().endswith(SUMMARIZE_TAG)
        assert "## Walkthrough" in final_body
        assert RAW_SUMMARY_START_TAG in final_body
        assert "small tidy-ups" in final_body
        assert f"{COMMIT_ID_START_TAG}\n<!-- {HEAD} -->\n{COMMIT_ID_END_TAG}" in final_body

    @pytest.mark.asyncio
    async def test_incremental_run_starts_at_watermark(self, sample_pr_context, api, bots, settings):
        api.list_issue_comments.return_value = [{
            "id": 7,
            "body": (
                f"old summary\n{COMMIT_ID_START_TAG}\n<!-- {EARLIER} -->\n{COMMIT_ID_END_TAG}\n{SUMMARIZE_TAG}"
            ),
        }]
        api.list_pr_commits.return_value = [{"sha": EARLIER}, {"sha": HEAD}]

        status = await _pipeline(sample_pr_context, api, bots, settings).run()

        assert status.base_sha == EARLIER
        assert api.compare_commits.call_args_list[0].args[1] == EARLIER
        api.create_issue_comment.assert_not_called()
        final_body = api.update_issue_comment.call_args.args[2]
        assert f"<!-- {EARLIER} -->\n<!-- {HEAD} -->" in final_body

    @pytest.mark.asyncio
    async def test_ignore_keyword_skips_run(self, sample_pr_context, api, bots, settings):
        pr = sample_pr_context.model_copy(update={"body": "WIP @sentinel: ignore"})
        pipeline = _pipeline(pr, api, bots, settings)

        assert await pipeline.run() is None
        assert pipeline.state == PipelineState.SKIPPED
        api.compare_commits.assert_not_called()

    @pytest.mark.asyncio
    async def test_nothing_changed_skips_run(self, sample_pr_context, api, bots, settings):
        api.compare_commits.return_value = {"files": [], "commits": []}
        pipeline = _pipeline(sample_pr_context, api, bots, settings)

        assert await pipeline.run() is None
        assert pipeline.state == PipelineState.SKIPPED
        api.create_issue_comment.assert_not_called()

    @pytest.mark.asyncio
    async def test_max_files_limit(self, sample_pr_context, api, bots, settings):
        settings.limits.max_files = 1
        light, heavy = bots

        status = await _pipeline(sample_pr_context, api, bots, settings).run()

        assert [o.filename for o in status.limit_reached] == ["README.md"]
        assert len(light.prompts) == 1
        assert status.reviews_skipped == []

    @pytest.mark.asyncio
    async def test_disable_review(self, sample_pr_context, api, bots, settings):
        settings.disable_review = True

        status = await _pipeline(sample_pr_context, api, bots, settings).run()

        assert status.review_count == 0
        api.create_review.assert_not_called()
        final_body = api.update_issue_comment.call_args.args[2]
        assert COMMIT_ID_START_TAG not in final_body

    @pytest.mark.asyncio
    async def test_failures_do_not_stop_siblings(self, sample_pr_context, api, fake_bot_factory, settings):
        light = fake_bot_factory(lambda p: "" if "Hello world" in p else light_responder(p))
        heavy = fake_bot_factory(lambda p: "" if "Changes made to `src/calc.py`" in p else heavy_responder(p))

        status = await ReviewPipeline(sample_pr_context, api, light, heavy, settings).run()

        assert [o.describe() for o in status.summaries_failed] == [
            "README.md (nothing obtained from the model)"
        ]
        # a file without a verdict is reviewed; it gets no comments from an empty reply
        assert "src/calc.py (no response)" in status.reviews_failed
        assert status.review_count == 0
        api.submit_review.assert_not_called()
        api.create_review.assert_awaited_once()
