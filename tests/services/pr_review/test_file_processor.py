import asyncio

import pytest

from src.services.pr_review.file_processor import FileProcessor
from src.services.pr_review.path_filter import PathFilter

BASE = "abcdef1234567890abcdef1234567890abcdef12"
HEAD = "1234567890abcdef1234567890abcdef12345678"
SINCE = "1111111111111111111111111111111111111111"


@pytest.fixture
def processor(mock_api):
    return FileProcessor(mock_api, PathFilter(["!**/*.lock"]), asyncio.Semaphore(2))


class TestFileProcessor:

    @pytest.mark.asyncio
    async def test_changed_files_intersect_full_diff(self, processor, mock_api, sample_pr_context):
        incremental = {"files": [{"filename": "a.py", "patch": "inc"}], "commits": [{"sha": HEAD}]}
        full = {"files": [{"filename": "a.py", "patch": "full"}, {"filename": "b.py", "patch": "full"}]}
        mock_api.compare_commits.side_effect = [incremental, full]

        files, commits = await processor.get_changed_files(sample_pr_context, SINCE)

        assert files == [{"filename": "a.py", "patch": "full"}]
        assert commits == [{"sha": HEAD}]
        assert mock_api.compare_commits.call_args_list[0].args[1:] == (SINCE, HEAD)
        assert mock_api.compare_commits.call_args_list[1].args[1:] == (BASE, HEAD)

    @pytest.mark.asyncio
    async def test_missing_files_data(self, processor, mock_api, sample_pr_context):
        mock_api.compare_commits.return_value = {"commits": []}

        files, _ = await processor.get_changed_files(sample_pr_context, BASE)

        assert files == []

    def test_filter_ignored_files(self, processor):
        selected, ignored = processor.filter_ignored_files(
            [{"filename": "src/app.py"}, {"filename": "poetry.lock"}]
        )

        assert [f["filename"] for f in selected] == ["src/app.py"]
        assert [f["filename"] for f in ignored] == ["poetry.lock"]

    @pytest.mark.asyncio
    async def test_build_file_changes(self, processor, mock_api, sample_pr_context):
        mock_api.get_file_content.side_effect = ["old contents\n", Exception("404")]
        entries = [
            {"filename": "a.py", "patch": "@@ -1 +1 @@\n-a\n+b"},
            {"filename": "logo.png", "patch": None},
        ]

        patches, no_hunks = await processor.build_file_changes(entries, sample_pr_context)

        assert [p.file_path for p in patches] == ["a.py"]
        assert [o.describe() for o in no_hunks] == ["logo.png (no hunks)"]
        assert mock_api.get_file_content.call_args_list[0].args == (sample_pr_context.repo_full_name, "a.py", BASE)
