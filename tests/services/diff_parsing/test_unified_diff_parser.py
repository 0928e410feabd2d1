"""
Tests for UnifiedDiffParser

Tests hunk splitting, line ranges and annotated hunk bodies for the GitHub
patch formats the review pipeline receives.
"""

import pytest
from src.services.diff_parsing.unified_diff_parser import UnifiedDiffParser
from src.exceptions.pr_review_exceptions import PRHunkParsingException


@pytest.fixture
def diff_parser():
    """Create UnifiedDiffParser instance for testing."""
    return UnifiedDiffParser()


@pytest.fixture
def sample_file_data():
    """Sample file data from GitHub API."""
    return {
        "filename": "src/example.py",
        "status": "modified",
        "additions": 3,
        "deletions": 1,
        "changes": 4,
        "patch": """@@ -1,4 +1,6 @@
 def example_function():
-    return False
+    # Added a comment
+    return True
+    # Another new line
     pass"""
    }


@pytest.fixture
def complex_diff_data():
    """Complex diff with multiple hunks."""
    return {
        "filename": "src/complex.py",
        "status": "modified",
        "additions": 8,
        "deletions": 3,
        "changes": 11,
        "patch": """@@ -10,6 +10,9 @@ class ExampleClass:
     def method_one(self):
-        return None
+        # Updated implementation
+        result = self.calculate()
+        return result

     def method_two(self):
@@ -25,4 +28,7 @@ class ExampleClass:
         pass

     def new_method(self):
+        # This is a new method
+        for i in range(10):
+            print(i)
         return True"""
    }


class TestSplitPatch:
    """Splitting a patch into hunk texts."""

    def test_split_keeps_header_with_body(self, diff_parser, complex_diff_data):
        hunks = diff_parser.split_patch(complex_diff_data["patch"])

        assert len(hunks) == 2
        assert hunks[0].startswith("@@ -10,6 +10,9 @@")
        assert hunks[1].startswith("@@ -25,4 +28,7 @@")

    def test_split_rejoins_to_original_patch(self, diff_parser, complex_diff_data):
        hunks = diff_parser.split_patch(complex_diff_data["patch"])

        assert "".join(hunks) == complex_diff_data["patch"]

    def test_split_drops_preamble(self, diff_parser):
        patch = "diff --git a/x.py b/x.py\nindex 123..456 100644\n@@ -1 +1 @@\n-a\n+b"

        hunks = diff_parser.split_patch(patch)

        assert hunks == ["@@ -1 +1 @@\n-a\n+b"]

    @pytest.mark.parametrize("patch", [None, "", "Binary files differ"])
    def test_split_without_hunks(self, diff_parser, patch):
        assert diff_parser.split_patch(patch) == []


class TestHunkHeader:
    """Line ranges parsed from hunk headers."""

    def test_ranges_are_inclusive(self, diff_parser):
        hunk_range = diff_parser.patch_start_end_line("@@ -10,6 +10,9 @@ class ExampleClass:")

        assert (hunk_range.old_start, hunk_range.old_end) == (10, 15)
        assert (hunk_range.new_start, hunk_range.new_end) == (10, 18)

    def test_missing_lengths_default_to_one(self, diff_parser):
        hunk_range = diff_parser.patch_start_end_line("@@ -3 +3 @@")

        assert (hunk_range.old_start, hunk_range.old_end) == (3, 3)
        assert (hunk_range.new_start, hunk_range.new_end) == (3, 3)

    def test_empty_new_side(self, diff_parser):
        hunk_range = diff_parser.patch_start_end_line("@@ -1,2 +0,0 @@")

        assert (hunk_range.new_start, hunk_range.new_end) == (0, 0)

    def test_invalid_header(self, diff_parser):
        assert diff_parser.patch_start_end_line("@@ -a,b +c,d @@") is None


class TestHunkBody:
    """Annotated old/new sides of a hunk."""

    def test_added_lines_are_numbered(self, diff_parser, sample_file_data):
        hunks = diff_parser.parse_patch_to_hunks(sample_file_data["patch"], sample_file_data["filename"])

        assert len(hunks) == 1
        hunk = hunks[0]
        assert hunk.new_hunk == (
            "def example_function():\n"
            "2:     # Added a comment\n"
            "3:     return True\n"
            "4:     # Another new line\n"
            "    pass"
        )
        assert hunk.old_hunk == "def example_function():\n    return False\n    pass"

    def test_inner_context_lines_are_numbered(self, diff_parser):
        patch = "@@ -1,8 +1,8 @@\n a\n b\n c\n-d\n+D\n e\n f\n g\n h"

        hunk = diff_parser.parse_patch_to_hunks(patch, "x.py")[0]

        assert hunk.new_hunk.split("\n") == ["a", "b", "c", "4: D", "5: e", "f", "g", "h"]

    def test_removal_only_hunk_numbers_all_context(self, diff_parser):
        patch = "@@ -5,3 +5,2 @@\n a\n-b\n c"

        hunk = diff_parser.parse_patch_to_hunks(patch, "x.py")[0]

        assert hunk.new_hunk == "5: a\n6: c"
        assert hunk.old_hunk == "a\nb\nc"
        assert hunk.line_range == (5, 6)

    def test_no_newline_marker_is_not_a_line(self, diff_parser):
        patch = "@@ -3,1 +3,2 @@\n-last\n\\ No newline at end of file\n+last2\n+added"

        hunk = diff_parser.parse_patch_to_hunks(patch, "x.py")[0]

        assert hunk.line_range == (3, 4)
        assert hunk.new_hunk == "3: last2\n4: added"
        assert hunk.old_hunk == "last"

    def test_annotated_body_wraps_both_sides(self, diff_parser, sample_file_data):
        hunk = diff_parser.parse_patch_to_hunks(sample_file_data["patch"], "src/example.py")[0]

        body = hunk.annotated_body
        assert body.index("---new_hunk---") < body.index("---old_hunk---")
        assert "3:     return True" in body


class TestParseFile:
    """Building PRFilePatch objects."""

    def test_parse_file_multiple_hunks(self, diff_parser, complex_diff_data):
        patch = diff_parser.parse_file(
            complex_diff_data["filename"], complex_diff_data["patch"], base_content="class ExampleClass:\n"
        )

        assert patch is not None
        assert patch.file_path == "src/complex.py"
        assert patch.has_hunks
        assert patch.hunk_ranges == [(10, 18), (28, 34)]
        assert patch.base_content == "class ExampleClass:\n"

    def test_parse_file_keeps_previous_filename(self, diff_parser):
        patch = diff_parser.parse_file(
            "src/utils/new_helpers.py", "@@ -1 +1 @@\n-a\n+b", previous_filename="src/utils/old_helpers.py"
        )

        assert patch.previous_filename == "src/utils/old_helpers.py"

    @pytest.mark.parametrize("raw_patch", [None, "", "@@ -a,b +c,d @@\n+x"])
    def test_parse_file_without_hunks_returns_none(self, diff_parser, raw_patch):
        assert diff_parser.parse_file("assets/logo.png", raw_patch) is None

    def test_unparseable_hunk_raises(self, diff_parser):
        with pytest.raises(PRHunkParsingException) as exc_info:
            diff_parser._parse_single_hunk("@@ broken @@\n+x", "x.py")

        assert exc_info.value.file_path == "x.py"
        assert "broken" in str(exc_info.value)
