"""
Unified Diff Parser

Parses a GitHub unified diff patch into PRHunk objects with line ranges in
new-file coordinates, and builds the annotated old/new hunk text the model
sees as review context.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from src.exceptions.pr_review_exceptions import PRHunkParsingException
from src.models.schemas.pr_review.pr_patch import PRFilePatch, PRHunk
from src.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class HunkRange:
    """Old/new line ranges parsed from a hunk header."""
    old_start: int
    old_end: int
    new_start: int
    new_end: int


class UnifiedDiffParser:
    """
    Split unified diffs into hunks and annotate them for review.

    Features:
    - Splits on hunk headers, keeping each header with its body
    - Missing header lengths default to 1 (``@@ -3 +3 @@``)
    - New-side lines carry their new-file line number so model replies can be
      mapped back onto commentable lines
    - Unparseable hunks are skipped; a file with no hunks is not reviewable
    """

    HUNK_HEADER_PATTERN = re.compile(r'^@@ -(\d+)(?:,(\d*))? \+(\d+)(?:,(\d*))? @@')
    HUNK_SPLIT_PATTERN = re.compile(r'^@@ -\d+(?:,\d+)? \+\d+(?:,\d+)? @@.*$', re.MULTILINE)

    # Unchanged lines at either edge of a hunk that stay unannotated
    CONTEXT_PADDING = 3

    def split_patch(self, patch: Optional[str]) -> List[str]:
        """
        Split a patch into hunk texts, each starting with its header line.

        Text before the first header (``diff --git``/``index`` lines) is not
        part of any hunk. Joining the result gives back the patch from the
        first header onwards.
        """
        if not patch:
            return []

        starts = [m.start() for m in self.HUNK_SPLIT_PATTERN.finditer(patch)]
        if not starts:
            return []

        bounds = starts + [len(patch)]
        return [patch[bounds[i]:bounds[i + 1]] for i in range(len(starts))]

    def patch_start_end_line(self, hunk_text: str) -> Optional[HunkRange]:
        """Parse the hunk header into inclusive old/new line ranges."""
        match = self.HUNK_HEADER_PATTERN.match(hunk_text)
        if not match:
            return None

        old_start = int(match.group(1))
        old_len = int(match.group(2)) if match.group(2) else 1
        new_start = int(match.group(3))
        new_len = int(match.group(4)) if match.group(4) else 1

        return HunkRange(
            old_start=old_start,
            old_end=old_start + max(old_len - 1, 0),
            new_start=new_start,
            new_end=new_start + max(new_len - 1, 0),
        )

    def parse_hunk_body(self, hunk_text: str, new_start: int) -> Tuple[str, str]:
        """
        Build the old and new sides of a hunk.

        Removed lines go to the old side only. Added lines go to the new side
        prefixed with their new-file line number. Context lines go to both;
        on the new side they are numbered unless they belong to the leading
        or trailing padding, except in removal-only hunks where every context
        line is numbered since it is the only thing a comment can attach to.

        Args:
            hunk_text: Hunk text including the header line
            new_start: First new-file line number of the hunk

        Returns:
            Tuple of (old_hunk, new_hunk)
        """
        lines = hunk_text.split('\n')[1:]
        if lines and lines[-1] == '':
            lines.pop()
        # "\ No newline at end of file" belongs to neither side
        lines = [line for line in lines if not line.startswith('\\')]

        removal_only = not any(line.startswith('+') for line in lines)
        old_lines: List[str] = []
        new_lines: List[str] = []
        new_line = new_start

        for position, line in enumerate(lines, start=1):
            if line.startswith('-'):
                old_lines.append(line[1:])
            elif line.startswith('+'):
                new_lines.append(f"{new_line}: {line[1:]}")
                new_line += 1
            else:
                text = line[1:] if line.startswith(' ') else line
                old_lines.append(text)
                inside = self.CONTEXT_PADDING < position <= len(lines) - self.CONTEXT_PADDING
                if removal_only or inside:
                    new_lines.append(f"{new_line}: {text}")
                else:
                    new_lines.append(text)
                new_line += 1

        return '\n'.join(old_lines), '\n'.join(new_lines)

    def parse_patch_to_hunks(self, patch_text: Optional[str], file_path: str) -> List[PRHunk]:
        """
        Parse patch text into PRHunk objects.

        A hunk whose header cannot be parsed is logged and skipped.
        """
        hunks: List[PRHunk] = []
        for hunk_text in self.split_patch(patch_text):
            try:
                hunks.append(self._parse_single_hunk(hunk_text, file_path))
            except PRHunkParsingException as e:
                logger.warning(f"Skipping hunk: {e}")

        logger.debug(f"Parsed {len(hunks)} hunks for {file_path}")
        return hunks

    def _parse_single_hunk(self, hunk_text: str, file_path: str) -> PRHunk:
        header = hunk_text.split('\n', 1)[0]
        hunk_range = self.patch_start_end_line(hunk_text)
        if hunk_range is None:
            raise PRHunkParsingException(file_path, header)

        old_hunk, new_hunk = self.parse_hunk_body(hunk_text, hunk_range.new_start)

        return PRHunk(
            header=header,
            old_start=hunk_range.old_start,
            old_end=hunk_range.old_end,
            new_start=hunk_range.new_start,
            new_end=hunk_range.new_end,
            old_hunk=old_hunk,
            new_hunk=new_hunk,
            raw=hunk_text,
        )

    def parse_file(
        self,
        filename: str,
        patch: Optional[str],
        base_content: str = "",
        previous_filename: Optional[str] = None,
    ) -> Optional[PRFilePatch]:
        """
        Build a PRFilePatch for one changed file.

        Returns:
            PRFilePatch, or None when the patch has no parseable hunks
            (binary files, pure renames, empty patches)
        """
        hunks = self.parse_patch_to_hunks(patch, filename)
        if not hunks:
            logger.info(f"No reviewable hunks in {filename}")
            return None

        return PRFilePatch(
            file_path=filename,
            base_content=base_content,
            patch=patch or "",
            hunks=hunks,
            previous_filename=previous_filename,
        )
