"""
Response Parser

Turns a free-text review reply into positioned comments. The model is asked
to answer in blocks of the form::

    12-15:
    comment text
    ---

Line ranges are new-file line numbers. A range that is not fully inside one
of the hunks sent to the model is moved onto the hunk it overlaps most, with
a note quoting the original range, because GitHub only accepts review
comments on lines that are part of the diff.
"""

import re
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from src.models.schemas.pr_review.review_output import ParsedReview
from src.utils.logging import get_logger

logger = get_logger(__name__)

LINE_RANGE_PATTERN = re.compile(r'(?:^|\s)(\d+)-(\d+):\s*$')
COMMENT_SEPARATOR = "---"
FENCE_LINE_NUMBER = re.compile(r'^ *(\d+): ', re.MULTILINE)
SANITIZED_FENCES = ("suggestion", "diff")

OVERLAP_NOTE = (
    "> Note: This review was outside of the patch, so it was mapped to the patch "
    "with the greatest overlap. Original lines [{start}-{end}]"
)
NO_OVERLAP_NOTE = (
    "> Note: This review was outside of the patch, but no patch was found that "
    "overlapped with it. Original lines [{start}-{end}]"
)


def sanitize_code_block(comment: str, label: str) -> str:
    """Remove ``N: `` line-number prefixes the model copied into a fenced block."""
    start_marker = f"```{label}"
    end_marker = "```"
    start = comment.find(start_marker)

    while start != -1:
        body_start = start + len(start_marker)
        end = comment.find(end_marker, body_start)
        if end == -1:
            break
        sanitized = FENCE_LINE_NUMBER.sub("", comment[body_start:end])
        comment = comment[:body_start] + sanitized + comment[end:]
        start = comment.find(start_marker, body_start + len(sanitized) + len(end_marker))

    return comment


def sanitize_response(response: str) -> str:
    for label in SANITIZED_FENCES:
        response = sanitize_code_block(response, label)
    return response


class ParserState(Enum):
    IDLE = "idle"
    IN_BLOCK = "in_block"


class ResponseParser:
    """
    Line-oriented parser with an explicit ``flush``.

    A range header flushes the current block and opens a new one, a ``---``
    line flushes and closes it, any other line is accumulated only while a
    block is open. ``parse`` flushes once more at the end of the input.
    """

    def __init__(self, hunk_ranges: Sequence[Tuple[int, int]], debug: bool = False):
        self.hunk_ranges = list(hunk_ranges)
        self.debug = debug
        self.reviews: List[ParsedReview] = []
        self._state = ParserState.IDLE
        self._start: Optional[int] = None
        self._end: Optional[int] = None
        self._lines: List[str] = []

    @property
    def state(self) -> ParserState:
        return self._state

    def parse(self, response: str) -> List[ParsedReview]:
        for line in sanitize_response(response.strip()).split("\n"):
            self.feed(line)
        self.flush()
        return self.reviews

    def feed(self, line: str) -> None:
        match = LINE_RANGE_PATTERN.search(line)
        if match:
            self.flush()
            first, second = int(match.group(1)), int(match.group(2))
            self._start, self._end = min(first, second), max(first, second)
            self._state = ParserState.IN_BLOCK
            if self.debug:
                logger.debug(f"Found line number range: {self._start}-{self._end}")
            return

        if line.strip() == COMMENT_SEPARATOR:
            self.flush()
            self._state = ParserState.IDLE
            return

        if self._state == ParserState.IN_BLOCK:
            self._lines.append(line)

    def flush(self) -> None:
        """Store the open block, if any; the parser stays in its current state."""
        if self._start is None or self._end is None:
            return

        comment = "".join(f"{line}\n" for line in self._lines)
        review = self._relocate(self._start, self._end, comment)
        self.reviews.append(review)
        logger.info(f"Stored comment for line range {self._start}-{self._end}: {comment.strip()}")

        self._start = None
        self._end = None
        self._lines = []

    def _relocate(self, start: int, end: int, comment: str) -> ParsedReview:
        if not self.hunk_ranges:
            return ParsedReview(start_line=start, end_line=end, comment=comment)

        for hunk_start, hunk_end in self.hunk_ranges:
            if hunk_start <= start and end <= hunk_end:
                return ParsedReview(start_line=start, end_line=end, comment=comment)

        best: Optional[Tuple[int, int]] = None
        max_overlap = 0
        for hunk_start, hunk_end in self.hunk_ranges:
            overlap = max(0, min(end, hunk_end) - max(start, hunk_start) + 1)
            if overlap > max_overlap:
                max_overlap = overlap
                best = (hunk_start, hunk_end)

        if best is not None:
            note = OVERLAP_NOTE.format(start=start, end=end)
        else:
            note = NO_OVERLAP_NOTE.format(start=start, end=end)
            best = self.hunk_ranges[0]

        return ParsedReview(
            start_line=best[0],
            end_line=best[1],
            comment=f"{note}\n\n{comment}",
            relocated=True,
        )


def parse_review(response: str, hunk_ranges: Sequence[Tuple[int, int]], debug: bool = False) -> List[ParsedReview]:
    return ResponseParser(hunk_ranges, debug=debug).parse(response)
