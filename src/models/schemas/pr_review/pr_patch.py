"""
PR Patch and Diff Models

Pydantic schemas for a changed file's unified diff split into hunks, with
line ranges expressed in the new-file coordinates used by the GitHub
review-comment API.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional


class PRHunk(BaseModel):
    """A single diff hunk bounded by an ``@@ -a,b +c,d @@`` header."""

    header: str = Field(
        ...,
        description="Hunk header in format @@ -a,b +c,d @@",
        pattern=r'^@@ -\d+(?:,\d+)? \+\d+(?:,\d+)? @@'
    )

    # Line range information (from hunk header)
    old_start: int = Field(..., description="Starting line number in old file", ge=0)
    old_end: int = Field(..., description="Last line number in old file", ge=-1)
    new_start: int = Field(..., description="Starting line number in new file", ge=0)
    new_end: int = Field(..., description="Last line number in new file", ge=-1)

    # Hunk content
    old_hunk: str = Field("", description="Old side of the hunk, without markers")
    new_hunk: str = Field("", description="New side of the hunk with 'N: ' line annotations")
    raw: str = Field("", description="Raw hunk text including the header line")

    @model_validator(mode="after")
    def validate_ranges(self):
        if self.old_end < self.old_start - 1:
            raise ValueError("old_end must be >= old_start - 1")
        if self.new_end < self.new_start - 1:
            raise ValueError("new_end must be >= new_start - 1")
        return self

    @property
    def line_range(self) -> tuple:
        return self.new_start, self.new_end

    def contains(self, start_line: int, end_line: int) -> bool:
        """Whether [start_line, end_line] lies fully inside the new-file range."""
        return self.new_start <= start_line and end_line <= self.new_end

    def overlap(self, start_line: int, end_line: int) -> int:
        """Number of new-file lines shared with [start_line, end_line]."""
        return max(0, min(end_line, self.new_end) - max(start_line, self.new_start) + 1)

    @property
    def annotated_body(self) -> str:
        """Context block handed to the model for this hunk."""
        return (
            "\n---new_hunk---\n"
            f"```\n{self.new_hunk}\n```\n"
            "\n---old_hunk---\n"
            f"```\n{self.old_hunk}\n```\n"
        )


class PRFilePatch(BaseModel):
    """A changed file with its parsed hunks."""

    file_path: str = Field(..., description="Relative path from repository root")
    base_content: str = Field("", description="File content at the PR base commit")
    patch: str = Field("", description="Raw unified diff patch text from GitHub")
    hunks: List[PRHunk] = Field(default_factory=list)
    previous_filename: Optional[str] = None

    @field_validator('file_path')
    @classmethod
    def validate_file_path(cls, v):
        if not v.strip():
            raise ValueError('File path cannot be empty')
        return v.strip()

    @property
    def has_hunks(self) -> bool:
        return bool(self.hunks)

    @property
    def hunk_ranges(self) -> List[tuple]:
        return [hunk.line_range for hunk in self.hunks]
