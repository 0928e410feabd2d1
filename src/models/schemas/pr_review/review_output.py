"""
Review Output Models

Schemas for what the pipeline produces: positioned draft comments, extracted
code suggestions and per-file outcomes collected into the run status.
"""

from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ReviewDraftComment(BaseModel):
    """A parsed, positioned review comment waiting in the submit buffer."""

    path: str
    start_line: int = Field(..., ge=0)
    end_line: int = Field(..., ge=0)
    body: str

    @field_validator('end_line')
    @classmethod
    def validate_end_line(cls, v, info):
        start = info.data.get('start_line')
        if start is not None and v < start:
            raise ValueError('end_line must be >= start_line')
        return v

    def to_review_comment(self) -> dict:
        """GitHub review comment payload (single- or multi-line)."""
        data = {"path": self.path, "body": self.body, "line": self.end_line}
        if self.start_line != self.end_line:
            data["start_line"] = self.start_line
            data["start_side"] = "RIGHT"
        return data


class ParsedReview(BaseModel):
    """One ``start-end:`` block from a model reply."""

    start_line: int
    end_line: int
    comment: str
    relocated: bool = False


class Suggestion(BaseModel):
    """A structured edit suggestion pulled out of a ``<SUGGEST>`` block."""

    path: str
    start_line: int
    end_line: int
    replacement: str
    title: Optional[str] = None
    rationale: str = ""
    confidence: Optional[Literal["low", "med", "high"]] = None
    # False when the lines were taken from the enclosing comment
    range_from_tag: bool = False


class SuggestionExtractionResult(BaseModel):
    comment: str
    suggestion: Optional[Suggestion] = None


class OutcomeStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    FAILED = "failed"


class FileOutcome(BaseModel):
    """Result of one per-file step: ok with data, skipped or failed with a reason."""

    filename: str
    status: OutcomeStatus
    reason: Optional[str] = None
    data: Any = None

    @classmethod
    def ok(cls, filename: str, data: Any = None) -> "FileOutcome":
        return cls(filename=filename, status=OutcomeStatus.OK, data=data)

    @classmethod
    def skipped(cls, filename: str, reason: str) -> "FileOutcome":
        return cls(filename=filename, status=OutcomeStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, filename: str, reason: str) -> "FileOutcome":
        return cls(filename=filename, status=OutcomeStatus.FAILED, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status == OutcomeStatus.OK

    def describe(self) -> str:
        return f"{self.filename} ({self.reason})" if self.reason else self.filename


class FileSummary(BaseModel):
    """Per-file summary plus the triage verdict."""

    filename: str
    summary: str
    needs_review: bool = True


class FileReviewResult(BaseModel):
    review_count: int = 0
    lgtm_count: int = 0
    failures: List[str] = Field(default_factory=list)
