from .pr_patch import PRHunk, PRFilePatch
from .pr_request import PullRequestContext, ReviewCommentEvent
from .review_output import (
    ReviewDraftComment,
    ParsedReview,
    Suggestion,
    SuggestionExtractionResult,
    OutcomeStatus,
    FileOutcome,
    FileSummary,
    FileReviewResult,
)

__all__ = [
    "PRHunk",
    "PRFilePatch",
    "PullRequestContext",
    "ReviewCommentEvent",
    "ReviewDraftComment",
    "ParsedReview",
    "Suggestion",
    "SuggestionExtractionResult",
    "OutcomeStatus",
    "FileOutcome",
    "FileSummary",
    "FileReviewResult",
]
