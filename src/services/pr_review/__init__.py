"""
PR Review Services

Summarize and review pipeline for pull requests, plus the responder for
review-comment conversations.
"""

from src.services.pr_review.path_filter import PathFilter
from src.services.pr_review.token_budget import TokenBudget
from src.services.pr_review.watermark import WatermarkTracker
from src.services.pr_review.response_parser import ResponseParser, parse_review
from src.services.pr_review.suggestion_extractor import extract_suggestion
from src.services.pr_review.review_pipeline import ReviewPipeline
from src.services.pr_review.comment_responder import CommentResponder
from src.services.pr_review.runner import ReviewRunner

__all__ = [
    "PathFilter",
    "TokenBudget",
    "WatermarkTracker",
    "ResponseParser",
    "parse_review",
    "extract_suggestion",
    "ReviewPipeline",
    "CommentResponder",
    "ReviewRunner",
]
