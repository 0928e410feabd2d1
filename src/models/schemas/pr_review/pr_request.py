"""
Pull Request Event Models

Schemas for the slices of GitHub webhook payloads the review pipeline reads.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class PullRequestContext(BaseModel):
    """The pull request a run operates on."""

    repo_full_name: str = Field(
        ...,
        description="Repository name in owner/repo format",
        pattern=r'^[^/]+/[^/]+$'
    )
    number: int = Field(..., ge=1)
    title: str = ""
    body: Optional[str] = None
    base_sha: str
    head_sha: str
    installation_id: Optional[int] = None

    @field_validator('base_sha', 'head_sha')
    @classmethod
    def validate_sha_format(cls, v):
        if not v or not all(c in '0123456789abcdef' for c in v.lower()):
            raise ValueError('SHA must be a hexadecimal string')
        return v.lower()

    @classmethod
    def from_webhook(cls, payload: Dict[str, Any]) -> "PullRequestContext":
        pr = payload["pull_request"]
        installation = payload.get("installation") or {}
        return cls(
            repo_full_name=payload["repository"]["full_name"],
            number=pr["number"],
            title=pr.get("title") or "",
            body=pr.get("body"),
            base_sha=pr["base"]["sha"],
            head_sha=pr["head"]["sha"],
            installation_id=installation.get("id"),
        )


class ReviewCommentEvent(BaseModel):
    """A newly created review comment that may address the bot."""

    id: int
    body: str = ""
    path: str = ""
    diff_hunk: str = ""
    author: str = ""
    in_reply_to_id: Optional[int] = None
    raw: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_webhook(cls, payload: Dict[str, Any]) -> "ReviewCommentEvent":
        comment = payload["comment"]
        return cls(
            id=comment["id"],
            body=comment.get("body") or "",
            path=comment.get("path") or "",
            diff_hunk=comment.get("diff_hunk") or "",
            author=(comment.get("user") or {}).get("login", ""),
            in_reply_to_id=comment.get("in_reply_to_id"),
            raw=comment,
        )
