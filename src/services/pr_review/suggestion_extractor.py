"""
Suggestion Extractor

Pulls an optional ``<SUGGEST ...>replacement</SUGGEST>`` block out of a review
comment and renders it as a GitHub suggestion. The model is asked to use the
tag when it proposes a concrete replacement for the commented lines.
"""

import re
from typing import Dict, Optional

from src.models.schemas.pr_review.review_output import Suggestion, SuggestionExtractionResult

SUGGEST_PATTERN = re.compile(r'<SUGGEST\b([^>]*)>([\s\S]*?)</SUGGEST>', re.IGNORECASE)
ATTRIBUTE_PATTERN = re.compile(r'(\w[\w-]*)\s*=\s*(?:"([^"]*)"|\'([^\']*)\'|([^\s"\'>]+))')
LEADING_BLANK_LINES = re.compile(r'^\s*\n')
LINE_NUMBER = re.compile(r'^\s*(\d+)')

CONFIDENCE_LEVELS = ("low", "med", "high")


def extract_suggestion(markdown: str, path: str, start_line: int, end_line: int) -> SuggestionExtractionResult:
    """
    Split ``markdown`` into prose and an optional suggestion.

    ``path``/``start_line``/``end_line`` are the defaults used when the tag
    does not carry its own. A block whose body is empty or contains a code
    fence yields no suggestion; the block is removed from the prose either way.
    """
    match = SUGGEST_PATTERN.search(markdown)
    if not match:
        return SuggestionExtractionResult(comment=markdown.strip())

    attrs = parse_attributes(match.group(1) or "")
    comment = markdown.replace(match.group(0), "", 1).strip()

    replacement = _sanitize_replacement(match.group(2))
    if not replacement:
        return SuggestionExtractionResult(comment=comment)

    suggestion_path = (attrs.get("path") or "").strip() or path
    title = attrs.get("title")
    tag_start = _parse_line(_first(attrs, "start", "start_line", "line"), None)
    tag_end = _parse_line(_first(attrs, "end", "end_line", "line"), None)
    suggestion = Suggestion(
        path=suggestion_path,
        start_line=tag_start if tag_start is not None else start_line,
        end_line=tag_end if tag_end is not None else end_line,
        replacement=replacement,
        title=title.strip() if title is not None else None,
        rationale=comment,
        confidence=_normalize_confidence(attrs.get("confidence")),
        range_from_tag=tag_start is not None,
    )
    return SuggestionExtractionResult(comment=comment, suggestion=suggestion)


def to_suggestion_block(suggestion: Suggestion) -> str:
    header = f"**{suggestion.title}**\n\n" if suggestion.title else ""
    rationale = f"{suggestion.rationale.strip()}\n\n" if suggestion.rationale.strip() else ""
    return f"{header}{rationale}```suggestion\n{suggestion.replacement}\n```"


def parse_attributes(raw: str) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    for m in ATTRIBUTE_PATTERN.finditer(raw):
        key, double, single, bare = m.groups()
        if double is not None:
            attributes[key] = double
        elif single is not None:
            attributes[key] = single
        else:
            attributes[key] = bare or ""
    return attributes


def _first(attrs: Dict[str, str], *keys: str) -> Optional[str]:
    for key in keys:
        if key in attrs:
            return attrs[key]
    return None


def _sanitize_replacement(raw: Optional[str]) -> str:
    if not raw:
        return ""
    # leading blank lines go, indentation of the first code line stays
    trimmed = LEADING_BLANK_LINES.sub("", raw).rstrip()
    if "```" in trimmed or not trimmed.strip():
        return ""
    return trimmed


def _parse_line(raw: Optional[str], fallback: Optional[int]) -> Optional[int]:
    if not raw:
        return fallback
    m = LINE_NUMBER.match(raw)
    if not m:
        return fallback
    value = int(m.group(1))
    return value if value > 0 else fallback


def _normalize_confidence(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    normalized = raw.strip().lower()
    return normalized if normalized in CONFIDENCE_LEVELS else None
