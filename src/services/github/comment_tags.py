"""
Comment Tags

Hidden HTML markers the bot leaves in comments and in the PR description.
They are the only persistent state between runs: the summary comment carries
the reviewed-commit watermark and the raw/short summaries, review comments
carry the bot tag used to find and replace earlier output.
"""

import re

COMMENT_TAG = "<!-- This is an auto-generated comment by Sentinel -->"
COMMENT_REPLY_TAG = "<!-- This is an auto-generated reply by Sentinel -->"
SUMMARIZE_TAG = "<!-- This is an auto-generated comment: summarize by Sentinel -->"

IN_PROGRESS_START_TAG = "<!-- This is an auto-generated comment: summarize review in progress by Sentinel -->"
IN_PROGRESS_END_TAG = "<!-- end of auto-generated comment: summarize review in progress by Sentinel -->"

DESCRIPTION_START_TAG = "<!-- This is an auto-generated comment: release notes by Sentinel -->"
DESCRIPTION_END_TAG = "<!-- end of auto-generated comment: release notes by Sentinel -->"

RAW_SUMMARY_START_TAG = "<!-- This is an auto-generated comment: raw summary by Sentinel -->\n<!--\n"
RAW_SUMMARY_END_TAG = "-->\n<!-- end of auto-generated comment: raw summary by Sentinel -->"

SHORT_SUMMARY_START_TAG = "<!-- This is an auto-generated comment: short summary by Sentinel -->\n<!--\n"
SHORT_SUMMARY_END_TAG = "-->\n<!-- end of auto-generated comment: short summary by Sentinel -->"

COMMIT_ID_START_TAG = "<!-- commit_ids_reviewed_start -->"
COMMIT_ID_END_TAG = "<!-- commit_ids_reviewed_end -->"


def comment_greeting(bot_icon: str, bot_name: str = "sentinel") -> str:
    return f"{bot_icon}   {bot_name.capitalize()}"


def get_content_within_tags(content: str, start_tag: str, end_tag: str) -> str:
    """Text between the first ``start_tag`` and the first ``end_tag``, or ''."""
    start = content.find(start_tag)
    end = content.find(end_tag)
    if start >= 0 and end >= 0:
        return content[start + len(start_tag):end]
    return ""


def remove_content_within_tags(content: str, start_tag: str, end_tag: str) -> str:
    """Drop the tagged section, tags included; content without both tags is returned as-is."""
    start = content.find(start_tag)
    end = content.rfind(end_tag)
    if start >= 0 and end >= 0:
        return content[:start] + content[end + len(end_tag):]
    return content


def add_in_progress_status(comment_body: str, status_msg: str) -> str:
    if IN_PROGRESS_START_TAG in comment_body:
        return comment_body
    return (
        f"{IN_PROGRESS_START_TAG}\n\n"
        f"Currently reviewing new changes in this PR...\n\n"
        f"{status_msg}\n\n"
        f"{IN_PROGRESS_END_TAG}\n\n"
        f"---\n\n"
        f"{comment_body}"
    )


def remove_in_progress_status(comment_body: str) -> str:
    return remove_content_within_tags(comment_body, IN_PROGRESS_START_TAG, IN_PROGRESS_END_TAG)


def get_raw_summary(summary_body: str) -> str:
    return get_content_within_tags(summary_body, RAW_SUMMARY_START_TAG, RAW_SUMMARY_END_TAG)


def get_short_summary(summary_body: str) -> str:
    return get_content_within_tags(summary_body, SHORT_SUMMARY_START_TAG, SHORT_SUMMARY_END_TAG)


def get_description(description: str) -> str:
    """The human-written part of a PR description."""
    return remove_content_within_tags(description, DESCRIPTION_START_TAG, DESCRIPTION_END_TAG)


def get_release_notes(description: str) -> str:
    notes = get_content_within_tags(description, DESCRIPTION_START_TAG, DESCRIPTION_END_TAG)
    return re.sub(r"(^|\n)> .*", "", notes)


def has_bot_tag(body: str) -> bool:
    return COMMENT_TAG in body or COMMENT_REPLY_TAG in body
