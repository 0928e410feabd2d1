"""Markdown status block shown in the summary comment and the review body."""

from dataclasses import dataclass, field
from typing import List, Tuple

from src.models.schemas.pr_review.review_output import FileOutcome, OutcomeStatus


def _details(title: str, items: List[str]) -> str:
    if not items:
        return ""
    bullets = "\n* ".join(items)
    return f"\n<details>\n<summary>{title} ({len(items)})</summary>\n\n* {bullets}\n\n</details>\n"


@dataclass
class RunStatus:
    """Everything that happened to each file during one run."""
    base_sha: str
    head_sha: str
    selected: List[Tuple[str, int]] = field(default_factory=list)
    ignored: List[str] = field(default_factory=list)
    no_hunks: List[FileOutcome] = field(default_factory=list)
    limit_reached: List[FileOutcome] = field(default_factory=list)
    summaries_failed: List[FileOutcome] = field(default_factory=list)
    reviews_failed: List[str] = field(default_factory=list)
    reviews_skipped: List[FileOutcome] = field(default_factory=list)
    review_count: int = 0
    lgtm_count: int = 0

    def record(self, outcome: FileOutcome, stage: str) -> None:
        """File a non-ok outcome under the section matching ``stage``."""
        if outcome.is_ok:
            return
        if stage == "summarize":
            self.summaries_failed.append(outcome)
        elif stage == "review":
            if outcome.status == OutcomeStatus.FAILED:
                self.reviews_failed.append(outcome.describe())
            else:
                self.reviews_skipped.append(outcome)
        elif stage == "limit":
            self.limit_reached.append(outcome)
        elif stage == "parse":
            self.no_hunks.append(outcome)

    def render_files(self) -> str:
        """Commit range and the file selection, posted while the run is in progress."""
        status = (
            "<details>\n<summary>Commits</summary>\n"
            f"Files that changed from the base of the PR and between {self.base_sha} "
            f"and {self.head_sha} commits.\n</details>\n"
        )
        status += _details("Files selected", [f"{name} ({hunks})" for name, hunks in self.selected])
        status += _details("Files ignored due to filter", self.ignored)
        status += _details("Files with no reviewable hunks", [o.filename for o in self.no_hunks])
        return status

    def render_processing(self) -> str:
        status = _details("Files not processed due to max files limit", [o.filename for o in self.limit_reached])
        status += _details("Files not summarized due to errors", [o.describe() for o in self.summaries_failed])
        return status

    def render_review(self, bot_name: str) -> str:
        status = _details("Files not reviewed due to errors", self.reviews_failed)
        status += _details(
            "Files skipped from review due to trivial changes",
            [o.describe() for o in self.reviews_skipped],
        )
        status += (
            f"\n<details>\n<summary>Review comments generated ({self.review_count + self.lgtm_count})</summary>\n\n"
            f"* Review: {self.review_count}\n"
            f"* LGTM: {self.lgtm_count}\n\n"
            "</details>\n"
        )
        status += render_tips(bot_name)
        return status

    def render(self, bot_name: str, include_review: bool = True) -> str:
        status = self.render_files() + self.render_processing()
        if include_review:
            status += self.render_review(bot_name)
        return status


def render_tips(bot_name: str) -> str:
    return (
        "\n---\n\n"
        "<details>\n<summary>Tips</summary>\n\n"
        f"### Chat with the bot (`@{bot_name}`)\n"
        "- Reply on review comments left by this bot to ask follow-up questions.\n"
        f"- Invite the bot into a review comment chain by tagging `@{bot_name}` in a reply.\n\n"
        "### Code suggestions\n"
        "- The bot may make code suggestions, but please review them carefully before "
        "committing since the line number ranges may be misaligned.\n"
        "- You can edit the comment made by the bot and manually tweak the suggestion "
        "if it is slightly off.\n\n"
        "### Pausing incremental reviews\n"
        f"- Add `@{bot_name}: ignore` anywhere in the PR description to pause further "
        "reviews from the bot.\n\n"
        "</details>\n"
    )
