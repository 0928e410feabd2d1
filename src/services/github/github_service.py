from typing import Any, Dict, Optional

from fastapi import BackgroundTasks

from src.services.pr_review.runner import ReviewRunner, is_supported_event
from src.utils.logging import get_logger

logger = get_logger(__name__)


class GithubService:
    """Routes webhook deliveries to the review runner."""

    def __init__(self, runner: Optional[ReviewRunner] = None):
        self.runner = runner or ReviewRunner()

    def process_webhook(
        self,
        body: Dict[str, Any],
        event_type: str,
        background_tasks: BackgroundTasks,
    ) -> Dict[str, Any]:
        """
        Schedule the run for a supported event and answer immediately.

        Returns:
            ``{"status": "accepted"}`` when a run was scheduled, otherwise
            ``{"status": "ignored"}`` with the reason
        """
        action = body.get("action")
        logger.info(f"Processing GitHub webhook event: {event_type}/{action}")

        if not is_supported_event(event_type, body):
            logger.info(f"Unhandled webhook event: {event_type}/{action}")
            return {
                "status": "ignored",
                "message": f"Webhook '{event_type}' with action '{action}' is not handled"
            }

        if "pull_request" not in body or "repository" not in body:
            logger.warning(f"Webhook '{event_type}' is missing pull_request or repository")
            return {"status": "ignored", "message": "Payload is missing pull_request or repository"}

        if event_type == "pull_request_review_comment" and "comment" not in body:
            return {"status": "ignored", "message": "Payload is missing comment"}

        background_tasks.add_task(self.runner.handle_event, event_type, body)
        return {
            "status": "accepted",
            "message": f"Webhook '{event_type}' accepted",
            "pr_number": body["pull_request"].get("number"),
        }


def get_github_service() -> GithubService:
    return GithubService()
