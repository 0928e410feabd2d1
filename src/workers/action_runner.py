import asyncio
import json
import os
import sys

from dotenv import load_dotenv

from src.core.pr_review_config import pr_review_settings
from src.services.pr_review.runner import ReviewRunner
from src.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def load_event():
    event_name = os.environ.get("GITHUB_EVENT_NAME")
    event_path = os.environ.get("GITHUB_EVENT_PATH")
    if not event_name or not event_path:
        raise RuntimeError("GITHUB_EVENT_NAME and GITHUB_EVENT_PATH must be set")
    with open(event_path, "r", encoding="utf-8") as fh:
        return event_name, json.load(fh)


async def main() -> int:
    event_name, payload = load_event()
    result = await ReviewRunner().handle_event(event_name, payload)
    logger.info(f"Run finished: {result}")
    return 1 if result["status"] == "failed" else 0


if __name__ == "__main__":
    load_dotenv()
    configure_logging(debug=pr_review_settings.debug)
    sys.exit(asyncio.run(main()))
