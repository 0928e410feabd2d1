"""
Review Runner

Entry point for one GitHub event: builds the model bots and the API client,
dispatches to the review pipeline or the comment responder, and is the one
place where unexpected errors of a run are caught and reported.
"""

from typing import Any, Dict, Optional, Tuple

from src.core.config import Settings, settings
from src.core.pr_review_config import PRReviewSettings, pr_review_settings
from src.exceptions.pr_review_exceptions import ConfigurationError
from src.models.schemas.pr_review.pr_request import PullRequestContext, ReviewCommentEvent
from src.services.github.pr_api_client import PRApiClient
from src.services.github.run_cache import RunCache
from src.services.llm.chat_bot import ChatBot
from src.services.llm.cost_tracker import CostTracker
from src.services.llm.llm_factory import LLMFactory
from src.services.llm.token_limits import TokenLimits
from src.services.pr_review.comment_responder import CommentResponder
from src.services.pr_review.prompts import PromptLibrary
from src.services.pr_review.review_pipeline import ReviewPipeline
from src.utils.logging import Logger

PULL_REQUEST_EVENTS = ("pull_request", "pull_request_target")
PULL_REQUEST_ACTIONS = ("opened", "reopened", "synchronize")
REVIEW_COMMENT_EVENT = "pull_request_review_comment"


def is_supported_event(event_name: str, payload: Dict[str, Any]) -> bool:
    action = payload.get("action")
    if event_name in PULL_REQUEST_EVENTS:
        return action in PULL_REQUEST_ACTIONS
    if event_name == REVIEW_COMMENT_EVENT:
        return action == "created"
    return False


class ReviewRunner:
    """Runs the pipeline or the comment responder for a webhook/Actions event."""

    def __init__(
        self,
        app_settings: Optional[Settings] = None,
        review_settings: Optional[PRReviewSettings] = None,
        prompts: Optional[PromptLibrary] = None,
    ):
        self.settings = app_settings or settings
        self.review_settings = review_settings or pr_review_settings
        self.prompts = prompts or PromptLibrary()
        self.cost_tracker = CostTracker()
        self.logger = Logger(__name__)

    def build_bots(self) -> Tuple[ChatBot, ChatBot]:
        """
        Light (summaries) and heavy (reviews, replies) bots.

        Raises:
            ConfigurationError: If no usable provider key is configured
        """
        models = self.review_settings.models
        timeouts = self.review_settings.timeouts
        provider = LLMFactory.resolve_provider(models.provider, self.settings)

        bots = []
        for tier, model in (("light", models.light_model), ("heavy", models.heavy_model)):
            model = model or LLMFactory.default_model(provider, tier)
            limits = TokenLimits.for_model(model)
            client = LLMFactory.create_client(
                provider=provider.value,
                model=model,
                tier=tier,
                max_tokens=limits.response_tokens,
                temperature=models.temperature,
                timeout=timeouts.llm_timeout_seconds,
                max_retries=timeouts.llm_retries,
                app_settings=self.settings,
            )
            bots.append(ChatBot(
                client,
                limits,
                system_message=self.review_settings.system_message,
                language=self.review_settings.language,
                cost_tracker=self.cost_tracker,
            ))
            self.logger.info(f"{tier} bot: {bots[-1].model_info()}")

        return bots[0], bots[1]

    def build_api(self, installation_id: Optional[int]) -> PRApiClient:
        if self.settings.github_auth_mode is None:
            raise ConfigurationError(
                "Set GITHUB_TOKEN or GITHUB_APP_ID and GITHUB_APP_PRIVATE_KEY", setting="GITHUB_TOKEN"
            )
        return PRApiClient(
            installation_id=installation_id,
            app_settings=self.settings,
            timeout=self.review_settings.timeouts.github_api_timeout,
        )

    async def handle_event(self, event_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Process one event end to end.

        Never raises: failures are logged with their traceback and reported
        in the returned dict.
        """
        if not is_supported_event(event_name, payload):
            self.logger.info(f"Skipped: unsupported event {event_name}/{payload.get('action')}")
            return {"status": "skipped", "event": event_name}

        log = self.logger.bind(event=event_name)
        try:
            pr = PullRequestContext.from_webhook(payload)
            log = log.bind(repository=pr.repo_full_name, pr_number=pr.number)

            light_bot, heavy_bot = self.build_bots()
            api = self.build_api(pr.installation_id)
            cache = RunCache()

            if event_name == REVIEW_COMMENT_EVENT:
                responder = CommentResponder(pr, api, heavy_bot, self.review_settings, self.prompts, cache)
                replied = await responder.respond(ReviewCommentEvent.from_webhook(payload))
                result = {"status": "completed", "event": event_name, "replied": replied}
            else:
                pipeline = ReviewPipeline(
                    pr, api, light_bot, heavy_bot, self.review_settings, self.prompts, cache
                )
                status = await pipeline.run()
                result = {
                    "status": "completed" if status is not None else "skipped",
                    "event": event_name,
                    "state": pipeline.state.value,
                }
                if status is not None:
                    result.update({"review_count": status.review_count, "lgtm_count": status.lgtm_count})

        except ConfigurationError as e:
            log.error(f"Configuration error: {e}")
            return {"status": "failed", "event": event_name, "error": e.to_dict()}
        except Exception as e:
            log.error(f"Failed to run: {e}", exc_info=True)
            return {"status": "failed", "event": event_name, "error": str(e)}

        log.info(f"LLM usage: {self.cost_tracker.get_stats()}")
        return result
