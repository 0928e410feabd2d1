from fastapi import APIRouter

from src.core.config import settings
from src.core.pr_review_config import pr_review_settings
from src.exceptions.pr_review_exceptions import ConfigurationError
from src.services.llm.llm_factory import LLMFactory
from src.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health")
def health_check():
    """Reports whether the reviewer has the credentials a run needs."""
    logger.info("Health check endpoint hit")
    try:
        provider = LLMFactory.resolve_provider(pr_review_settings.models.provider, settings).value
    except ConfigurationError:
        provider = None
    github_auth = settings.github_auth_mode
    return {
        "status": "ok" if provider and github_auth else "degraded",
        "service": settings.app_name,
        "llm_provider": provider,
        "github_auth": github_auth,
    }


@router.get("/ping")
def ping():
    logger.info("Ping endpoint hit")
    return {"status": "pong"}
