from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from src.api.fastapi import FastAPIApp
from src.core.config import settings
from src.core.pr_review_config import pr_review_settings
from src.utils.exception import add_exception_handlers
from src.utils.logging import configure_logging, get_logger

load_dotenv()
configure_logging(debug=pr_review_settings.debug)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Starting up Sentinel PR Reviewer (provider={pr_review_settings.models.provider}, "
        f"github_auth={settings.github_auth_mode}, max_files={pr_review_settings.limits.max_files})"
    )
    if not settings.GITHUB_WEBHOOK_SECRET:
        logger.warning("GITHUB_WEBHOOK_SECRET is not set; webhook signatures will not be verified")
    if settings.github_auth_mode is None:
        logger.warning("No GitHub credentials configured; review runs will fail")
    yield
    logger.info("Shutting down Sentinel PR Reviewer")


app_instance = FastAPIApp(lifespan=lifespan)
app = app_instance.get_app()

add_exception_handlers(app, logger)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="debug" if pr_review_settings.debug else "info")
