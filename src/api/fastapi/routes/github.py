import json
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException
from fastapi.requests import Request
from fastapi.responses import JSONResponse

from src.api.fastapi.middlewares.github import GithubMiddleware
from src.core.config import settings
from src.models.schemas.responses import WebhookResponse
from src.services.github.github_service import GithubService, get_github_service
from src.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/github",
    tags=["Github"],
)


@router.post("/events")
async def github_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_github_event: Optional[str] = Header(None),
    x_hub_signature_256: Optional[str] = Header(None),
    github_service: GithubService = Depends(get_github_service)
):
    """Accept a GitHub webhook delivery; reviews run after the response is sent."""
    github_middleware = GithubMiddleware()
    try:
        body_bytes = await request.body()

        webhook_secret = settings.GITHUB_WEBHOOK_SECRET or None
        if webhook_secret and not github_middleware.verify_webhook_signature(
            body_bytes, x_hub_signature_256, webhook_secret
        ):
            logger.warning("Invalid webhook signature")
            raise HTTPException(status_code=401, detail="Invalid signature")

        try:
            body = json.loads(body_bytes.decode('utf-8'))
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise HTTPException(status_code=400, detail="Invalid JSON payload")

        if not x_github_event:
            raise HTTPException(status_code=400, detail="Missing X-GitHub-Event header")

        logger.info(f"GitHub webhook received - event: {x_github_event}")

        result = github_service.process_webhook(body, x_github_event, background_tasks)
        response = WebhookResponse(**result)
        return JSONResponse(
            content=response.model_dump(exclude_none=True),
            status_code=202 if response.status == "accepted" else 200,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error processing webhook: {str(e)}")
        raise HTTPException(status_code=500, detail="Internal server error")
