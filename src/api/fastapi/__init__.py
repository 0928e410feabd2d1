from fastapi import APIRouter, FastAPI

from .routes import register_routes

API_PREFIX = "/api"


class FastAPIApp:
    """Webhook receiver: health checks plus the GitHub events endpoint."""

    def __init__(self, lifespan=None, title: str = "Sentinel PR Reviewer"):
        self.app = FastAPI(
            title=title,
            description="Summarizes and reviews pull requests from GitHub webhook events",
            lifespan=lifespan,
        )
        self.__register_routes()

    def get_app(self) -> FastAPI:
        return self.app

    def __register_routes(self):
        api_router = APIRouter(prefix=API_PREFIX)
        register_routes(api_router)
        self.app.include_router(api_router)
