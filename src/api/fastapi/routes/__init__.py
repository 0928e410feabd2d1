from fastapi import APIRouter

from . import github, health


def register_routes(router: APIRouter):
    router.include_router(health.router)
    router.include_router(github.router)
