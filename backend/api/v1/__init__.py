"""Version 1 HTTP routes."""

from fastapi import APIRouter

from .auth import router as auth_router
from .posts import router as posts_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(posts_router)

__all__ = ["api_router"]
