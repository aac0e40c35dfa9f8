"""Main API router aggregation."""

from fastapi import APIRouter

from memehub.api.ai import router as ai_router
from memehub.api.auth import router as auth_router
from memehub.api.memes import router as memes_router
from memehub.api.users import router as users_router

# Main API router
api_router = APIRouter(prefix="/api")

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(memes_router)
api_router.include_router(ai_router)
