"""API routers."""

from memehub.api.router import api_router

__all__ = ["api_router"]
