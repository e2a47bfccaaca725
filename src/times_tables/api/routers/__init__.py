"""API routers."""

from .auth_router import router as auth_router
from .practice_router import router as practice_router

__all__ = ["auth_router", "practice_router"]
