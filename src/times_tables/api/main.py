"""
FastAPI application for times-tables.

Provides a REST API for:
- Account registration and bearer-token login
- Fetching the next problem with progress figures
- Submitting answers (graded server-side)
- Resetting a user's progress

Each user owns one scheduling engine, stored as JSON in SQLite.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .. import __version__
from ..config import Settings, get_settings
from .routers import auth_router, practice_router
from .store import Store


def create_app(settings: Settings | None = None, store: Store | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (cached environment settings if None)
        store: Pre-built store; otherwise one is opened at startup from settings
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup/shutdown events."""
        # Startup
        logger.info("Starting times-tables server...")
        app.state.store = store or Store(
            settings.database_path,
            session_ttl_days=settings.session_ttl_days,
        )
        purged = app.state.store.purge_expired_sessions()
        if purged:
            logger.info(f"Purged {purged} expired sessions")
        logger.info(f"Service ready on {settings.api_host}:{settings.api_port}")

        yield

        # Shutdown
        logger.info("Shutting down times-tables server...")
        if store is None:
            app.state.store.close()

    app = FastAPI(
        title="Times Tables",
        description="Spaced-repetition multiplication practice.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router, prefix="/api", tags=["auth"])
    app.include_router(practice_router, prefix="/api", tags=["practice"])

    @app.get("/health", tags=["health"])
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
