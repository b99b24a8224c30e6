from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import stores_router
from app.config import Settings, get_settings
from app.database import build_engine, build_session_factory, close_db, init_db
from app.services.review_store import InMemoryReviewStore, SqlReviewStore

LOGGER = logging.getLogger("storesight-api")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API; the review store is wired up from settings at startup."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown events."""
        engine = None
        if settings.uses_memory_store:
            app.state.review_store = InMemoryReviewStore()
            LOGGER.info("Using in-memory review store")
        else:
            engine = build_engine(settings)
            # create_all() is idempotent, safe on every startup
            try:
                await init_db(engine)
                LOGGER.info("Database initialized")
            except Exception as e:
                LOGGER.error("Database initialization failed: %s", e)
                raise
            app.state.review_store = SqlReviewStore(build_session_factory(engine))

        yield

        await app.state.review_store.close()
        if engine is not None:
            await close_db(engine)

    app = FastAPI(
        title="StoreSight Review Analytics",
        description="Review ingestion and analytics API for the StoreSight mobile app",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Configure CORS (the mobile client and Expo web preview call this API)
    if settings.is_development:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "ok", "service": "storesight-backend"}

    @app.get("/")
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "name": "StoreSight Review Analytics",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(stores_router)
    return app


app = create_app()
