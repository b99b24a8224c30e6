"""
Pytest configuration and fixtures.

This module provides fixtures that simulate a store's review history:
- A SQLite-backed review store (same code path as production Postgres)
- An in-memory review store
- Review factories with realistic ratings, sources and text
- An HTTP client against the FastAPI app with the store swapped in
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.api.stores import get_review_store
from app.config import Settings, get_settings
from app.database import Base, build_session_factory
from app.main import create_app
from app.models import Review  # noqa: F401
from app.services.review_normalizer import NormalizedReview
from app.services.review_store import InMemoryReviewStore, ReviewStore, SqlReviewStore
from app.services.sentiment import apply_sentiment

STORE_ID = 1
OTHER_STORE_ID = 2


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path):
    """Create a test database engine backed by a temporary SQLite file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'reviews.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(db_engine)


@pytest_asyncio.fixture(scope="function")
async def sql_store(session_factory) -> SqlReviewStore:
    return SqlReviewStore(session_factory)


@pytest.fixture
def memory_store() -> InMemoryReviewStore:
    return InMemoryReviewStore()


@pytest_asyncio.fixture(params=["sql", "memory"])
async def review_store(request, session_factory) -> ReviewStore:
    """Runs the test once against each ReviewStore implementation."""
    if request.param == "sql":
        return SqlReviewStore(session_factory)
    return InMemoryReviewStore()


@pytest.fixture
def make_review() -> Callable[..., NormalizedReview]:
    """
    Build a NormalizedReview with sentiment derived like the ingest path.

    days_ago places the review relative to now (UTC).
    """

    def _make(
        rating: Optional[float] = 4.0,
        text: str = "",
        store_id: int = STORE_ID,
        source: str = "GOOGLE",
        days_ago: float = 0,
        created_at: Optional[datetime] = None,
        sentiment_score: Optional[float] = None,
        sentiment_label: Optional[str] = None,
    ) -> NormalizedReview:
        if created_at is None:
            created_at = datetime.now(timezone.utc) - timedelta(days=days_ago)
        return apply_sentiment(
            NormalizedReview(
                store_id=store_id,
                rating=rating,
                source=source,
                sentiment_score=sentiment_score,
                sentiment_label=sentiment_label,
                text=text,
                created_at=created_at,
            )
        )

    return _make


@pytest_asyncio.fixture
async def seeded_store(review_store: ReviewStore, make_review) -> ReviewStore:
    """
    A week of reviews for "Demo Store - Alpharetta" (store 1):
    - Two glowing reviews
    - A middling one
    - Two complaints about service and wait times
    Plus one review for a different store that must never leak in.
    """
    reviews = [
        make_review(5.0, "Staff was super friendly and my order was perfect!", days_ago=6),
        make_review(4.0, "Good coffee, quick pickup.", source="UBER_EATS", days_ago=5),
        make_review(3.0, "Fine. Music was a bit loud.", days_ago=3),
        make_review(2.0, "Food was good but it took 50 minutes, slow service.", days_ago=1),
        make_review(1.0, "Rude host and the food was cold.", source="YELP", days_ago=0),
        make_review(1.0, "Dirty tables", store_id=OTHER_STORE_ID, days_ago=1),
    ]
    for review in reviews:
        await review_store.insert(review)
    return review_store


@pytest_asyncio.fixture
async def client(sql_store: SqlReviewStore) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the API with the SQLite-backed store."""
    app = create_app(Settings(review_store_backend="memory"))
    app.dependency_overrides[get_review_store] = lambda: sql_store
    app.dependency_overrides[get_settings] = lambda: Settings(store_id_aliases='{"demo": "1"}')

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client

    app.dependency_overrides.clear()
