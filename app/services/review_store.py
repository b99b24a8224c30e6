"""
Review Store

Persistence seam for reviews. The analytics services only talk to the
ReviewStore interface; production wires in SqlReviewStore (async
SQLAlchemy), tests and local demos can use InMemoryReviewStore.
"""

from __future__ import annotations

import abc
import itertools
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.exceptions import StoreUnavailable
from app.models.review import Review
from app.services.review_normalizer import NormalizedReview
from app.services.sentiment import NEGATIVE

logger = logging.getLogger(__name__)

# Reviews at or below this rating need attention
ATTENTION_RATING_THRESHOLD = 3.0


@dataclass(frozen=True)
class ReviewRecord:
    """A stored review as returned by the store."""

    id: int
    store_id: int
    rating: Optional[float]
    source: str
    sentiment_score: Optional[float]
    sentiment_label: Optional[str]
    text: str
    created_at: datetime

    @property
    def needs_attention(self) -> bool:
        if self.rating is not None and self.rating <= ATTENTION_RATING_THRESHOLD:
            return True
        return self.sentiment_label == NEGATIVE


@dataclass(frozen=True)
class ReviewQuery:
    """Filters and ordering for ReviewStore.query."""

    since: Optional[datetime] = None
    needs_attention: bool = False
    newest_first: bool = True
    limit: Optional[int] = None


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ReviewStore(abc.ABC):
    """Capability interface for review persistence."""

    @abc.abstractmethod
    async def insert(self, review: NormalizedReview) -> int:
        """Persist a review and return its new id."""

    @abc.abstractmethod
    async def query(
        self,
        store_id: int,
        filters: Optional[ReviewQuery] = None,
    ) -> List[ReviewRecord]:
        """Return reviews for a store matching the filters."""

    async def close(self) -> None:
        """Release any resources held by the store."""


class SqlReviewStore(ReviewStore):
    """
    ReviewStore backed by the reviews table.

    Each call opens its own session, so concurrent reads (e.g. the summary
    fan-out) never share one.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def insert(self, review: NormalizedReview) -> int:
        row = Review(
            store_id=review.store_id,
            rating=review.rating,
            source=review.source,
            sentiment_score=review.sentiment_score,
            sentiment_label=review.sentiment_label,
            text=review.text,
            created_at=_as_utc(review.created_at or datetime.now(timezone.utc)),
        )
        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
                return row.id
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Review insert failed for store %s: %s", review.store_id, exc)
            raise StoreUnavailable("Review store insert failed") from exc

    async def query(
        self,
        store_id: int,
        filters: Optional[ReviewQuery] = None,
    ) -> List[ReviewRecord]:
        filters = filters or ReviewQuery()

        stmt = select(Review).where(Review.store_id == store_id)
        if filters.since is not None:
            stmt = stmt.where(Review.created_at >= _as_utc(filters.since))
        if filters.needs_attention:
            stmt = stmt.where(
                or_(
                    Review.rating <= ATTENTION_RATING_THRESHOLD,
                    Review.sentiment_label == NEGATIVE,
                )
            )

        if filters.newest_first:
            stmt = stmt.order_by(Review.created_at.desc(), Review.id.desc())
        else:
            stmt = stmt.order_by(Review.created_at.asc(), Review.id.asc())

        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                rows = list(result.scalars().all())
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Review query failed for store %s: %s", store_id, exc)
            raise StoreUnavailable("Review store query failed") from exc

        return [self._to_record(row) for row in rows]

    @staticmethod
    def _to_record(row: Review) -> ReviewRecord:
        return ReviewRecord(
            id=row.id,
            store_id=row.store_id,
            rating=row.rating,
            source=row.source,
            sentiment_score=row.sentiment_score,
            sentiment_label=row.sentiment_label,
            text=row.text or "",
            created_at=_as_utc(row.created_at),
        )


class InMemoryReviewStore(ReviewStore):
    """ReviewStore kept in a Python list. Not shared across processes."""

    def __init__(self) -> None:
        self._reviews: List[ReviewRecord] = []
        self._ids = itertools.count(1)

    async def insert(self, review: NormalizedReview) -> int:
        record = ReviewRecord(
            id=next(self._ids),
            store_id=review.store_id,
            rating=review.rating,
            source=review.source,
            sentiment_score=review.sentiment_score,
            sentiment_label=review.sentiment_label,
            text=review.text,
            created_at=_as_utc(review.created_at or datetime.now(timezone.utc)),
        )
        self._reviews.append(record)
        return record.id

    async def query(
        self,
        store_id: int,
        filters: Optional[ReviewQuery] = None,
    ) -> List[ReviewRecord]:
        filters = filters or ReviewQuery()

        matches = [r for r in self._reviews if r.store_id == store_id]
        if filters.since is not None:
            since = _as_utc(filters.since)
            matches = [r for r in matches if r.created_at >= since]
        if filters.needs_attention:
            matches = [r for r in matches if r.needs_attention]

        matches.sort(key=lambda r: (r.created_at, r.id), reverse=filters.newest_first)

        if filters.limit is not None:
            matches = matches[: filters.limit]
        return matches
