"""
Review Aggregation Service

Computes the read-side views for a store: all-time overview, per-day
metrics over a lookback range, and the list of reviews needing attention.
Pure reads against the ReviewStore; nothing here writes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional

from app.schemas.review import Issue, MetricPoint, OverviewStats, ReviewRead
from app.services.issue_themes import tag_themes
from app.services.review_store import ReviewQuery, ReviewRecord, ReviewStore
from app.services.sentiment import NEGATIVE, POSITIVE

RANGE_DAYS: Dict[str, int] = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_RANGE = "30d"


def normalize_range(range_key: Optional[str]) -> str:
    """Return a supported range key; anything unknown falls back to 30d."""
    if range_key in RANGE_DAYS:
        return range_key
    return DEFAULT_RANGE


def range_start(range_key: str, now: Optional[datetime] = None) -> datetime:
    """Midnight UTC at the first of the last N calendar days (today included)."""
    now = now or datetime.now(timezone.utc)
    days = RANGE_DAYS[normalize_range(range_key)]
    first_day = now.astimezone(timezone.utc).date() - timedelta(days=days - 1)
    return datetime.combine(first_day, time.min, tzinfo=timezone.utc)


def _mean(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


@dataclass
class _DayBucket:
    ratings: List[float] = field(default_factory=list)
    sentiments: List[float] = field(default_factory=list)
    count: int = 0


class ReviewAggregator:
    """
    Read-side aggregation over a ReviewStore.

    Used directly by the API routes and by SummaryBuilder.
    """

    def __init__(self, store: ReviewStore):
        self.store = store

    async def list_reviews(self, store_id: int, limit: int = 50) -> List[ReviewRead]:
        """Most recent reviews first."""
        records = await self.store.query(store_id, ReviewQuery(limit=limit))
        return [ReviewRead.model_validate(record) for record in records]

    async def get_overview(self, store_id: int) -> OverviewStats:
        """
        All-time totals for a store.

        Args:
            store_id: Owning store

        Returns:
            OverviewStats; avg_rating and timestamps are None for an empty store
        """
        records = await self.store.query(store_id, ReviewQuery(newest_first=False))

        ratings = [r.rating for r in records if r.rating is not None]
        timestamps = [r.created_at for r in records]

        return OverviewStats(
            store_id=store_id,
            total_reviews=len(records),
            avg_rating=_mean(ratings),
            positive_reviews=sum(1 for r in records if r.sentiment_label == POSITIVE),
            negative_reviews=sum(1 for r in records if r.sentiment_label == NEGATIVE),
            first_review_at=min(timestamps) if timestamps else None,
            last_review_at=max(timestamps) if timestamps else None,
        )

    async def get_metrics(
        self,
        store_id: int,
        range_key: Optional[str] = DEFAULT_RANGE,
        now: Optional[datetime] = None,
    ) -> List[MetricPoint]:
        """
        Per-day review volume, rating and sentiment over the range.

        Only days with at least one review are returned, oldest first.
        """
        since = range_start(normalize_range(range_key), now)
        records = await self.store.query(
            store_id, ReviewQuery(since=since, newest_first=False)
        )

        buckets: Dict[date, _DayBucket] = {}
        for record in records:
            bucket = buckets.setdefault(record.created_at.date(), _DayBucket())
            bucket.count += 1
            if record.rating is not None:
                bucket.ratings.append(record.rating)
            if record.sentiment_score is not None:
                bucket.sentiments.append(record.sentiment_score)

        return [
            MetricPoint(
                date=day,
                review_count=bucket.count,
                avg_rating=_mean(bucket.ratings),
                avg_sentiment=_mean(bucket.sentiments),
            )
            for day, bucket in sorted(buckets.items())
        ]

    async def get_issues(self, store_id: int, limit: int = 20) -> List[Issue]:
        """Low-rated or negative reviews, newest first, tagged with themes."""
        records = await self.store.query(
            store_id, ReviewQuery(needs_attention=True, limit=limit)
        )
        return [self._to_issue(record) for record in records]

    @staticmethod
    def _to_issue(record: ReviewRecord) -> Issue:
        review = ReviewRead.model_validate(record)
        return Issue(**review.model_dump(), themes=tag_themes(record.text))
