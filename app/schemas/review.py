from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# For API responses
class ReviewRead(CamelModel):
    """Stored review as returned to the client."""

    id: int
    store_id: int
    rating: Optional[float] = None
    source: str
    sentiment_score: Optional[float] = None
    sentiment_label: Optional[str] = None
    text: str
    created_at: datetime


class Issue(ReviewRead):
    """Review that needs attention, tagged with themes."""

    themes: List[str] = []


# Aggregates (computed on demand, never stored)
class OverviewStats(CamelModel):
    """All-time review totals for a store."""

    store_id: int
    total_reviews: int
    avg_rating: Optional[float] = None
    positive_reviews: int
    negative_reviews: int
    first_review_at: Optional[datetime] = None
    last_review_at: Optional[datetime] = None


class MetricPoint(CamelModel):
    """One calendar day of review activity."""

    date: date
    review_count: int
    avg_rating: Optional[float] = None
    avg_sentiment: Optional[float] = None


class MetricsResponse(CamelModel):
    range: str
    data: List[MetricPoint]


class SummaryStats(CamelModel):
    total_reviews: int
    avg_rating: Optional[float] = None
    recent_avg_rating: Optional[float] = None
    positive_reviews: int
    negative_reviews: int
    top_themes: List[str]
    first_review_at: Optional[datetime] = None
    last_review_at: Optional[datetime] = None


class StoreSummary(CamelModel):
    """Narrative summary combining overview, metrics and issues."""

    store_id: int
    range: str
    summary_text: str
    highlights: List[str]
    stats: SummaryStats


# Ingestion responses
class ReviewInsertResponse(CamelModel):
    message: str


class CsvImportResponse(CamelModel):
    message: str
    rows_inserted: int
    skipped_rows: int
