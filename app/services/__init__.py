# Review services
from app.services import review_ingestion
from app.services.review_aggregator import ReviewAggregator
from app.services.review_store import (
    InMemoryReviewStore,
    ReviewQuery,
    ReviewRecord,
    ReviewStore,
    SqlReviewStore,
)
from app.services.review_summary import SummaryBuilder

__all__ = [
    "review_ingestion",
    "ReviewAggregator",
    "InMemoryReviewStore",
    "ReviewQuery",
    "ReviewRecord",
    "ReviewStore",
    "SqlReviewStore",
    "SummaryBuilder",
]
