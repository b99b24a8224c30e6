"""
Store Review API Endpoints

Review ingestion (JSON and CSV upload) and the derived views the mobile
app reads: overview, reviews, issues, metrics and summary.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, File, HTTPException, Query, Request, UploadFile

from app.config import Settings, get_settings
from app.exceptions import ComputationError, InvalidInputError, StoreUnavailable
from app.schemas.review import (
    CsvImportResponse,
    Issue,
    MetricsResponse,
    OverviewStats,
    ReviewInsertResponse,
    ReviewRead,
    StoreSummary,
)
from app.services import review_ingestion
from app.services.review_aggregator import ReviewAggregator, normalize_range
from app.services.review_store import ReviewStore
from app.services.review_summary import SummaryBuilder
from app.services.store_resolver import resolve_store_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stores", tags=["stores"])


def get_review_store(request: Request) -> ReviewStore:
    """Review store created in the application lifespan."""
    return request.app.state.review_store


def get_aggregator(store: ReviewStore = Depends(get_review_store)) -> ReviewAggregator:
    return ReviewAggregator(store)


def get_store_id(store_id: str, settings: Settings = Depends(get_settings)) -> int:
    """Validate the path store id before any store access."""
    try:
        return resolve_store_id(store_id, settings.store_id_alias_map)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/{store_id}/overview", response_model=OverviewStats)
async def get_overview(
    store_id: int = Depends(get_store_id),
    aggregator: ReviewAggregator = Depends(get_aggregator),
) -> OverviewStats:
    """
    All-time review totals for a store.

    Example:
        curl http://localhost:4000/stores/1/overview
    """
    try:
        return await aggregator.get_overview(store_id)
    except StoreUnavailable:
        logger.exception("Error fetching overview for store %s", store_id)
        raise HTTPException(status_code=500, detail="Failed to fetch store overview")


@router.get("/{store_id}/reviews", response_model=List[ReviewRead])
async def get_reviews(
    store_id: int = Depends(get_store_id),
    limit: Optional[int] = Query(None, ge=1, le=500),
    aggregator: ReviewAggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_settings),
) -> List[ReviewRead]:
    """
    Most recent reviews first.

    Example:
        curl "http://localhost:4000/stores/1/reviews?limit=10"
    """
    try:
        return await aggregator.list_reviews(
            store_id, limit=limit or settings.default_reviews_limit
        )
    except StoreUnavailable:
        logger.exception("Error fetching reviews for store %s", store_id)
        raise HTTPException(status_code=500, detail="Failed to fetch reviews")


@router.post("/{store_id}/reviews", response_model=ReviewInsertResponse, status_code=201)
async def create_review(
    store_id: int = Depends(get_store_id),
    payload: Optional[Dict[str, Any]] = Body(None),
    store: ReviewStore = Depends(get_review_store),
) -> ReviewInsertResponse:
    """
    Insert a single review.

    Body: {rating?, source?, sentimentScore?, sentimentLabel?, text?, createdAt?}
    Sentiment is derived from rating when not supplied.

    Example:
        curl -X POST http://localhost:4000/stores/1/reviews \\
          -H "Content-Type: application/json" \\
          -d '{"rating": 5, "source": "GOOGLE", "text": "Great staff"}'
    """
    try:
        await review_ingestion.insert_review(store, store_id, payload or {})
    except StoreUnavailable:
        logger.exception("Error inserting review for store %s", store_id)
        raise HTTPException(status_code=500, detail="Failed to insert review")

    return ReviewInsertResponse(message="Review inserted")


@router.post(
    "/{store_id}/reviews/upload-csv",
    response_model=CsvImportResponse,
    status_code=201,
)
async def upload_reviews_csv(
    store_id: int = Depends(get_store_id),
    file: Optional[UploadFile] = File(None),
    store: ReviewStore = Depends(get_review_store),
) -> CsvImportResponse:
    """
    Bulk import reviews from a CSV file (form field "file").

    Headers are matched flexibly (rating/RATING, text/reviewText/REVIEW_TEXT,
    sentimentScore/sentiment_score/SENTIMENT_SCORE, ...). Rows with no rating
    and no text are skipped and counted.

    Example:
        curl -X POST http://localhost:4000/stores/1/reviews/upload-csv \\
          -F "file=@reviews.csv"
    """
    if file is None:
        raise HTTPException(status_code=400, detail='CSV file is required (field "file")')

    content = await file.read()
    try:
        result = await review_ingestion.import_csv(store, store_id, content)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except StoreUnavailable:
        logger.exception("Error importing CSV for store %s", store_id)
        raise HTTPException(status_code=500, detail="Failed to import CSV")
    finally:
        await file.close()

    return CsvImportResponse(
        message="CSV imported",
        rows_inserted=result.inserted_count,
        skipped_rows=result.skipped_count,
    )


@router.get("/{store_id}/issues", response_model=List[Issue])
async def get_issues(
    store_id: int = Depends(get_store_id),
    limit: Optional[int] = Query(None, ge=1, le=500),
    aggregator: ReviewAggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_settings),
) -> List[Issue]:
    """
    Reviews rated 3 or lower, or labelled Negative, tagged with themes.

    Example:
        curl "http://localhost:4000/stores/1/issues?limit=20"
    """
    try:
        return await aggregator.get_issues(
            store_id, limit=limit or settings.default_issues_limit
        )
    except StoreUnavailable:
        logger.exception("Error fetching issues for store %s", store_id)
        raise HTTPException(status_code=500, detail="Failed to fetch issues")


@router.get("/{store_id}/metrics", response_model=MetricsResponse)
async def get_metrics(
    store_id: int = Depends(get_store_id),
    range: Optional[str] = Query(None, description="7d, 30d or 90d"),
    aggregator: ReviewAggregator = Depends(get_aggregator),
) -> MetricsResponse:
    """
    Daily review count, average rating and sentiment over the range.

    Example:
        curl "http://localhost:4000/stores/1/metrics?range=7d"
    """
    range_key = normalize_range(range)
    try:
        data = await aggregator.get_metrics(store_id, range_key)
    except StoreUnavailable:
        logger.exception("Error fetching metrics for store %s", store_id)
        raise HTTPException(status_code=500, detail="Failed to fetch metrics")

    return MetricsResponse(range=range_key, data=data)


@router.get("/{store_id}/summary", response_model=StoreSummary)
async def get_summary(
    store_id: int = Depends(get_store_id),
    range: str = Query("7d", description="7d, 30d or 90d"),
    aggregator: ReviewAggregator = Depends(get_aggregator),
    settings: Settings = Depends(get_settings),
) -> StoreSummary:
    """
    Narrative summary with trend, top themes and highlights.

    Example:
        curl "http://localhost:4000/stores/1/summary?range=30d"
    """
    builder = SummaryBuilder(aggregator, issues_limit=settings.summary_issues_limit)
    try:
        return await builder.build_summary(store_id, range)
    except ComputationError:
        logger.exception("Error building summary for store %s", store_id)
        raise HTTPException(status_code=500, detail="Failed to build summary")
