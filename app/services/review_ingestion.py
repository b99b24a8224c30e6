"""
Review Ingestion Service

Handles single-review inserts and bulk CSV imports.
Every record goes through the normalizer, gets sentiment derived from its
rating when none was supplied, and is inserted one at a time in input order.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from app.exceptions import InvalidInputError
from app.services.review_normalizer import (
    NormalizedReview,
    is_meaningful,
    normalize,
    parse_int,
    resolve_field,
)
from app.services.review_store import ReviewStore
from app.services.sentiment import apply_sentiment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportResult:
    """Outcome of a bulk import."""

    inserted_count: int
    skipped_count: int


async def insert_review(
    store: ReviewStore,
    store_id: int,
    raw: Mapping[str, Any],
) -> int:
    """
    Normalize and insert a single review.

    Args:
        store: Review store
        store_id: Owning store
        raw: Request body, keys in any supported alias spelling

    Returns:
        Id of the new review
    """
    review = apply_sentiment(normalize(raw, store_id))
    return await store.insert(review)


async def bulk_ingest(
    store: ReviewStore,
    reviews: Iterable[NormalizedReview],
) -> ImportResult:
    """
    Insert reviews sequentially, skipping rows with no rating and no text.

    Not atomic: rows inserted before a failure stay committed.
    """
    inserted = 0
    skipped = 0

    for review in reviews:
        if not is_meaningful(review):
            skipped += 1
            continue
        await store.insert(apply_sentiment(review))
        inserted += 1

    logger.info(f"Ingested {inserted} reviews (skipped {skipped} empty rows)")
    return ImportResult(inserted_count=inserted, skipped_count=skipped)


def read_csv_rows(content: bytes) -> List[Dict[str, str]]:
    """
    Parse CSV bytes into row dicts with every value kept as a string.

    Raises:
        InvalidInputError: if the content is not readable CSV
    """
    if not content.strip():
        return []

    try:
        frame = pd.read_csv(
            io.BytesIO(content),
            dtype=str,
            keep_default_na=False,
            encoding="utf-8-sig",
            skipinitialspace=True,
        )
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise InvalidInputError(f"Could not parse CSV file: {exc}") from exc

    frame = frame.rename(columns=lambda column: str(column).strip())
    return frame.to_dict(orient="records")


async def import_csv(
    store: ReviewStore,
    store_id: int,
    content: bytes,
) -> ImportResult:
    """Import an uploaded CSV file for one store."""
    rows = read_csv_rows(content)
    logger.info(f"Importing {len(rows)} CSV rows for store {store_id}")
    return await bulk_ingest(store, (normalize(row, store_id) for row in rows))


async def import_csv_rows(
    store: ReviewStore,
    rows: Iterable[Mapping[str, Any]],
    default_store_id: Optional[int] = None,
) -> ImportResult:
    """
    Import rows that may name their own store.

    A row's store_id column wins over default_store_id; rows with neither
    are skipped.
    """
    reviews: List[NormalizedReview] = []
    missing_store = 0

    for row in rows:
        store_id = parse_int(resolve_field(row, "store_id"))
        if store_id is None:
            store_id = default_store_id
        if store_id is None:
            missing_store += 1
            continue
        reviews.append(normalize(row, store_id))

    if missing_store:
        logger.warning(f"Skipping {missing_store} rows without a store id")

    result = await bulk_ingest(store, reviews)
    return ImportResult(
        inserted_count=result.inserted_count,
        skipped_count=result.skipped_count + missing_store,
    )
