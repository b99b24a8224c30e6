"""
Review Normalization

Turns raw review records (JSON bodies, CSV rows) into canonical reviews.
Header names vary between sources, so every field is looked up through
an ordered alias table. Normalization never raises: anything malformed
degrades to None or the field default.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

DEFAULT_SOURCE = "Unknown"

# Field -> accepted keys, most preferred first
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "store_id": ("storeId", "store_id", "STORE_ID"),
    "rating": ("rating", "RATING", "Rating"),
    "source": ("source", "SOURCE", "Source"),
    "sentiment_score": ("sentimentScore", "sentiment_score", "SENTIMENT_SCORE"),
    "sentiment_label": ("sentimentLabel", "sentiment_label", "SENTIMENT_LABEL"),
    "text": ("text", "reviewText", "review_text", "REVIEW_TEXT", "TEXT"),
    "created_at": ("createdAt", "created_at", "CREATED_AT"),
}


@dataclass(frozen=True)
class NormalizedReview:
    """Canonical review record, ready to be inserted."""

    store_id: int
    rating: Optional[float] = None
    source: str = DEFAULT_SOURCE
    sentiment_score: Optional[float] = None
    sentiment_label: Optional[str] = None
    text: str = ""
    # None means "stamp with ingestion time"
    created_at: Optional[datetime] = field(default=None)


def resolve_field(raw: Mapping[str, Any], field_name: str) -> Any:
    """Return the first alias value that is present and not empty, else None."""
    for alias in FIELD_ALIASES[field_name]:
        value = raw.get(alias)
        if value is None:
            continue
        if isinstance(value, str) and value == "":
            continue
        return value
    return None


def parse_float(value: Any) -> Optional[float]:
    """Parse a finite float; empty, non-numeric and non-finite input give None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_int(value: Any) -> Optional[int]:
    """Parse an integer id ("12", 12, 12.0); anything else gives None."""
    number = parse_float(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize(raw: Mapping[str, Any], store_id: int) -> NormalizedReview:
    """
    Normalize a raw review record.

    Args:
        raw: JSON body or CSV row, keys in any of the FIELD_ALIASES spellings
        store_id: Owning store

    Returns:
        NormalizedReview with defaults applied (sentiment is not derived here)

    Example:
        >>> normalize({"RATING": "4", "REVIEW_TEXT": "Nice"}, 1).rating
        4.0
    """
    source = resolve_field(raw, "source")
    source = str(source).strip() if source is not None else ""

    text = resolve_field(raw, "text")
    label = resolve_field(raw, "sentiment_label")

    return NormalizedReview(
        store_id=store_id,
        rating=parse_float(resolve_field(raw, "rating")),
        source=source or DEFAULT_SOURCE,
        sentiment_score=parse_float(resolve_field(raw, "sentiment_score")),
        sentiment_label=str(label) if label is not None else None,
        text=str(text) if text is not None else "",
        created_at=parse_timestamp(resolve_field(raw, "created_at")),
    )


def is_meaningful(review: NormalizedReview) -> bool:
    """A bulk-import row is kept when it has a rating or some non-blank text."""
    return review.rating is not None or bool(review.text.strip())
