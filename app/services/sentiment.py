"""
Sentiment Derivation

Maps a star rating onto a sentiment score/label using fixed thresholds.
Used on insert when the caller did not supply sentiment.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.services.review_normalizer import NormalizedReview

POSITIVE = "Positive"
NEUTRAL = "Neutral"
NEGATIVE = "Negative"

SENTIMENT_LABELS = (POSITIVE, NEUTRAL, NEGATIVE)


@dataclass(frozen=True)
class DerivedSentiment:
    """Score in [-1.0, 1.0] and its label, or both None."""

    score: Optional[float]
    label: Optional[str]


def derive_sentiment(rating: Optional[float]) -> DerivedSentiment:
    """
    Derive sentiment from a rating.

    Args:
        rating: Star rating (1.0-5.0) or None

    Returns:
        DerivedSentiment; both fields None when rating is None

    Example:
        >>> derive_sentiment(4.6)
        DerivedSentiment(score=0.9, label='Positive')
    """
    if rating is None:
        return DerivedSentiment(score=None, label=None)

    if rating >= 4.5:
        return DerivedSentiment(score=0.9, label=POSITIVE)
    if rating >= 4.0:
        return DerivedSentiment(score=0.5, label=POSITIVE)
    if rating <= 2.5:
        return DerivedSentiment(score=-0.6, label=NEGATIVE)
    return DerivedSentiment(score=0.0, label=NEUTRAL)


def apply_sentiment(review: "NormalizedReview") -> "NormalizedReview":
    """Fill in sentiment from rating when the review carries none."""
    if review.sentiment_score is not None or review.sentiment_label is not None:
        return review
    if review.rating is None:
        return review

    derived = derive_sentiment(review.rating)
    return replace(review, sentiment_score=derived.score, sentiment_label=derived.label)
