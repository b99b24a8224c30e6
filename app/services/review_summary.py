"""
Review Summary Service

Combines overview, metrics and issues into a trend, a ranked theme list and
a short narrative for the store's home screen. Rule-based text only.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from app.exceptions import ComputationError
from app.schemas.review import Issue, MetricPoint, OverviewStats, StoreSummary, SummaryStats
from app.services.review_aggregator import ReviewAggregator, normalize_range

logger = logging.getLogger(__name__)

TREND_UP = "up"
TREND_DOWN = "down"
TREND_FLAT = "flat"

# Relative change versus the overall average that counts as a trend
TREND_THRESHOLD = 0.05

NO_DATA_TEXT = "Not enough data yet to build a summary."


def recent_average(metrics: Sequence[MetricPoint]) -> Optional[float]:
    """Mean of the daily averages; days without a rating are left out."""
    daily = [point.avg_rating for point in metrics if point.avg_rating is not None]
    if not daily:
        return None
    return sum(daily) / len(daily)


def compute_trend(recent_avg: Optional[float], overall_avg: Optional[float]) -> str:
    """Classify recent vs overall average as up, down or flat."""
    if recent_avg is None or overall_avg is None or overall_avg == 0:
        return TREND_FLAT

    # Rounded so an exact 5% change is not pushed over the threshold by float error
    change = round((recent_avg - overall_avg) / overall_avg, 9)
    if change > TREND_THRESHOLD:
        return TREND_UP
    if change < -TREND_THRESHOLD:
        return TREND_DOWN
    return TREND_FLAT


def rank_themes(issues: Iterable[Issue], top_n: int = 3) -> List[str]:
    """Most mentioned themes first; ties keep first-seen order."""
    counts: Dict[str, int] = {}
    for issue in issues:
        for theme in issue.themes:
            key = str(theme).lower()
            counts[key] = counts.get(key, 0) + 1

    # sorted() is stable and dicts keep insertion order
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [name for name, _ in ranked[:top_n]]


def build_summary_text(
    overview: OverviewStats,
    recent_avg: Optional[float],
    trend: str,
    top_themes: Sequence[str],
) -> str:
    parts: List[str] = []

    if overview.total_reviews > 0 and overview.avg_rating is not None:
        parts.append(
            f"You have {overview.total_reviews} total reviews with an average "
            f"rating of {overview.avg_rating:.1f} ★."
        )

    if recent_avg is not None and trend != TREND_FLAT:
        parts.append(
            f"In the selected period your average rating is {recent_avg:.1f} ★, "
            f"trending {trend} versus your overall average."
        )

    if top_themes:
        parts.append(f"Guests are most often mentioning: {', '.join(top_themes)}.")

    if not parts:
        return NO_DATA_TEXT
    return " ".join(parts)


def build_highlights(
    overview: OverviewStats,
    trend: str,
    top_themes: Sequence[str],
) -> List[str]:
    highlights = [f"Rating trend: {trend.capitalize()} vs overall average."]

    if top_themes:
        highlights.append(f"Top themes: {', '.join(top_themes)}.")

    if overview.negative_reviews > 0:
        highlights.append(
            f"{overview.negative_reviews} negative reviews so far; "
            "focus on resolving these quickly."
        )

    return highlights


class SummaryBuilder:
    """Builds the store summary from the aggregator's three read views."""

    def __init__(self, aggregator: ReviewAggregator, issues_limit: int = 50):
        self.aggregator = aggregator
        self.issues_limit = issues_limit

    async def build_summary(self, store_id: int, range_key: Optional[str] = "7d") -> StoreSummary:
        """
        Build the narrative summary for a store.

        Args:
            store_id: Owning store
            range_key: "7d", "30d" or "90d" (unknown values mean 30d)

        Returns:
            StoreSummary with text, highlights and stats

        Raises:
            ComputationError: if any of the underlying reads fails
        """
        range_key = normalize_range(range_key)

        try:
            overview, metrics, issues = await asyncio.gather(
                self.aggregator.get_overview(store_id),
                self.aggregator.get_metrics(store_id, range_key),
                self.aggregator.get_issues(store_id, limit=self.issues_limit),
            )
        except Exception as exc:
            logger.error("Summary inputs failed for store %s: %s", store_id, exc)
            raise ComputationError(f"Could not build summary for store {store_id}") from exc

        recent_avg = recent_average(metrics)
        trend = compute_trend(recent_avg, overview.avg_rating)
        top_themes = rank_themes(issues)

        return StoreSummary(
            store_id=store_id,
            range=range_key,
            summary_text=build_summary_text(overview, recent_avg, trend, top_themes),
            highlights=build_highlights(overview, trend, top_themes),
            stats=SummaryStats(
                total_reviews=overview.total_reviews,
                avg_rating=overview.avg_rating,
                recent_avg_rating=recent_avg,
                positive_reviews=overview.positive_reviews,
                negative_reviews=overview.negative_reviews,
                top_themes=top_themes,
                first_review_at=overview.first_review_at,
                last_review_at=overview.last_review_at,
            ),
        )
