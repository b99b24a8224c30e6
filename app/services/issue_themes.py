"""Keyword-based theme tagging for review text."""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

THEME_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "service": (
        "service",
        "staff",
        "waiter",
        "waitress",
        "server",
        "rude",
        "attitude",
        "host",
    ),
    "speed": ("slow", "delay", "waited", "waiting", "long wait"),
    "food": (
        "food",
        "meal",
        "dish",
        "cold",
        "bland",
        "salty",
        "undercooked",
        "overcooked",
        "portion",
    ),
    "cleanliness": ("dirty", "cleanliness", "sticky", "smell", "gross"),
    "price": ("price", "expensive", "overpriced", "cheap"),
    "ambiance": ("loud", "noise", "music", "crowded", "atmosphere"),
}

THEMES: Tuple[str, ...] = tuple(THEME_KEYWORDS)


def tag_themes(text: Optional[str]) -> List[str]:
    """
    Tag review text with themes by case-insensitive substring match.

    Each theme appears at most once; themes come back in THEME_KEYWORDS order.
    """
    if not text:
        return []

    lower = text.lower()
    return [
        theme
        for theme, keywords in THEME_KEYWORDS.items()
        if any(keyword in lower for keyword in keywords)
    ]
