from __future__ import annotations

import logging
from typing import Dict, Optional

from app.exceptions import InvalidInputError
from app.services.review_normalizer import parse_int

logger = logging.getLogger(__name__)

# reviews.store_id is a 32-bit signed INTEGER column
MIN_STORE_ID = -(2**31)
MAX_STORE_ID = 2**31 - 1


def resolve_store_id(store_id: str, aliases: Optional[Dict[str, str]] = None) -> int:
    """Resolve a path store id to an integer, allowing alias mapping."""
    canonical = (aliases or {}).get(store_id, store_id)
    resolved = parse_int(canonical.strip())
    if resolved is None or not MIN_STORE_ID <= resolved <= MAX_STORE_ID:
        logger.error("Invalid store_id: %s", store_id)
        raise InvalidInputError(f"Invalid storeId: {store_id}")
    return resolved
