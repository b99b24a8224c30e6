"""
Bulk review import job - CLI entry point.

Usage:
    # Rows carry their own store_id column:
    python -m app.jobs.import_reviews reviews.csv

    # Fallback store for rows without one:
    python -m app.jobs.import_reviews reviews.csv --store-id 1
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("review-import")


async def run_import(path: Path, store_id: Optional[int] = None) -> dict:
    """
    Import a CSV file into the configured review store.

    Args:
        path: CSV file to import
        store_id: Store for rows without a store_id column

    Returns:
        Dict with job results
    """
    from app.config import get_settings
    from app.database import build_engine, build_session_factory, close_db, init_db
    from app.exceptions import ReviewAnalyticsError
    from app.services.review_ingestion import import_csv_rows, read_csv_rows
    from app.services.review_store import SqlReviewStore

    settings = get_settings()
    engine = build_engine(settings)

    try:
        await init_db(engine)
        store = SqlReviewStore(build_session_factory(engine))

        rows = read_csv_rows(path.read_bytes())
        logger.info(f"Found {len(rows)} rows in {path}")

        result = await import_csv_rows(store, rows, default_store_id=store_id)
        return {
            "success": True,
            "rows": len(rows),
            "inserted": result.inserted_count,
            "skipped": result.skipped_count,
        }
    except (ReviewAnalyticsError, OSError) as e:
        logger.error(f"Import failed: {e}")
        return {"success": False, "error": str(e)}
    finally:
        await close_db(engine)


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Import reviews from a CSV file")
    parser.add_argument("path", type=Path, help="CSV file to import")
    parser.add_argument(
        "--store-id",
        type=int,
        default=None,
        help="Store for rows without a store_id column",
    )

    args = parser.parse_args()

    if not args.path.is_file():
        logger.error(f"File not found: {args.path}")
        sys.exit(1)

    result = asyncio.run(run_import(args.path, store_id=args.store_id))

    if result["success"]:
        logger.info(
            f"Import complete: {result['inserted']} inserted, "
            f"{result['skipped']} skipped of {result['rows']} rows"
        )
        sys.exit(0)
    else:
        logger.error(f"Import failed: {result['error']}")
        sys.exit(1)


if __name__ == "__main__":
    main()
