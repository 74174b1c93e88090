"""Full import: clear tables, load books, load reviews, update aggregates."""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import delete, text

from ..config import DEFAULT_BATCH_SIZE
from ..db.database import Database
from ..db.models import Book, Review
from .aggregates import AggregateResult, update_book_aggregates
from .books import BookLoadResult, load_books
from .reviews import ReviewLoadResult, load_reviews
from .transform import read_book_records, read_review_records

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Result of a full import run."""

    success: bool = False
    error: Optional[str] = None
    cleared_with: Optional[str] = None
    books: Optional[BookLoadResult] = None
    reviews: Optional[ReviewLoadResult] = None
    aggregates: Optional[AggregateResult] = None
    aggregates_skipped: bool = False
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    elapsed_seconds: float = 0.0

    @property
    def elapsed_minutes(self) -> float:
        return self.elapsed_seconds / 60

    @property
    def status(self) -> str:
        return "SUCCESS" if self.success else "FAILURE"


def clear_tables(db: Database) -> str:
    """Empty the reviews and books tables.

    Tries TRUNCATE (resetting identities) first and falls back to DELETE,
    each in its own transaction.

    Returns:
        "truncate" or "delete", depending on which strategy worked
    """
    logger.info("Clearing tables (reviews and books)...")
    try:
        with db.get_session() as session:
            session.execute(text("TRUNCATE TABLE reviews RESTART IDENTITY CASCADE"))
            session.execute(text("TRUNCATE TABLE books RESTART IDENTITY CASCADE"))
        logger.info("Tables cleared with TRUNCATE")
        return "truncate"
    except Exception as e:
        logger.warning("TRUNCATE failed (%s), falling back to DELETE", e.__class__.__name__)

    try:
        with db.get_session() as session:
            session.execute(delete(Review))
            session.execute(delete(Book))
    except Exception:
        logger.exception("Failed to clear tables with DELETE")
        raise
    logger.info("Tables cleared with DELETE")
    return "delete"


def run_import(
    books_path: Path | str,
    reviews_path: Path | str,
    db: Database,
    batch_size: int = DEFAULT_BATCH_SIZE,
    show_progress: bool = True,
    dispose: bool = True,
) -> ImportResult:
    """Run the whole import against ``db``.

    Any failure stops the remaining phases; it is logged and recorded on the
    result rather than raised. The engine is disposed on the way out unless
    ``dispose`` is False.

    Args:
        books_path: Path to the books CSV
        reviews_path: Path to the reviews CSV
        db: Database to load into
        batch_size: Reviews per multi-row insert
        show_progress: Show tqdm progress bars
        dispose: Dispose the database engine when done

    Returns:
        ImportResult with per-phase results, status and elapsed time
    """
    result = ImportResult()
    start = time.perf_counter()
    logger.info("--- Starting import at %s ---", result.started_at.isoformat())

    try:
        result.cleared_with = clear_tables(db)

        result.books = load_books(read_book_records(books_path, show_progress), db)

        result.reviews = load_reviews(
            read_review_records(reviews_path, show_progress),
            result.books.title_index,
            db,
            batch_size=batch_size,
        )
        logger.info(
            "Review import finished: %d linked, %d unlinked",
            result.reviews.linked,
            result.reviews.unlinked,
        )

        if result.reviews.linked > 0:
            result.aggregates = update_book_aggregates(db)
        else:
            result.aggregates_skipped = True
            logger.info("No linked reviews inserted, skipping aggregate update")

        result.success = True
        logger.info("--- Import and aggregate update complete ---")
    except Exception as e:
        result.error = str(e)
        logger.error("--- Import FAILED: %s ---", e)
    finally:
        if dispose:
            db.dispose()
        result.elapsed_seconds = time.perf_counter() - start
        logger.info(
            "--- Import finished. Total time: %.2f minutes. Status: %s ---",
            result.elapsed_minutes,
            result.status,
        )

    return result
